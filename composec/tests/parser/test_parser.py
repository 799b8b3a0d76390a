# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from composec.core.capabilities import CapabilityKind
from composec.core.diagnostics import DiagnosticKind
from composec.ir import SourceFile
from composec.parser import parse_source, parse_sources


def _parse(*texts: str):
	return parse_sources([SourceFile(f"f{i}.compose", t) for i, t in enumerate(texts)])


def _composition(body: str, *, macro: str = "construct_runtime") -> str:
	return f"{macro}! {{\n\tpub enum Runtime {{\n{body}\n\t}}\n}}\n"


def test_component_declaration_is_lowered() -> None:
	src = (
		"component pallet {\n"
		"\tparts { Pallet, Call, Event<T> }\n"
		"\ttrait Config: frame_system::Config {\n"
		"\t\ttype Bar: Debug + Clone;\n"
		"\t}\n"
		"\tstorage Example { Value, Map }\n"
		"\tcall {\n"
		"\t\tfn foo(origin, bar: T::Bar, n: u32);\n"
		"\t}\n"
		"\tpub use other::RawOrigin;\n"
		"}\n"
	)
	res = parse_source(SourceFile("p.compose", src))
	assert res.diagnostics == []
	comp = res.value.components[0]
	assert comp.path.text == "pallet"
	assert [p.name for p in comp.parts] == ["Pallet", "Call", "Event"]
	assert comp.parts[2].generics == ["T"]
	cfg = comp.configs[0]
	assert [s.text for s in cfg.supertraits] == ["frame_system::Config"]
	bar = cfg.assoc[0]
	assert bar.name == "Bar"
	assert [b.text for b in bar.bounds] == ["Debug", "Clone"]
	# Restriction insert point sits right after the last bound.
	assert (bar.bounds_end.line, bar.bounds_end.column) == (4, 26)
	assert comp.storages[0].prefix == "Example"
	assert comp.storages[0].items == ["Value", "Map"]
	params = comp.calls[0].params
	assert [p.name for p in params] == ["bar", "n"]
	assert params[0].type_ref.text == "T::Bar"
	assert comp.reexports[0].path.text == "other::RawOrigin"


def test_unbounded_assoc_type_restriction_point_follows_name() -> None:
	src = "component pallet {\n\ttrait Config {\n\t\ttype Bar;\n\t}\n}\n"
	res = parse_source(SourceFile("p.compose", src))
	bar = res.value.components[0].configs[0].assoc[0]
	assert bar.bounds == []
	assert (bar.bounds_end.line, bar.bounds_end.column) == (3, 11)


def test_syntax_error_yields_single_diagnostic() -> None:
	res = parse_source(SourceFile("bad.compose", "component pallet {\n\tparts { Pallet Call }\n}\n"))
	assert res.value is None
	assert len(res.diagnostics) == 1
	diag = res.diagnostics[0]
	assert diag.kind is DiagnosticKind.PARSE_ERROR
	assert diag.phase == "parser"
	assert diag.code is None
	assert "found `Call`" in diag.message
	assert (diag.span.file, diag.span.line, diag.span.column) == ("bad.compose", 2, 17)


def test_syntax_error_does_not_stop_other_files() -> None:
	res = _parse("component broken {", "component pallet { parts { Call } }\n")
	assert len(res.diagnostics) == 1
	assert [u.file for u in res.value.units] == ["f1.compose"]


def test_unsupported_token_is_reported_and_dropped() -> None:
	res = _parse(_composition("\t\tSystem: frame_system::{Pallet},\n\t\tExample: pallet::{Pallet, Bogus},"))
	assert len(res.diagnostics) == 1
	assert res.diagnostics[0].message.startswith("unexpected component part `Bogus`, expected one of: `Pallet`, `Call`")
	example = res.value.composition.entry("Example")
	assert [r.token for r in example.refs] == ["Pallet"]


def test_duplicate_token_in_entry() -> None:
	res = _parse(_composition("\t\tSystem: frame_system::{Pallet, Call, Pallet},"))
	assert [d.message for d in res.diagnostics] == [
		"`Pallet` was already declared before, please remove the duplicate declaration"
	]
	assert len(res.diagnostics[0].secondary) == 1


def test_generic_argument_on_non_generic_token() -> None:
	res = _parse(_composition("\t\tSystem: frame_system::{Pallet, Call<T>, Event<T>},"))
	assert [d.message for d in res.diagnostics] == ["`Call` part is not allowed to have generic arguments"]
	system = res.value.composition.entry("System")
	assert system.ref_for(CapabilityKind.EVENT).generics == ("T",)


def test_token_aliases_map_onto_kinds() -> None:
	res = _parse(_composition("\t\tSystem: frame_system::{Module, GenesisConfig, Config},"))
	kinds = [r.kind for r in res.value.composition.entry("System").refs]
	# `Config` and `GenesisConfig` both request the genesis surface.
	assert kinds[0] is CapabilityKind.PALLET
	assert kinds[1] is CapabilityKind.GENESIS_CONFIG
	assert any("already declared" in d.message for d in res.diagnostics)


def test_duplicate_entry_name() -> None:
	res = _parse(
		_composition(
			"\t\tSystem: frame_system::{Pallet},\n\t\tExample: pallet::{Pallet},\n\t\tExample: other::{Pallet},"
		)
	)
	assert [d.message for d in res.diagnostics] == ["two components with the same name `Example`"]
	assert [e.name for e in res.value.composition.entries] == ["System", "Example"]


def test_entry_indices_are_explicit_or_previous_plus_one() -> None:
	res = _parse(
		_composition("\t\tSystem: frame_system::{Pallet},\n\t\tA: a::{Pallet} = 5,\n\t\tB: b::{Pallet},")
	)
	assert res.diagnostics == []
	assert [e.index for e in res.value.composition.entries] == [0, 5, 6]


def test_entry_index_collision() -> None:
	res = _parse(
		_composition(
			"\t\tSystem: frame_system::{Pallet},\n\t\tA: a::{Pallet} = 3,\n\t\tB: b::{Pallet},\n\t\tC: c::{Pallet} = 4,"
		)
	)
	assert [d.message for d in res.diagnostics] == [
		"component indices are conflicting: both `B` and `C` are at index 4"
	]
	assert [e.name for e in res.value.composition.entries] == ["System", "A", "B"]


def test_entry_index_must_fit_in_a_byte() -> None:
	res = _parse(_composition("\t\tSystem: frame_system::{Pallet},\n\t\tA: a::{Pallet} = 256,"))
	assert [d.message for d in res.diagnostics] == ["component index doesn't fit into u8, index is 256"]


def test_missing_system_entry() -> None:
	res = _parse(_composition("\t\tExample: pallet::{Pallet},"))
	assert len(res.diagnostics) == 1
	assert res.diagnostics[0].message.startswith("`System` component declaration is missing")
	assert "`System: frame_system::{Pallet, Call, Storage, Config, Event<T>},`" in res.diagnostics[0].message


def test_only_one_composition() -> None:
	body = "\t\tSystem: frame_system::{Pallet},"
	res = _parse(_composition(body), _composition(body))
	assert [d.message for d in res.diagnostics] == ["only one composition may be declared per runtime"]
	assert res.value.composition_file == "f0.compose"


def test_unknown_macro_name() -> None:
	res = _parse(_composition("\t\tSystem: frame_system::{Pallet},", macro="runtime"))
	assert [d.message for d in res.diagnostics] == ["cannot find macro `runtime` in this scope"]
	assert res.value.composition is None


def test_duplicate_component_and_duplicate_part() -> None:
	res = _parse(
		"component pallet { parts { Call, Call } }\n",
		"component pallet { parts { Event } }\n",
	)
	messages = [d.message for d in res.diagnostics]
	assert messages == [
		"`Call` was already declared before, please remove the duplicate declaration",
		"component `pallet` is declared more than once",
	]
	assert [p.name for p in res.value.units[0].program.components[0].parts] == ["Call"]
	assert res.value.units[1].program.components == []


def test_duplicate_parameter_name_is_a_declaration_error() -> None:
	res = _parse("component pallet {\n\tcall {\n\t\tfn foo(origin, a: u32, a: u32);\n\t}\n}\n")
	assert [d.message for d in res.diagnostics] == [
		"identifier `a` is bound more than once in the parameter list of `foo`"
	]
	assert (res.diagnostics[0].span.line, res.diagnostics[0].span.column) == (3, 26)
	assert res.value.units == []


def test_unsupported_attribute() -> None:
	res = _parse("#[frobnicate]\ninterface Foo;\n")
	assert [d.message for d in res.diagnostics] == ["cannot use attribute `#[frobnicate]` on an interface"]
	assert res.value.units[0].program.interfaces[0].attrs == []


def test_entry_path_span_excludes_trailing_separator() -> None:
	res = _parse(_composition("\t\tSystem: frame_system::{Pallet},"))
	span = res.value.composition.entry("System").path_span
	assert span.end_column - span.column == len("frame_system")

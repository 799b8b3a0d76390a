# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from composec.core.capabilities import CapabilityKind
from composec.core.diagnostics import DiagnosticKind
from composec.test_helpers import INHERITED_RUNTIME, VALID_RUNTIME, analyze

BASE = """
component frame_system {
	parts { Pallet, Call, Storage, Config, Event<T>, Origin }
	trait Config {}
}

component pallet {
	parts { Pallet, Call }
	trait Config: frame_system::Config {
		type Balance: Member;
	}
	call {
		fn act(origin, amount: T::Balance);
	}
}

impl frame_system::Config for Runtime {}
impl pallet::Config for Runtime {
	type Balance = u64;
}
"""

SYSTEM = "System: frame_system::{Pallet, Call, Storage, Config, Event<T>}"


def _runtime(*entries: str, extra: str = "") -> str:
	body = "".join(f"\t\t{e},\n" for e in entries)
	return BASE + extra + "construct_runtime! {\n\tpub enum Runtime {\n" + body + "\t}\n}\n"


def test_valid_runtime_resolves_every_reference() -> None:
	a = analyze(VALID_RUNTIME)
	assert a.parse_diagnostics == []
	assert a.resolve_diagnostics == []
	assert a.resolution.failures == []
	assert set(a.resolution.components) == {"System", "Balances"}
	binding = a.resolution.binding("Balances", CapabilityKind.EVENT)
	assert binding.component.path == "balances"
	assert binding.type_ref.display() == "balances::Event<Runtime>"
	assert len(a.resolution.bindings) == 10


def test_unresolved_entry_without_pallet_reports_the_path_once() -> None:
	a = analyze(_runtime(SYSTEM, "Staking: staking::{Call, Event<T>}"))
	diags = a.resolve_diagnostics
	assert [(d.code, d.message) for d in diags] == [
		("E0433", "failed to resolve: use of undeclared crate or module `staking`"),
	]
	assert diags[0].label == "use of undeclared crate or module `staking`"
	assert diags[0].helps == ()
	assert a.resolution.binding("Staking", CapabilityKind.CALL) is None


def test_unresolved_entry_with_pallet_reports_the_alias_too() -> None:
	a = analyze(_runtime(SYSTEM, "Staking: staking::{Pallet, Call}"))
	diags = a.resolve_diagnostics
	assert [d.code for d in diags] == ["E0433", "E0433"]
	pallet = diags[1]
	assert pallet.notes == ("required by the `Staking` type alias",)
	assert [(h.message, h.imports) for h in pallet.helps] == [
		("consider importing one of these items", ("frame_system::Pallet", "pallet::Pallet")),
	]
	assert diags[0].span != pallet.span


def test_unresolved_system_entry_reports_three_distinct_paths() -> None:
	src = (
		"component pallet {\n\tparts { Pallet, Call }\n}\n\n"
		"construct_runtime! {\n\tpub enum Runtime {\n"
		"\t\tSystem: system::{Pallet, Call, Storage, Config, Event<T>},\n"
		"\t}\n}\n"
	)
	a = analyze(src)
	paths = [d for d in a.resolve_diagnostics if d.code == "E0433"]
	assert len(paths) == 3
	assert len({d.span for d in paths}) == 3
	first = paths[0]
	assert first.message == "failed to resolve: use of undeclared crate or module `system`"
	assert [s.replacement for h in first.helps for s in h.suggestions] == ["frame_system"]
	raw_origin = paths[2]
	assert raw_origin.span.is_multiline()
	assert raw_origin.label == "not found in `system`"
	assert raw_origin.notes == ("required by the outer origin of `Runtime`",)
	assert raw_origin.helps[0].imports == ("frame_system::RawOrigin",)


def test_undeclared_capability_without_type_is_presence_only() -> None:
	a = analyze(_runtime(SYSTEM, "Example: pallet::{Pallet, Call, Storage}"))
	diags = a.resolve_diagnostics
	assert len(diags) == 1
	diag = diags[0]
	assert diag.code is None
	assert diag.kind is DiagnosticKind.CAPABILITY_NOT_DECLARED
	assert diag.message == (
		"`pallet` does not have `Storage` declared, perhaps you should remove `Storage` from construct_runtime?"
	)
	assert diag.span == a.registry.get("pallet").span
	assert [label.message for label in diag.secondary] == ["in this macro invocation"]
	assert diag.secondary[0].span == a.workspace.composition.span


def test_undeclared_capability_suggests_only_removal() -> None:
	a = analyze(_runtime(SYSTEM, "Example: pallet::{Pallet, Call, Origin}"))
	presence, *types = a.resolve_diagnostics
	assert len(presence.helps) == 1
	help_ = presence.helps[0]
	assert help_.message == "remove `Origin` from the `Example` entry"
	assert help_.imports == ()
	assert len(help_.suggestions) == 1
	removal = help_.suggestions[0]
	assert removal.is_removal
	origin_ref = a.workspace.composition.entry("Example").ref_for(CapabilityKind.ORIGIN)
	call_ref = a.workspace.composition.entry("Example").ref_for(CapabilityKind.CALL)
	# The removal takes the separating comma along.
	assert (removal.span.column, removal.span.end_column) == (call_ref.span.end_column, origin_ref.span.end_column)

	assert [(d.code, d.message) for d in types] == [
		("E0412", "cannot find type `Origin` in module `pallet`"),
		("E0412", "cannot find type `Origin` in module `pallet`"),
	]
	assert types[0].span == origin_ref.span
	assert types[1].span == a.workspace.composition.span
	assert types[0].notes == ("required by the `Example` variant of `OriginCaller`",)
	assert types[1].notes == ("required by the conversion from `pallet::Origin` into `OriginCaller`",)
	assert types[0].helps[0].imports == ("frame_system::Origin",)


def test_presence_diagnostics_come_first() -> None:
	a = analyze(_runtime(SYSTEM, "Staking: staking::{Pallet}", "Example: pallet::{Pallet, Call, Origin}"))
	assert [d.kind for d in a.resolve_diagnostics] == [
		DiagnosticKind.CAPABILITY_NOT_DECLARED,
		DiagnosticKind.UNRESOLVED_COMPONENT,
		DiagnosticKind.UNRESOLVED_COMPONENT,
		DiagnosticKind.UNRESOLVED_TYPE,
		DiagnosticKind.UNRESOLVED_TYPE,
	]
	assert a.resolution.binding("Example", CapabilityKind.CALL) is not None
	assert a.resolution.binding("Example", CapabilityKind.ORIGIN) is None


def test_unknown_traits() -> None:
	extra = """
interface Foo: Bar;
impl pallet::Confg for Runtime {}

component other {
	trait Config: frame_sys::Config {}
}
"""
	a = analyze(_runtime(SYSTEM, extra=extra))
	got = [(d.code, d.message) for d in a.resolve_diagnostics]
	assert got == [
		("E0433", "failed to resolve: use of undeclared crate or module `frame_sys`"),
		("E0405", "cannot find trait `Bar` in this scope"),
		("E0405", "cannot find trait `Confg` in module `pallet`"),
	]


def test_unknown_types_in_declarations() -> None:
	extra = """
component other {
	parts { Call }
	trait Config {
		type Known;
	}
	call {
		fn a(origin, x: T::Missing, y: Foo, z: Vec<Bar>, w: pallet::Call);
	}
}

impl other::Config for Runtime {
	type Known = u32;
	type Unknown = u32;
}
"""
	a = analyze(_runtime(SYSTEM, extra=extra))
	got = [(d.code, d.message) for d in a.resolve_diagnostics]
	assert got == [
		("E0220", "associated type `Missing` not found for `T`"),
		("E0412", "cannot find type `Foo` in this scope"),
		("E0412", "cannot find type `Bar` in this scope"),
		("E0437", "type `Unknown` is not a member of trait `other::Config`"),
	]


def test_associated_type_inherited_from_supertrait_resolves() -> None:
	a = analyze(INHERITED_RUNTIME)
	assert a.resolve_diagnostics == []
	missing = analyze(INHERITED_RUNTIME.replace("dest: T::AccountId", "dest: T::Balance"))
	assert [(d.code, d.message) for d in missing.resolve_diagnostics] == [
		("E0220", "associated type `Balance` not found for `T`"),
	]

# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Declaration parser adapter.

Parses `.compose` sources with the lark grammar and lowers them into the
data-only IR (`composec.ir`). Syntax errors abort only the file they occur
in (one diagnostic); malformed constructs inside an otherwise well-formed
file each produce one diagnostic and parsing of the remaining constructs
continues.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Set, Tuple

from lark.exceptions import UnexpectedCharacters, UnexpectedEOF, UnexpectedInput, UnexpectedToken

from . import ast as parser_ast
from . import parser as _parser
from composec.core.capabilities import SUPPORTED_TOKENS, CapabilityKind, kind_from_token, kind_info
from composec.core.config import ComposeConfig
from composec.core.diagnostics import Diagnostic, DiagnosticKind, Help, Label
from composec.core.result import PassResult
from composec.core.span import Span
from composec.ir import CapabilityReference, CompositionEntry, CompositionIR, ParsedUnit, SourceFile, Workspace

logger = logging.getLogger(__name__)

# Entry indices are encoded as a single byte in the generated aggregates.
MAX_ENTRY_INDEX = 255

_INTERFACE_ATTRS = {"on_unimplemented", "note", "operator"}
_STRUCT_ATTRS = {"derive"}


def _parse_error(
	message: str,
	span: Span,
	*,
	label: str = "",
	secondary: Tuple[Label, ...] = (),
	helps: Tuple[Help, ...] = (),
) -> Diagnostic:
	return Diagnostic(
		message=message,
		kind=DiagnosticKind.PARSE_ERROR,
		phase="parser",
		span=span,
		label=label,
		secondary=secondary,
		helps=helps,
	)


def _describe_terminal(name: str) -> str:
	if name == "$END":
		return "end of file"
	if name == "NAME":
		return "identifier"
	if name in ("STRING", "INT"):
		return name.lower()
	try:
		term = _parser._PARSER.get_terminal(name)
	except KeyError:
		return name
	return f"`{term.pattern.value}`"


def _syntax_error(err: UnexpectedInput, file: str) -> Diagnostic:
	line = getattr(err, "line", None)
	column = getattr(err, "column", None)
	if isinstance(err, UnexpectedToken):
		tok = err.token
		expected = sorted(_describe_terminal(name) for name in (err.expected or ()))
		found = "end of file" if tok.type == "$END" else f"`{tok.value}`"
		message = f"expected one of {', '.join(expected)}, found {found}" if expected else f"unexpected {found}"
		if tok.type != "$END":
			span = Span(file, tok.line, tok.column, tok.end_line, tok.end_column)
		else:
			span = Span(file, line, column, line, column)
		return _parse_error(message, span, label="unexpected token")
	if isinstance(err, UnexpectedCharacters):
		char = err.char if hasattr(err, "char") else "?"
		span = Span(file, line, column, line, (column or 0) + 1)
		return _parse_error(f"unknown start of token: `{char}`", span)
	if isinstance(err, UnexpectedEOF):
		return _parse_error("unexpected end of file", Span(file, line, column, line, column))
	return _parse_error(str(err).splitlines()[0], Span(file, line, column))


def parse_source(source: SourceFile) -> PassResult[parser_ast.Program]:
	"""Parse a single source file; a syntax or declaration error yields one diagnostic and no program."""
	try:
		prog = _parser.parse_program(source.text)
	except UnexpectedInput as err:
		return PassResult(None, [_syntax_error(err, source.path)])
	except _parser.DeclarationError as err:
		return PassResult(None, [_parse_error(str(err), _span(err.loc, source.path))])
	return PassResult(prog, [])


def _span(loc: object, file: Optional[str]) -> Span:
	return Span.from_loc(loc, file=file)


def _check_part(part: parser_ast.Part, file: str, *, owner: str) -> Optional[Diagnostic]:
	kind = kind_from_token(part.name)
	if kind is CapabilityKind.UNSUPPORTED:
		supported = ", ".join(f"`{t}`" for t in SUPPORTED_TOKENS)
		return _parse_error(
			f"unexpected {owner} part `{part.name}`, expected one of: {supported}",
			_span(part.loc, file),
			label="unsupported part",
		)
	if part.generics and not kind_info(kind).may_be_generic:
		return _parse_error(
			f"`{part.name}` part is not allowed to have generic arguments",
			_span(part.loc, file),
			label="remove the generic arguments",
		)
	return None


def _validate_parts(parts: Iterable[parser_ast.Part], file: str, *, owner: str) -> Tuple[List[parser_ast.Part], List[Diagnostic]]:
	"""Keep the first valid occurrence of each kind; report the rest."""
	diags: List[Diagnostic] = []
	kept: List[parser_ast.Part] = []
	seen: Dict[CapabilityKind, parser_ast.Part] = {}
	for part in parts:
		bad = _check_part(part, file, owner=owner)
		if bad is not None:
			diags.append(bad)
			continue
		kind = kind_from_token(part.name)
		first = seen.get(kind)
		if first is not None:
			diags.append(
				_parse_error(
					f"`{part.name}` was already declared before, please remove the duplicate declaration",
					_span(part.loc, file),
					label="duplicate part",
					secondary=(Label(_span(first.loc, file), "first declared here"),),
				)
			)
			continue
		seen[kind] = part
		kept.append(part)
	return kept, diags


def _validate_component(comp: parser_ast.ComponentDef, file: str) -> List[Diagnostic]:
	kept, diags = _validate_parts(comp.parts, file, owner="component")
	comp.parts = kept
	for extra in comp.configs[1:]:
		diags.append(
			_parse_error(
				f"component `{comp.path.text}` declares more than one `trait Config`",
				_span(extra.loc, file),
				secondary=(Label(_span(comp.configs[0].loc, file), "first declared here"),),
			)
		)
	del comp.configs[1:]
	for extra in comp.storages[1:]:
		diags.append(
			_parse_error(
				f"component `{comp.path.text}` declares more than one storage block",
				_span(extra.loc, file),
				secondary=(Label(_span(comp.storages[0].loc, file), "first declared here"),),
			)
		)
	del comp.storages[1:]
	return diags


def _validate_attrs(attrs: List[parser_ast.Attribute], allowed: Set[str], file: str, *, what: str) -> List[Diagnostic]:
	diags: List[Diagnostic] = []
	for attr in list(attrs):
		if attr.name in allowed:
			continue
		diags.append(
			_parse_error(
				f"cannot use attribute `#[{attr.name}]` on {what}",
				_span(attr.loc, file),
				label="unsupported attribute",
			)
		)
		attrs.remove(attr)
	return diags


def _lower_composition(
	comp: parser_ast.Composition,
	file: str,
	config: ComposeConfig,
) -> Tuple[CompositionIR, List[Diagnostic]]:
	diags: List[Diagnostic] = []
	entries: List[CompositionEntry] = []
	names: Dict[str, parser_ast.Entry] = {}
	indices: Dict[int, parser_ast.Entry] = {}
	next_index = 0
	for raw in comp.entries:
		if raw.name in names:
			diags.append(
				_parse_error(
					f"two components with the same name `{raw.name}`",
					_span(raw.name_loc, file),
					label="duplicate name",
					secondary=(Label(_span(names[raw.name].name_loc, file), "first used here"),),
				)
			)
			continue
		names[raw.name] = raw
		index = raw.index if raw.index is not None else next_index
		if index > MAX_ENTRY_INDEX:
			diags.append(
				_parse_error(
					f"component index doesn't fit into u8, index is {index}",
					_span(raw.index_loc or raw.name_loc, file),
				)
			)
			continue
		clash = indices.get(index)
		if clash is not None:
			diags.append(
				_parse_error(
					f"component indices are conflicting: both `{clash.name}` and `{raw.name}` are at index {index}",
					_span(raw.index_loc or raw.name_loc, file),
					secondary=(Label(_span(clash.index_loc or clash.name_loc, file), f"`{clash.name}` is at index {index}"),),
				)
			)
			continue
		indices[index] = raw
		next_index = index + 1
		kept, part_diags = _validate_parts(raw.parts, file, owner="component")
		diags.extend(part_diags)
		path = raw.path.text
		refs = [
			CapabilityReference(
				entry=raw.name,
				component_path=path,
				token=part.name,
				kind=kind_from_token(part.name),
				generics=tuple(part.generics),
				span=_span(part.loc, file),
			)
			for part in kept
		]
		entries.append(
			CompositionEntry(
				name=raw.name,
				path=path,
				segments=tuple(raw.path.segments),
				index=index,
				refs=refs,
				span=_span(raw.loc, file),
				name_span=_span(raw.name_loc, file),
				path_span=_span(raw.path.loc, file),
			)
		)
	ir = CompositionIR(
		macro=comp.macro,
		runtime=comp.runtime,
		where=[(w.name, w.value.text) for w in comp.where],
		entries=entries,
		span=_span(comp.loc, file),
		macro_span=_span(comp.macro_loc, file),
		runtime_span=_span(comp.runtime_loc, file),
	)
	if not any(e.name == config.system_entry for e in comp.entries):
		diags.append(
			_parse_error(
				f"`{config.system_entry}` component declaration is missing, please add this line: "
				f"`{config.system_entry}: {config.system_path}::{{Pallet, Call, Storage, Config, Event<T>}},`",
				ir.macro_span,
			)
		)
	return ir, diags


def parse_sources(sources: Iterable[SourceFile], *, config: Optional[ComposeConfig] = None) -> PassResult[Workspace]:
	"""
	Parse every source and lower them into a Workspace.

	The Workspace is always returned (possibly partial); callers check
	`result.ok` before running later passes.
	"""
	config = config or ComposeConfig()
	ws = Workspace()
	diags: List[Diagnostic] = []
	component_seen: Dict[str, Span] = {}
	for source in sources:
		ws.sources[source.path] = source.text
		parsed = parse_source(source)
		diags.extend(parsed.diagnostics)
		prog = parsed.value
		if prog is None:
			logger.debug("parse failed for %s", source.path)
			continue
		file = source.path
		for iface in prog.interfaces:
			diags.extend(_validate_attrs(iface.attrs, _INTERFACE_ATTRS, file, what="an interface"))
		for st in prog.structs:
			diags.extend(_validate_attrs(st.attrs, _STRUCT_ATTRS, file, what="a struct"))
		kept_components = []
		for comp in prog.components:
			path = comp.path.text
			first = component_seen.get(path)
			if first is not None:
				diags.append(
					_parse_error(
						f"component `{path}` is declared more than once",
						_span(comp.path.loc, file),
						secondary=(Label(first, "first declared here"),),
					)
				)
				continue
			component_seen[path] = _span(comp.path.loc, file)
			diags.extend(_validate_component(comp, file))
			kept_components.append(comp)
		prog.components = kept_components
		for comp in prog.compositions:
			if comp.macro != config.macro_name:
				diags.append(
					_parse_error(
						f"cannot find macro `{comp.macro}` in this scope",
						_span(comp.macro_loc, file),
						helps=(Help(f"the composition macro is `{config.macro_name}!`"),),
					)
				)
				continue
			if ws.composition is not None:
				diags.append(
					_parse_error(
						"only one composition may be declared per runtime",
						_span(comp.macro_loc, file),
						secondary=(Label(ws.composition.macro_span, "first composition declared here"),),
					)
				)
				continue
			ir, comp_diags = _lower_composition(comp, file, config)
			diags.extend(comp_diags)
			ws.composition = ir
			ws.composition_file = file
		ws.units.append(ParsedUnit(file=file, program=prog))
		logger.debug(
			"parsed %s: %d component(s), %d impl(s), %d composition(s)",
			file,
			len(prog.components),
			len(prog.impls),
			len(prog.compositions),
		)
	return PassResult(ws, diags)


__all__ = ["parse_source", "parse_sources", "MAX_ENTRY_INDEX"]

# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Reference resolver.

Maps every capability reference of the composition onto the registry and
checks every path named by the sources (interfaces, bounds, impls, entry
point parameters). Output order is: capability-presence diagnostics, then
unresolved paths (E0433), then unresolved types and traits, each group in
source order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set, Tuple

from composec.core.capabilities import CapabilityKind, kind_info
from composec.core.diagnostics import Diagnostic, DiagnosticKind, Help, Label, Suggestion
from composec.core.result import PassResult
from composec.core.span import Span
from composec.ir import CapabilityReference, CompositionEntry, CompositionIR, ParsedUnit, Workspace
from composec.parser import ast as parser_ast
from composec.registry import CapabilityRegistry, Component
from composec.suggestions import Candidate
from composec.traits.world import TraitKey, TypeKey

logger = logging.getLogger(__name__)

# Placeholder for the runtime inside component declarations (`T::Balance`).
SELF_PARAM = "T"


@dataclass(frozen=True)
class ResolvedBinding:
	reference: CapabilityReference
	component: Component
	type_ref: Optional[TypeKey]


@dataclass(frozen=True)
class ResolutionFailure:
	attempted_path: str
	kind: DiagnosticKind
	span: Span
	suggestions: Tuple[str, ...] = ()
	reference: Optional[CapabilityReference] = None


@dataclass
class Resolution:
	bindings: List[ResolvedBinding] = field(default_factory=list)
	failures: List[ResolutionFailure] = field(default_factory=list)
	# Entry name -> component, for entries whose path resolved.
	components: Dict[str, Component] = field(default_factory=dict)

	def binding(self, entry: str, kind: CapabilityKind) -> Optional[ResolvedBinding]:
		return next(
			(b for b in self.bindings if b.reference.entry == entry and b.reference.kind is kind),
			None,
		)


def _import_help(cands: Sequence[Candidate], item_kind: str) -> Tuple[Help, ...]:
	if not cands:
		return ()
	if len(cands) == 1:
		return (Help(f"consider importing this {item_kind}", imports=(cands[0].path,)),)
	return (Help("consider importing one of these items", imports=tuple(c.path for c in cands)),)


def _removal_span(entry: CompositionEntry, ref: CapabilityReference) -> Span:
	"""The token plus the separator that joins it to its neighbour."""
	refs = entry.refs
	idx = refs.index(ref)
	span = ref.span
	if idx > 0:
		prev = refs[idx - 1].span
		if prev.end_line == span.line:
			return Span(span.file, prev.end_line, prev.end_column, span.end_line, span.end_column)
	elif len(refs) > 1:
		nxt = refs[idx + 1].span
		if nxt.line == span.end_line:
			return Span(span.file, span.line, span.column, nxt.line, nxt.column)
	return span


class _Resolver:
	def __init__(self, workspace: Workspace, registry: CapabilityRegistry) -> None:
		self.ws = workspace
		self.registry = registry
		self.world = registry.world
		self.config = registry.config
		self.result = Resolution()
		self.presence: List[Diagnostic] = []
		self.paths: List[Diagnostic] = []
		self.types: List[Diagnostic] = []
		self._seen: Set[Tuple[str, DiagnosticKind, Span]] = set()

	def run(self) -> PassResult[Resolution]:
		comp = self.ws.composition
		if comp is not None:
			for entry in comp.entries:
				self._entry(entry, comp)
		for unit in self.ws.units:
			self._unit(unit)
		logger.debug(
			"resolve: %d binding(s), %d failure(s)",
			len(self.result.bindings),
			len(self.result.failures),
		)
		return PassResult(self.result, self.presence + self.paths + self.types)

	# ------------------------------------------------------------------ helpers

	def _record(self, attempted: str, kind: DiagnosticKind, span: Span, suggestions: Sequence[str] = (), ref: Optional[CapabilityReference] = None) -> bool:
		"""Register a failure; False if this reference was already reported."""
		key = (attempted, kind, span)
		if key in self._seen:
			return False
		self._seen.add(key)
		self.result.failures.append(
			ResolutionFailure(attempted_path=attempted, kind=kind, span=span, suggestions=tuple(suggestions), reference=ref)
		)
		return True

	def _unresolved_segment(self, segments: Sequence[str]) -> Tuple[str, Optional[str]]:
		"""(segment, enclosing module) of the first path segment that fails."""
		if len(segments) == 1 or not self.registry.knows_module(segments[0]):
			return segments[0], None
		return segments[-1], "::".join(segments[:-1])

	@staticmethod
	def _path_message(segment: str, module: Optional[str]) -> Tuple[str, str]:
		if module is None:
			label = f"use of undeclared crate or module `{segment}`"
		else:
			label = f"could not find `{segment}` in `{module}`"
		return f"failed to resolve: {label}", label

	# ------------------------------------------------------------ composition

	def _entry(self, entry: CompositionEntry, comp: CompositionIR) -> None:
		component = self.registry.get(entry.path)
		if component is None:
			self._unresolved_entry(entry, comp)
			return
		self.result.components[entry.name] = component
		for ref in entry.refs:
			if self.registry.has(component, ref.kind):
				self.result.bindings.append(
					ResolvedBinding(
						reference=ref,
						component=component,
						type_ref=self.registry.type_of(component, ref.kind, runtime=comp.runtime),
					)
				)
			else:
				self._missing_capability(entry, ref, component, comp)

	def _unresolved_entry(self, entry: CompositionEntry, comp: CompositionIR) -> None:
		segment, module = self._unresolved_segment(entry.segments)
		message, label = self._path_message(segment, module)
		near = (segment, entry.name)
		modules = self.registry.module_candidates(near=near)
		helps: Tuple[Help, ...] = ()
		if modules:
			what = "there is a crate or module with a similar name" if len(modules) == 1 else "there are crates or modules with similar names"
			helps = (Help(what, suggestions=tuple(Suggestion(entry.path_span, c.path) for c in modules)),)
		if self._record(entry.path, DiagnosticKind.UNRESOLVED_COMPONENT, entry.path_span, [c.path for c in modules]):
			self.paths.append(
				Diagnostic(
					message=message,
					code="E0433",
					kind=DiagnosticKind.UNRESOLVED_COMPONENT,
					phase="resolve",
					span=entry.path_span,
					label=label,
					helps=helps,
				)
			)
		# The generated glue names further items through the same path; each of
		# those is a separate unresolved reference.
		sites: List[Tuple[str, Span, str, Optional[CapabilityReference]]] = []
		pallet = entry.ref_for(CapabilityKind.PALLET)
		if pallet is not None:
			sites.append(("Pallet", pallet.span, f"required by the `{entry.name}` type alias", pallet))
		if entry.name == self.config.system_entry:
			sites.append(("RawOrigin", comp.span, f"required by the outer origin of `{comp.runtime}`", entry.ref_for(CapabilityKind.ORIGIN)))
		for item, span, note, ref in sites:
			cands = self.registry.suggest(item, near=near)
			if not self._record(f"{entry.path}::{item}", DiagnosticKind.UNRESOLVED_COMPONENT, span, [c.path for c in cands], ref):
				continue
			item_kind = kind_info(CapabilityKind.PALLET if item == "Pallet" else CapabilityKind.ORIGIN).item_kind
			self.paths.append(
				Diagnostic(
					message=message,
					code="E0433",
					kind=DiagnosticKind.UNRESOLVED_COMPONENT,
					phase="resolve",
					span=span,
					label=f"not found in `{entry.path}`" if span.is_multiline() else label,
					notes=(note,),
					helps=_import_help(cands, item_kind),
				)
			)

	def _missing_capability(
		self,
		entry: CompositionEntry,
		ref: CapabilityReference,
		component: Component,
		comp: CompositionIR,
	) -> None:
		token = ref.token
		self._record(f"{component.path}::{token}", DiagnosticKind.CAPABILITY_NOT_DECLARED, ref.span, (), ref)
		self.presence.append(
			Diagnostic(
				message=f"`{component.path}` does not have `{token}` declared, perhaps you should remove `{token}` from {comp.macro}?",
				kind=DiagnosticKind.CAPABILITY_NOT_DECLARED,
				phase="resolve",
				span=component.span,
				secondary=(Label(comp.span, "in this macro invocation"),),
				helps=(Help(f"remove `{token}` from the `{entry.name}` entry", suggestions=(Suggestion(_removal_span(entry, ref), ""),)),),
			)
		)
		info = kind_info(ref.kind)
		if info.type_name is None:
			return
		cands = self.registry.suggest(info.type_name, near=(entry.name,), exclude=(component.path,))
		for i, site in enumerate(info.use_sites):
			# The first use site is the token itself; the rest are in the expansion.
			span = ref.span if i == 0 else comp.span
			attempted = f"{component.path}::{info.type_name}"
			if not self._record(attempted, DiagnosticKind.UNRESOLVED_TYPE, span, [c.path for c in cands], ref):
				continue
			self.types.append(
				Diagnostic(
					message=f"cannot find type `{info.type_name}` in module `{component.path}`",
					code="E0412",
					kind=DiagnosticKind.UNRESOLVED_TYPE,
					phase="resolve",
					span=span,
					label=f"not found in `{component.path}`",
					notes=("required by " + site.format(entry=entry.name, path=component.path),),
					helps=_import_help(cands, info.item_kind),
				)
			)

	# ------------------------------------------------------------- declarations

	def _unit(self, unit: ParsedUnit) -> None:
		file = unit.file
		prog = unit.program
		for iface in prog.interfaces:
			for path in iface.supertraits + iface.alias:
				self._trait_path(path, file)
		for st in prog.structs:
			for attr in st.attrs:
				for path in attr.paths:
					self._trait_path(path, file)
		for comp_def in prog.components:
			component = self.registry.get(comp_def.path.text)
			for cfg in comp_def.configs:
				for path in cfg.supertraits:
					self._trait_path(path, file)
				for decl in cfg.assoc:
					for path in decl.bounds:
						self._trait_path(path, file)
			for ep in comp_def.calls:
				for param in ep.params:
					self._type_ref(param.type_ref, file, component=component)
		for impl in prog.impls:
			self._impl(impl, file)

	def _impl(self, impl: parser_ast.ImplDef, file: str) -> None:
		key = self._trait_path(impl.trait, file)
		if impl.target not in self.world.types:
			span = Span.from_loc(impl.target_loc, file=file)
			if self._record(impl.target, DiagnosticKind.UNRESOLVED_TYPE, span):
				self.types.append(self._type_not_found(impl.target, span))
		tdef = self.world.traits.get(key) if key is not None else None
		for assign in impl.assigns:
			if tdef is not None and tdef.component is not None and assign.name not in tdef.assoc:
				span = Span.from_loc(assign.name_loc, file=file)
				if self._record(f"{tdef.key.path}::{assign.name}", DiagnosticKind.UNRESOLVED_TYPE, span):
					self.types.append(
						Diagnostic(
							message=f"type `{assign.name}` is not a member of trait `{tdef.key.path}`",
							code="E0437",
							kind=DiagnosticKind.UNRESOLVED_TYPE,
							phase="resolve",
							span=span,
							label=f"not a member of trait `{tdef.key.path}`",
						)
					)
			self._type_ref(assign.value, file)

	def _trait_path(self, path: parser_ast.PathExpr, file: str) -> Optional[TraitKey]:
		key = self.world.resolve_trait(path.text)
		if key is not None:
			return key
		span = Span.from_loc(path.loc, file=file)
		segments = path.segments
		if len(segments) > 1 and not self.registry.knows_module(segments[0]):
			message, label = self._path_message(segments[0], None)
			if self._record(path.text, DiagnosticKind.UNRESOLVED_COMPONENT, span):
				self.paths.append(
					Diagnostic(
						message=message,
						code="E0433",
						kind=DiagnosticKind.UNRESOLVED_COMPONENT,
						phase="resolve",
						span=span,
						label=label,
					)
				)
			return None
		where = "this scope" if len(segments) == 1 else f"module `{'::'.join(segments[:-1])}`"
		short = "this scope" if len(segments) == 1 else f"`{'::'.join(segments[:-1])}`"
		cands = [k.path for k in self.world.by_name.get(path.last, [])]
		if self._record(path.text, DiagnosticKind.UNRESOLVED_TYPE, span, cands):
			self.types.append(
				Diagnostic(
					message=f"cannot find trait `{path.last}` in {where}",
					code="E0405",
					kind=DiagnosticKind.UNRESOLVED_TYPE,
					phase="resolve",
					span=span,
					label=f"not found in {short}",
					helps=(Help("consider importing this trait", imports=tuple(cands)),) if cands else (),
				)
			)
		return None

	def _type_not_found(self, name: str, span: Span) -> Diagnostic:
		return Diagnostic(
			message=f"cannot find type `{name}` in this scope",
			code="E0412",
			kind=DiagnosticKind.UNRESOLVED_TYPE,
			phase="resolve",
			span=span,
			label="not found in this scope",
		)

	def _type_ref(self, tref: parser_ast.TypeRef, file: str, *, component: Optional[Component] = None) -> None:
		segments = tref.path.segments
		span = Span.from_loc(tref.path.loc, file=file)
		if len(segments) == 2 and segments[0] == SELF_PARAM and component is not None:
			found = self.world.find_assoc(component.config, segments[1]) if component.config is not None else None
			if found is None:
				if self._record(tref.path.text, DiagnosticKind.UNRESOLVED_TYPE, span):
					self.types.append(
						Diagnostic(
							message=f"associated type `{segments[1]}` not found for `{SELF_PARAM}`",
							code="E0220",
							kind=DiagnosticKind.UNRESOLVED_TYPE,
							phase="resolve",
							span=span,
							label=f"associated type `{segments[1]}` not found",
						)
					)
		elif len(segments) > 1:
			exported = self._component_type(segments)
			if not exported:
				head, module = self._unresolved_segment(segments)
				if module is None:
					message, label = self._path_message(head, None)
					if self._record(tref.path.text, DiagnosticKind.UNRESOLVED_COMPONENT, span):
						self.paths.append(
							Diagnostic(
								message=message,
								code="E0433",
								kind=DiagnosticKind.UNRESOLVED_COMPONENT,
								phase="resolve",
								span=span,
								label=label,
							)
						)
				elif self._record(tref.path.text, DiagnosticKind.UNRESOLVED_TYPE, span):
					self.types.append(
						Diagnostic(
							message=f"cannot find type `{head}` in module `{module}`",
							code="E0412",
							kind=DiagnosticKind.UNRESOLVED_TYPE,
							phase="resolve",
							span=span,
							label=f"not found in `{module}`",
						)
					)
		elif tref.path.text not in self.world.types:
			if self._record(tref.path.text, DiagnosticKind.UNRESOLVED_TYPE, span):
				self.types.append(self._type_not_found(tref.path.text, span))
		for arg in tref.args:
			self._type_ref(arg, file, component=component)

	def _component_type(self, segments: Sequence[str]) -> bool:
		"""`path::Item` where the component at `path` exports `Item`."""
		owner = self.registry.get("::".join(segments[:-1]))
		return owner is not None and segments[-1] in owner.exports


def resolve(workspace: Workspace, registry: CapabilityRegistry) -> PassResult[Resolution]:
	return _Resolver(workspace, registry).run()


__all__ = ["ResolvedBinding", "ResolutionFailure", "Resolution", "resolve", "SELF_PARAM"]

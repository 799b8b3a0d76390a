# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Bound checker.

Collects the obligations implied by the composition and the component
declarations, proves each one independently and turns every refuted
obligation into one diagnostic. Obligations whose proof is UNKNOWN involve
names the resolver already reported and are skipped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Tuple

from composec.core.capabilities import CapabilityKind
from composec.core.diagnostics import Diagnostic, DiagnosticKind, Help, Label, Suggestion
from composec.core.result import PassResult
from composec.core.span import Span
from composec.ir import Workspace
from composec.parser import ast as parser_ast
from composec.registry import CapabilityRegistry, Component
from composec.resolver import SELF_PARAM, Resolution
from composec.traits.solver import CacheKey, Env, ProofResult, ProofStatus, prove_is
from composec.traits.world import AssocTypeDef, ProjectionKey, Subject, TraitKey, TraitWorld, TypeKey

logger = logging.getLogger(__name__)

# Where an obligation comes from.
ORIGIN_WIRING = "wiring"
ORIGIN_SUPERTRAIT = "supertrait"
ORIGIN_ASSOC = "assoc"
ORIGIN_DISPATCH = "dispatch"


@dataclass(frozen=True)
class BoundObligation:
	subject: Subject
	trait: TraitKey
	span: Span
	origin: str
	# Bound that imposes the obligation, for "required by this bound in ...".
	bound_span: Optional[Span] = None
	context: Optional[str] = None
	# Associated type behind a projection subject (restriction target).
	assoc: Optional[AssocTypeDef] = None


def build_env(registry: CapabilityRegistry) -> Env:
	"""Declared bounds of every associated type, keyed by the trait declaring it."""
	world = registry.world
	env = Env()
	for tdef in world.traits.values():
		for name, decl in tdef.assoc.items():
			env.assumed[ProjectionKey(tdef.key, name)] = world.resolve_all(decl.bounds)
	return env


def _subject_of(tref: parser_ast.TypeRef, component: Optional[Component], world: TraitWorld) -> Tuple[Optional[Subject], Optional[AssocTypeDef]]:
	segments = tref.path.segments
	if len(segments) == 2 and segments[0] == SELF_PARAM:
		if component is None or component.config is None:
			return None, None
		found = world.find_assoc(component.config, segments[1])
		if found is None:
			return None, None
		tdef, decl = found
		return ProjectionKey(tdef.key, decl.name), decl
	if tref.path.text not in world.types:
		return None, None
	args: List[Subject] = []
	for arg in tref.args:
		sub, _ = _subject_of(arg, component, world)
		if sub is None:
			return None, None
		args.append(sub)
	return TypeKey(tref.path.text, tuple(args)), None


def _dispatch_bounds(registry: CapabilityRegistry) -> List[TraitKey]:
	keys: List[TraitKey] = []
	for name in registry.config.dispatch_bounds:
		key = registry.world.resolve_trait(name)
		if key is None:
			logger.warning("dispatch bound %s is not a known interface; skipped", name)
			continue
		if key not in keys:
			keys.append(key)
	return keys


def collect_obligations(workspace: Workspace, registry: CapabilityRegistry, resolution: Resolution) -> List[BoundObligation]:
	world = registry.world
	out: List[BoundObligation] = []
	comp = workspace.composition
	if comp is not None:
		runtime = TypeKey(comp.runtime)
		for entry in comp.entries:
			component = resolution.components.get(entry.name)
			if component is None or component.config is None:
				continue
			out.append(
				BoundObligation(
					subject=runtime,
					trait=component.config,
					span=entry.path_span,
					origin=ORIGIN_WIRING,
					context=entry.name,
				)
			)
		for unit in workspace.units:
			for impl in unit.program.impls:
				if impl.target != comp.runtime:
					continue
				key = world.resolve_trait(impl.trait.text)
				tdef = world.traits.get(key) if key is not None else None
				if tdef is None or tdef.component is None:
					continue
				trait_span = Span.from_loc(impl.trait.loc, file=unit.file)
				for sup in world.supertrait_closure(tdef.key):
					found = world.declaring_bound(tdef.key, sup)
					bound_span: Optional[Span] = None
					context = tdef.key.path
					if found is not None:
						owner, path = found
						bound_span = Span.from_loc(path.loc, file=world.traits[owner].span.file)
						context = owner.path
					out.append(
						BoundObligation(
							subject=runtime,
							trait=sup,
							span=trait_span,
							origin=ORIGIN_SUPERTRAIT,
							bound_span=bound_span,
							context=context,
						)
					)
				for assign in impl.assigns:
					decl = tdef.assoc.get(assign.name)
					if decl is None:
						continue
					value, _ = _subject_of(assign.value, None, world)
					if value is None:
						continue
					value_span = Span.from_loc(assign.value.loc, file=unit.file)
					for bound in decl.bounds:
						bkey = world.resolve_trait(bound.text)
						if bkey is None:
							continue
						out.append(
							BoundObligation(
								subject=value,
								trait=bkey,
								span=value_span,
								origin=ORIGIN_ASSOC,
								bound_span=Span.from_loc(bound.loc, file=decl.span.file),
								context=f"{tdef.key.path}::{decl.name}",
							)
						)
	dispatch = _dispatch_bounds(registry)
	for component in registry.components:
		# Only a declared `Call` part makes the entry points dispatchable.
		if CapabilityKind.CALL not in component.capabilities:
			continue
		for ep in component.entry_points:
			for param in ep.params:
				subject, assoc = _subject_of(param.type_ref, component, world)
				if subject is None:
					continue
				loc = param.loc
				span = Span(component.file, loc.line, loc.column, loc.line, loc.column + len(param.name))
				for key in dispatch:
					out.append(
						BoundObligation(
							subject=subject,
							trait=key,
							span=span,
							origin=ORIGIN_DISPATCH,
							context=f"{component.path}::{ep.name}",
							assoc=assoc,
						)
					)
	unique: List[BoundObligation] = []
	seen: Set[Tuple[Subject, TraitKey, Span, str]] = set()
	for ob in out:
		key = (ob.subject, ob.trait, ob.span, ob.origin)
		if key in seen:
			continue
		seen.add(key)
		unique.append(ob)
	return unique


def _fill(template: str, subject: str, trait: str) -> str:
	return template.replace("{Self}", subject).replace("{Trait}", trait)


def _restriction(ob: BoundObligation) -> Optional[Help]:
	if not isinstance(ob.subject, ProjectionKey) or ob.assoc is None:
		return None
	sep = " + " if ob.assoc.bounds else ": "
	return Help(
		"consider further restricting this bound",
		suggestions=(Suggestion(ob.assoc.bounds_end, f"{sep}{ob.trait.path}"),),
	)


def obligation_diagnostic(world: TraitWorld, ob: BoundObligation, res: ProofResult) -> Diagnostic:
	tdef = world.traits[ob.trait]
	subject = ob.subject.display()
	trait = ob.trait.path
	notes: List[str] = [r for r in res.reasons if r.startswith("required because")]
	for missing in res.missing:
		notes.append(f"`{trait}` requires `{missing.path}`, which is not implemented for `{subject}`")
	secondary: Tuple[Label, ...] = ()
	if ob.bound_span is not None and ob.bound_span.known:
		secondary = (Label(ob.bound_span, f"required by this bound in `{ob.context}`"),)
	if ob.origin == ORIGIN_WIRING:
		notes.append(f"required because `{ob.context}` wires `{trait}` into `{subject}`")
	kind = DiagnosticKind.MISSING_SUPERTRAIT_IMPL if ob.origin == ORIGIN_SUPERTRAIT else DiagnosticKind.BOUND_NOT_SATISFIED

	if ob.origin == ORIGIN_DISPATCH and tdef.operator is not None:
		helps: Tuple[Help, ...] = ()
		restrict = _restriction(ob)
		if restrict is not None:
			helps = (restrict,)
		else:
			notes.append(f"an implementation of `{trait}` might be missing for `{subject}`")
		return Diagnostic(
			message=f"binary operation `{tdef.operator}` cannot be applied to type `&{subject}`",
			code="E0369",
			kind=kind,
			phase="bounds",
			span=ob.span,
			secondary=secondary,
			notes=tuple(notes),
			helps=helps,
		)
	if tdef.message is not None:
		return Diagnostic(
			message=_fill(tdef.message, subject, trait),
			code="E0277",
			kind=kind,
			phase="bounds",
			span=ob.span,
			label=_fill(tdef.label or "", subject, trait),
			secondary=secondary,
			notes=tuple(notes),
			helps=(Help(f"the trait `{trait}` is not implemented for `{subject}`"),),
		)
	if tdef.note is not None:
		notes.append(_fill(tdef.note, subject, trait))
	return Diagnostic(
		message=f"the trait bound `{subject}: {trait}` is not satisfied",
		code="E0277",
		kind=kind,
		phase="bounds",
		span=ob.span,
		label=f"the trait `{trait}` is not implemented for `{subject}`",
		secondary=secondary,
		notes=tuple(notes),
	)


def _conflicts(world: TraitWorld) -> List[Diagnostic]:
	diags: List[Diagnostic] = []
	for (key, target), facts in world.impls.items():
		if len(facts) < 2:
			continue
		first = facts[0]
		for extra in facts[1:]:
			secondary = (Label(first.span, "first implementation here"),) if first.span.known else ()
			diags.append(
				Diagnostic(
					message=f"conflicting implementations of trait `{key.path}` for type `{target}`",
					code="E0119",
					kind=DiagnosticKind.CONFLICTING_IMPL,
					phase="bounds",
					span=extra.span,
					label=f"conflicting implementation for `{target}`",
					secondary=secondary,
				)
			)
	return diags


def check_bounds(workspace: Workspace, registry: CapabilityRegistry, resolution: Resolution) -> PassResult[List[BoundObligation]]:
	world = registry.world
	env = build_env(registry)
	cache: Dict[CacheKey, ProofResult] = {}
	obligations = collect_obligations(workspace, registry, resolution)
	diags: List[Diagnostic] = []
	for ob in obligations:
		res = prove_is(world, env, ob.subject, ob.trait, _cache=cache)
		if res.status is ProofStatus.REFUTED:
			diags.append(obligation_diagnostic(world, ob, res))
		elif res.status is not ProofStatus.PROVED:
			logger.debug("obligation %s: %s skipped (%s)", ob.subject.display(), ob.trait.path, res.status.name)
	diags.extend(_conflicts(world))
	logger.debug("bounds: %d obligation(s), %d diagnostic(s)", len(obligations), len(diags))
	return PassResult(obligations, diags)


__all__ = [
	"BoundObligation",
	"build_env",
	"collect_obligations",
	"obligation_diagnostic",
	"check_bounds",
]

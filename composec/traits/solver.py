# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, List, Optional, Set, Tuple

from .world import ImplFact, ProjectionKey, Subject, TraitKey, TraitWorld, TypeKey


class ProofStatus(Enum):
	PROVED = auto()
	REFUTED = auto()
	UNKNOWN = auto()
	AMBIGUOUS = auto()


@dataclass
class ProofResult:
	status: ProofStatus
	reasons: List[str] = field(default_factory=list)
	# Constituents of a composite interface that could not be proven.
	missing: List[TraitKey] = field(default_factory=list)
	used_impls: List[ImplFact] = field(default_factory=list)


@dataclass
class Env:
	# Declared bounds of associated types, as seen from inside the component.
	assumed: Dict[ProjectionKey, List[TraitKey]] = field(default_factory=dict)


CacheKey = Tuple[Subject, TraitKey]


def prove_is(
	world: TraitWorld,
	env: Env,
	subject: Subject,
	trait_key: TraitKey,
	*,
	_cache: Optional[Dict[CacheKey, ProofResult]] = None,
	_in_progress: Optional[Set[CacheKey]] = None,
) -> ProofResult:
	"""
	Decide whether `subject` implements `trait_key`.

	Supertraits are not part of the proof: they are obligations of whoever
	writes the implementation and are checked separately.
	"""
	cache = _cache if _cache is not None else {}
	in_progress = _in_progress if _in_progress is not None else set()
	cache_key: CacheKey = (subject, trait_key)
	if cache_key in cache:
		return cache[cache_key]
	tdef = world.traits.get(trait_key)
	if tdef is None:
		res = ProofResult(status=ProofStatus.UNKNOWN, reasons=["unknown trait"])
		cache[cache_key] = res
		return res
	if cache_key in in_progress:
		res = ProofResult(status=ProofStatus.UNKNOWN, reasons=["cycle in trait requirements"])
		cache[cache_key] = res
		return res
	in_progress.add(cache_key)
	try:
		if tdef.alias:
			res = _prove_alias(world, env, subject, world.resolve_all(tdef.alias), cache, in_progress)
		elif isinstance(subject, ProjectionKey):
			res = _prove_projection(world, env, subject, trait_key)
		else:
			res = _prove_type(world, env, subject, trait_key, cache, in_progress)
		cache[cache_key] = res
		return res
	finally:
		in_progress.remove(cache_key)


def _prove_alias(
	world: TraitWorld,
	env: Env,
	subject: Subject,
	parts: List[TraitKey],
	cache: Dict[CacheKey, ProofResult],
	in_progress: Set[CacheKey],
) -> ProofResult:
	missing: List[TraitKey] = []
	reasons: List[str] = []
	unknown = False
	ambiguous = False
	for part in parts:
		res = prove_is(world, env, subject, part, _cache=cache, _in_progress=in_progress)
		if res.status is ProofStatus.REFUTED:
			missing.append(part)
		elif res.status is ProofStatus.UNKNOWN:
			unknown = True
		elif res.status is ProofStatus.AMBIGUOUS:
			ambiguous = True
		reasons.extend(res.reasons)
	if missing:
		return ProofResult(status=ProofStatus.REFUTED, reasons=reasons, missing=missing)
	if unknown:
		return ProofResult(status=ProofStatus.UNKNOWN, reasons=reasons)
	if ambiguous:
		return ProofResult(status=ProofStatus.AMBIGUOUS, reasons=reasons)
	return ProofResult(status=ProofStatus.PROVED)


def _prove_projection(world: TraitWorld, env: Env, subject: ProjectionKey, trait_key: TraitKey) -> ProofResult:
	declared = env.assumed.get(subject)
	if declared is None:
		return ProofResult(status=ProofStatus.UNKNOWN, reasons=["unknown associated type"])
	if trait_key in world.elaborate(declared):
		return ProofResult(status=ProofStatus.PROVED, reasons=["declared bound"])
	return ProofResult(status=ProofStatus.REFUTED, reasons=["not among the declared bounds"])


def _prove_type(
	world: TraitWorld,
	env: Env,
	subject: TypeKey,
	trait_key: TraitKey,
	cache: Dict[CacheKey, ProofResult],
	in_progress: Set[CacheKey],
) -> ProofResult:
	tdef = world.types.get(subject.name)
	if tdef is None:
		return ProofResult(status=ProofStatus.UNKNOWN, reasons=["unknown subject type"])
	facts = world.impls.get((trait_key, subject.name), [])
	if not facts:
		return ProofResult(status=ProofStatus.REFUTED, reasons=["no applicable impls"])
	if len(facts) > 1:
		return ProofResult(status=ProofStatus.AMBIGUOUS, reasons=["multiple applicable impls"], used_impls=list(facts))
	fact = facts[0]
	reasons: List[str] = []
	for param, arg in zip(tdef.params, subject.args):
		if param not in fact.through:
			continue
		req = prove_is(world, env, arg, trait_key, _cache=cache, _in_progress=in_progress)
		if req.status is ProofStatus.PROVED:
			continue
		reasons.append(
			f"required because of the requirements on the impl of `{trait_key.path}` for `{subject.display()}`"
		)
		reasons.extend(req.reasons)
		return ProofResult(status=req.status, reasons=reasons)
	return ProofResult(status=ProofStatus.PROVED, used_impls=[fact])


__all__ = ["Env", "ProofResult", "ProofStatus", "prove_is", "CacheKey"]

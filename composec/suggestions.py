# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Ranking of "did you mean" candidates.

Candidates are item paths that could stand in for an unresolved reference.
Ranking is deterministic: same registry, same query, same order.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Iterable, List, Sequence


class Bucket(IntEnum):
	# Lower sorts first.
	LOCAL = 0
	WELL_KNOWN = 1
	REEXPORT = 2


@dataclass(frozen=True)
class Candidate:
	path: str
	item: str
	# Component (or well-known module) the path goes through.
	owner: str
	bucket: Bucket


def name_rank(owner: str, wanted: str) -> int:
	"""0 for an exact module-name match, 1 for an affixed one (`frame_system` for `system`), else 2."""
	last = owner.rsplit("::", 1)[-1].lower()
	w = wanted.lower()
	if last == w:
		return 0
	if last.endswith("_" + w) or last.startswith(w + "_"):
		return 1
	return 2


def _best_rank(owner: str, near: Sequence[str]) -> int:
	if not near:
		return 0
	return min(name_rank(owner, w) for w in near)


def rank(
	candidates: Iterable[Candidate],
	*,
	near: Sequence[str] = (),
	exclude: Sequence[str] = (),
) -> List[Candidate]:
	best: Dict[str, Candidate] = {}
	for cand in candidates:
		if cand.owner in exclude:
			continue
		prev = best.get(cand.path)
		if prev is None or cand.bucket < prev.bucket:
			best[cand.path] = cand
	return sorted(best.values(), key=lambda c: (c.bucket, _best_rank(c.owner, near), c.path))


def similar(candidates: Iterable[Candidate], *, near: Sequence[str]) -> List[Candidate]:
	"""Ranked candidates whose owner name resembles one of `near`."""
	return [c for c in rank(candidates, near=near) if _best_rank(c.owner, near) < 2]


__all__ = ["Bucket", "Candidate", "name_rank", "rank", "similar"]

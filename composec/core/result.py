# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, List, Optional, TypeVar

from .diagnostics import Diagnostic, has_errors

T = TypeVar("T")


@dataclass
class PassResult(Generic[T]):
	"""
	Output of one pass: a (possibly partial) value plus the diagnostics found
	while producing it.

	Passes keep going after an error so a single run reports everything; the
	caller decides whether the accumulated diagnostics block later passes.
	"""

	value: Optional[T]
	diagnostics: List[Diagnostic] = field(default_factory=list)

	@property
	def ok(self) -> bool:
		return not has_errors(self.diagnostics)


__all__ = ["PassResult"]

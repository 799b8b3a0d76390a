# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Common diagnostic structure for the composition passes.

A Diagnostic is a pure value: once a pass produces one it is never mutated.
Passes accumulate them in discovery order and the driver concatenates the
per-pass sequences (parser, then resolution, then bounds).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from .span import Span


class DiagnosticKind(Enum):
	PARSE_ERROR = "ParseError"
	UNRESOLVED_COMPONENT = "UnresolvedComponent"
	UNRESOLVED_TYPE = "UnresolvedType"
	CAPABILITY_NOT_DECLARED = "CapabilityNotDeclared"
	BOUND_NOT_SATISFIED = "BoundNotSatisfied"
	MISSING_SUPERTRAIT_IMPL = "MissingSupertraitImpl"
	CONFLICTING_IMPL = "ConflictingImpl"


@dataclass(frozen=True)
class Label:
	"""A secondary span with its own short message."""

	span: Span
	message: str = ""


@dataclass(frozen=True)
class Suggestion:
	"""
	A proposed source edit.

	An empty span range (column == end_column) is an insertion, an empty
	replacement is a removal, anything else replaces the spanned text.
	"""

	span: Span
	replacement: str

	@property
	def is_insertion(self) -> bool:
		return self.span.line == self.span.end_line and self.span.column == self.span.end_column

	@property
	def is_removal(self) -> bool:
		return self.replacement == "" and not self.is_insertion


@dataclass(frozen=True)
class Help:
	"""
	A `help:` entry.

	`imports` lists item paths the user may want to import; `suggestions`
	carry concrete edits rendered as a diff. A help with neither is rendered
	as a one-line `= help:` footer.
	"""

	message: str
	suggestions: Tuple[Suggestion, ...] = ()
	imports: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Diagnostic:
	"""Represents a composition diagnostic (error/warning)."""

	message: str
	code: Optional[str] = None
	kind: DiagnosticKind = DiagnosticKind.PARSE_ERROR
	# Pass that discovered the diagnostic: parser | resolve | bounds.
	phase: Optional[str] = None
	severity: str = "error"
	span: Span = field(default_factory=Span)
	label: str = ""
	secondary: Tuple[Label, ...] = ()
	notes: Tuple[str, ...] = ()
	helps: Tuple[Help, ...] = ()

	def __post_init__(self) -> None:
		# Missing spans become the sentinel Span() so renderers can rely on a
		# structured object instead of None.
		if self.span is None:  # type: ignore[unreachable]
			object.__setattr__(self, "span", Span())


def has_errors(diagnostics: "Tuple[Diagnostic, ...] | list[Diagnostic]") -> bool:
	return any(d.severity == "error" for d in diagnostics)


__all__ = ["Diagnostic", "DiagnosticKind", "Help", "Label", "Suggestion", "has_errors"]

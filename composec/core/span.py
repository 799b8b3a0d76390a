# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Source span representation used by diagnostics.

Lines and columns are 1-based; `end_column` is exclusive, which is what lark
reports through `propagate_positions`. A Span with no line denotes an unknown
location (e.g. a diagnostic about a missing declaration).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Tuple


@dataclass(frozen=True)
class Span:
	"""Represents a source span (file/line/column range)."""

	file: Optional[str] = None
	line: Optional[int] = None
	column: Optional[int] = None
	end_line: Optional[int] = None
	end_column: Optional[int] = None

	@classmethod
	def from_loc(cls, loc: Any, *, file: Optional[str] = None) -> "Span":
		"""
		Construct a Span from a parser location object.

		If `loc` is already a Span it is returned unchanged (the file is filled
		in when missing); otherwise the common location attributes are copied.
		"""
		if loc is None:
			return cls(file=file)
		if isinstance(loc, cls):
			if loc.file is None and file is not None:
				return cls(file, loc.line, loc.column, loc.end_line, loc.end_column)
			return loc
		return cls(
			file=file or getattr(loc, "file", None),
			line=getattr(loc, "line", None),
			column=getattr(loc, "column", None),
			end_line=getattr(loc, "end_line", None),
			end_column=getattr(loc, "end_column", None),
		)

	@property
	def known(self) -> bool:
		return self.line is not None

	@property
	def last_line(self) -> Optional[int]:
		return self.end_line if self.end_line is not None else self.line

	def is_multiline(self) -> bool:
		return self.known and self.last_line is not None and self.last_line > self.line  # type: ignore[operator]

	def sort_key(self) -> Tuple[str, int, int]:
		return (self.file or "", self.line or 0, self.column or 0)


__all__ = ["Span"]

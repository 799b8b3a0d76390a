# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ComposeError(Exception):
	"""
	A structured, serializable error for composec tooling failures.

	User mistakes in composition sources are reported as diagnostics; this is
	reserved for failures outside the sources themselves (unreadable files,
	malformed config).
	"""

	reason_code: str
	message: str
	path: str | None = None
	key: str | None = None

	def __str__(self) -> str:
		return self.format_human()

	def to_dict(self) -> dict[str, Any]:
		return {
			"reason_code": self.reason_code,
			"message": self.message,
			"path": self.path,
			"key": self.key,
		}

	def format_human(self) -> str:
		parts: list[str] = [f"[{self.reason_code}] {self.message}"]
		if self.path:
			parts.append(f"path={self.path}")
		if self.key:
			parts.append(f"key={self.key}")
		return " ".join(parts)


__all__ = ["ComposeError"]

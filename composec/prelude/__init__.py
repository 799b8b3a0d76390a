# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from pathlib import Path

from composec.ir import SourceFile

PRELUDE_PATH = Path(__file__).with_name("prelude.compose")
PRELUDE_NAME = "<prelude>"


def prelude_source() -> SourceFile:
	"""The bundled prelude as a source file (interfaces + primitive types)."""
	return SourceFile(path=PRELUDE_NAME, text=PRELUDE_PATH.read_text(encoding="utf-8"))


__all__ = ["PRELUDE_NAME", "PRELUDE_PATH", "prelude_source"]

# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Shared core types (spans, diagnostics, capability kinds, config)."""

from .span import Span
from .diagnostics import Diagnostic, DiagnosticKind, Help, Label, Suggestion, has_errors
from .capabilities import CapabilityKind, kind_from_token, kind_info
from .config import ComposeConfig, load_config
from .errors import ComposeError
from .result import PassResult

__all__ = [
	"Span",
	"Diagnostic",
	"DiagnosticKind",
	"Help",
	"Label",
	"Suggestion",
	"has_errors",
	"CapabilityKind",
	"kind_from_token",
	"kind_info",
	"ComposeConfig",
	"load_config",
	"ComposeError",
	"PassResult",
]

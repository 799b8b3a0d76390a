# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Data-only intermediate representation produced by the parser adapter.

The analysis passes (registry, resolver, bound checker, code generator) only
ever look at these values and the parser AST they reference; none of them
touch lark trees or source text.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from composec.core.capabilities import CapabilityKind
from composec.core.span import Span

if TYPE_CHECKING:
	from composec.parser import ast as parser_ast


@dataclass(frozen=True)
class SourceFile:
	path: str
	text: str


@dataclass(frozen=True)
class CapabilityReference:
	"""One capability token requested from a component by a composition entry."""

	entry: str
	component_path: str
	token: str
	kind: CapabilityKind
	generics: Tuple[str, ...]
	span: Span

	@property
	def generic(self) -> bool:
		return bool(self.generics)


@dataclass
class CompositionEntry:
	name: str
	path: str
	segments: Tuple[str, ...]
	index: int
	refs: List[CapabilityReference]
	span: Span
	name_span: Span
	path_span: Span

	def requests(self, kind: CapabilityKind) -> bool:
		return any(ref.kind is kind for ref in self.refs)

	def ref_for(self, kind: CapabilityKind) -> Optional[CapabilityReference]:
		return next((ref for ref in self.refs if ref.kind is kind), None)


@dataclass
class CompositionIR:
	macro: str
	runtime: str
	where: List[Tuple[str, str]]
	entries: List[CompositionEntry]
	span: Span
	macro_span: Span
	runtime_span: Span

	def entry(self, name: str) -> Optional[CompositionEntry]:
		return next((e for e in self.entries if e.name == name), None)


@dataclass
class ParsedUnit:
	"""One successfully parsed source file."""

	file: str
	program: parser_ast.Program


@dataclass
class Workspace:
	units: List[ParsedUnit] = field(default_factory=list)
	composition: Optional[CompositionIR] = None
	# Unit file holding the composition (for spans of its AST nodes).
	composition_file: Optional[str] = None
	sources: Dict[str, str] = field(default_factory=dict)


__all__ = [
	"SourceFile",
	"CapabilityReference",
	"CompositionEntry",
	"CompositionIR",
	"ParsedUnit",
	"Workspace",
]

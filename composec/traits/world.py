# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Interface world: every interface the bound checker knows about, the types it
can substitute, and which types implement which interfaces.

Built as a pure fold over the parsed units. Names that do not resolve are
left out here; the reference resolver reports them so each failure is
reported once.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from composec.core.span import Span
from composec.ir import ParsedUnit
from composec.parser import ast as parser_ast


@dataclass(frozen=True)
class TraitKey:
	path: str

	@property
	def name(self) -> str:
		return self.path.rsplit("::", 1)[-1]


@dataclass(frozen=True)
class TypeKey:
	name: str
	# Arguments may be projections (`Vec<T::Balance>`).
	args: Tuple["Subject", ...] = ()

	def display(self) -> str:
		if not self.args:
			return self.name
		return f"{self.name}<{', '.join(a.display() for a in self.args)}>"


@dataclass(frozen=True)
class ProjectionKey:
	"""An associated type seen from inside its component: `<T as Trait>::Name`."""

	trait: TraitKey
	name: str

	def display(self) -> str:
		return f"<T as {self.trait.path}>::{self.name}"


Subject = Union[TypeKey, ProjectionKey]


@dataclass
class AssocTypeDef:
	name: str
	bounds: List[parser_ast.PathExpr]
	span: Span
	name_span: Span
	# Empty span right after the name or the last bound (restriction insert point).
	bounds_end: Span


@dataclass
class TraitDef:
	key: TraitKey
	supertraits: List[parser_ast.PathExpr]
	span: Span
	# Non-empty for `interface X = A + B;`.
	alias: List[parser_ast.PathExpr] = field(default_factory=list)
	# Owning component for component Config traits.
	component: Optional[str] = None
	assoc: Dict[str, AssocTypeDef] = field(default_factory=dict)
	message: Optional[str] = None
	label: Optional[str] = None
	note: Optional[str] = None
	operator: Optional[str] = None


@dataclass
class TypeDef:
	name: str
	params: Tuple[str, ...]
	span: Span
	# Opaque types (where-clause names) carry no implementation facts.
	opaque: bool = False


@dataclass
class ImplFact:
	trait: TraitKey
	target: str
	span: Span
	# Generic parameters whose arguments must implement the trait as well
	# (derive semantics: `Vec<X>: Debug` iff `X: Debug`).
	through: Tuple[str, ...] = ()


@dataclass
class TraitWorld:
	traits: Dict[TraitKey, TraitDef] = field(default_factory=dict)
	by_name: Dict[str, List[TraitKey]] = field(default_factory=dict)
	types: Dict[str, TypeDef] = field(default_factory=dict)
	# Several facts for one pair are conflicting implementations.
	impls: Dict[Tuple[TraitKey, str], List[ImplFact]] = field(default_factory=dict)

	def resolve_trait(self, path: str) -> Optional[TraitKey]:
		key = TraitKey(path)
		if key in self.traits:
			return key
		if "::" not in path:
			candidates = self.by_name.get(path) or []
			# Component Config traits must always be named with their path.
			plain = [c for c in candidates if self.traits[c].component is None]
			if plain:
				return plain[0]
		return None

	def resolve_all(self, paths: Iterable[parser_ast.PathExpr]) -> List[TraitKey]:
		out: List[TraitKey] = []
		for p in paths:
			key = self.resolve_trait(p.text)
			if key is not None and key not in out:
				out.append(key)
		return out

	def supertraits_of(self, key: TraitKey) -> List[TraitKey]:
		tdef = self.traits.get(key)
		if tdef is None:
			return []
		return self.resolve_all(tdef.supertraits)

	def supertrait_closure(self, key: TraitKey) -> List[TraitKey]:
		"""Transitive supertraits of `key` in breadth-first declaration order."""
		out: List[TraitKey] = []
		queue = list(self.supertraits_of(key))
		while queue:
			cur = queue.pop(0)
			if cur in out or cur == key:
				continue
			out.append(cur)
			queue.extend(self.supertraits_of(cur))
		return out

	def elaborate(self, keys: Sequence[TraitKey]) -> List[TraitKey]:
		"""Bounds implied by `keys`: the keys, their supertraits and alias constituents."""
		out: List[TraitKey] = []
		queue = list(keys)
		while queue:
			cur = queue.pop(0)
			if cur in out:
				continue
			out.append(cur)
			tdef = self.traits.get(cur)
			if tdef is None:
				continue
			queue.extend(self.resolve_all(tdef.supertraits))
			queue.extend(self.resolve_all(tdef.alias))
		return out

	def find_assoc(self, key: TraitKey, name: str) -> Optional[Tuple[TraitDef, AssocTypeDef]]:
		"""Associated type `name` declared on `key` or inherited from one of its supertraits."""
		for cur in [key] + self.supertrait_closure(key):
			tdef = self.traits.get(cur)
			if tdef is not None and name in tdef.assoc:
				return tdef, tdef.assoc[name]
		return None

	def declaring_bound(self, key: TraitKey, target: TraitKey) -> Optional[Tuple[TraitKey, parser_ast.PathExpr]]:
		"""The (trait, bound path) through which `key` reaches supertrait `target`."""
		seen: List[TraitKey] = []
		queue = [key]
		while queue:
			cur = queue.pop(0)
			if cur in seen:
				continue
			seen.append(cur)
			tdef = self.traits.get(cur)
			if tdef is None:
				continue
			for path in tdef.supertraits:
				resolved = self.resolve_trait(path.text)
				if resolved == target:
					return cur, path
				if resolved is not None:
					queue.append(resolved)
		return None


def _span(loc: object, file: str) -> Span:
	return Span.from_loc(loc, file=file)


def _interface_def(iface: parser_ast.InterfaceDef, file: str) -> TraitDef:
	tdef = TraitDef(
		key=TraitKey(iface.path.text),
		supertraits=list(iface.supertraits),
		alias=list(iface.alias),
		span=_span(iface.loc, file),
	)
	for attr in iface.attrs:
		if attr.name == "on_unimplemented":
			tdef.message = attr.kwargs.get("message")
			tdef.label = attr.kwargs.get("label")
		elif attr.name == "note" and attr.args:
			tdef.note = attr.args[0]
		elif attr.name == "operator" and attr.args:
			tdef.operator = attr.args[0]
	return tdef


def _config_trait_def(comp: parser_ast.ComponentDef, cfg: parser_ast.ConfigTrait, file: str) -> TraitDef:
	tdef = TraitDef(
		key=TraitKey(f"{comp.path.text}::{cfg.name}"),
		supertraits=list(cfg.supertraits),
		span=_span(cfg.loc, file),
		component=comp.path.text,
	)
	for decl in cfg.assoc:
		if decl.name in tdef.assoc:
			continue
		tdef.assoc[decl.name] = AssocTypeDef(
			name=decl.name,
			bounds=list(decl.bounds),
			span=_span(decl.loc, file),
			name_span=_span(decl.name_loc, file),
			bounds_end=_span(decl.bounds_end, file),
		)
	return tdef


def _add_trait(world: TraitWorld, tdef: TraitDef) -> None:
	if tdef.key in world.traits:
		return
	world.traits[tdef.key] = tdef
	world.by_name.setdefault(tdef.key.name, []).append(tdef.key)


def _add_impl(world: TraitWorld, fact: ImplFact) -> None:
	world.impls.setdefault((fact.trait, fact.target), []).append(fact)


def build_trait_world(
	units: Sequence[ParsedUnit],
	*,
	runtime: Optional[str] = None,
	runtime_span: Optional[Span] = None,
	aggregate_types: Sequence[str] = (),
	aggregate_derives: Sequence[str] = (),
	opaque_types: Sequence[str] = (),
	well_known_traits: Sequence[str] = (),
) -> TraitWorld:
	world = TraitWorld()

	# Traits of well-known components that are not declared in the sources.
	# They are opaque: no supertraits, no associated types.
	for path in well_known_traits:
		owner = path.rsplit("::", 1)[0]
		_add_trait(world, TraitDef(key=TraitKey(path), supertraits=[], span=Span(), component=owner))

	# Collect interfaces and component Config traits first so derives and impls
	# can refer to traits declared in any file.
	for unit in units:
		for iface in unit.program.interfaces:
			_add_trait(world, _interface_def(iface, unit.file))
		for comp in unit.program.components:
			for cfg in comp.configs:
				_add_trait(world, _config_trait_def(comp, cfg, unit.file))

	for unit in units:
		for st in unit.program.structs:
			if st.name in world.types:
				continue
			span = _span(st.loc, unit.file)
			world.types[st.name] = TypeDef(name=st.name, params=tuple(st.params), span=span)
			for attr in st.attrs:
				if attr.name != "derive":
					continue
				for key in world.resolve_all(attr.paths):
					_add_impl(world, ImplFact(trait=key, target=st.name, span=span, through=tuple(st.params)))

	generated_span = runtime_span or Span()
	for name in ([runtime] if runtime else []) + list(aggregate_types):
		if name in world.types:
			continue
		world.types[name] = TypeDef(name=name, params=(), span=generated_span)
		for derive in aggregate_derives:
			key = world.resolve_trait(derive)
			if key is not None:
				_add_impl(world, ImplFact(trait=key, target=name, span=generated_span))
	for name in opaque_types:
		if name not in world.types:
			world.types[name] = TypeDef(name=name, params=(), span=generated_span, opaque=True)

	for unit in units:
		for impl in unit.program.impls:
			key = world.resolve_trait(impl.trait.text)
			if key is None:
				continue
			_add_impl(world, ImplFact(trait=key, target=impl.target, span=_span(impl.loc, unit.file)))
	return world


__all__ = [
	"TraitKey",
	"TypeKey",
	"ProjectionKey",
	"Subject",
	"AssocTypeDef",
	"TraitDef",
	"TypeDef",
	"ImplFact",
	"TraitWorld",
	"build_trait_world",
]

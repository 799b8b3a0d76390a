# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Capability registry.

Built once from the parsed workspace and read-only afterwards: which
component declares which capability, what type it exports for it, and the
static index of items that suggestions are drawn from.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from composec.core.capabilities import CapabilityKind, kind_from_token, kind_info
from composec.core.config import ComposeConfig
from composec.core.span import Span
from composec.ir import ParsedUnit, Workspace
from composec.parser import ast as parser_ast
from composec.suggestions import Bucket, Candidate, rank, similar
from composec.traits.world import TraitKey, TraitWorld, TypeKey, build_trait_world

logger = logging.getLogger(__name__)

# Types produced by the code generator, known before it runs.
AGGREGATE_TYPES: Tuple[str, ...] = ("Call", "Event", "Origin", "OriginCaller", "GenesisConfig")


@dataclass(frozen=True)
class CapabilityDecl:
	kind: CapabilityKind
	generics: Tuple[str, ...]
	span: Span


@dataclass
class Component:
	path: str
	capabilities: Dict[CapabilityKind, CapabilityDecl]
	span: Span
	file: str
	config: Optional[TraitKey] = None
	storage_prefix: Optional[str] = None
	storage_items: Tuple[str, ...] = ()
	entry_points: List[parser_ast.EntryPoint] = field(default_factory=list)
	# Items declared by the component itself (implied by its parts).
	exports: Tuple[str, ...] = ()

	@property
	def name(self) -> str:
		return self.path.rsplit("::", 1)[-1]


def _exports_for(capabilities: Iterable[CapabilityKind]) -> Tuple[str, ...]:
	items: List[str] = []
	for kind in capabilities:
		type_name = kind_info(kind).type_name
		if kind is CapabilityKind.CONFIG:
			items.append("Config")
		elif type_name is not None:
			items.append(type_name)
		if kind is CapabilityKind.ORIGIN:
			items.append("RawOrigin")
	return tuple(items)


def _component(comp: parser_ast.ComponentDef, file: str) -> Component:
	caps: Dict[CapabilityKind, CapabilityDecl] = {}
	for part in comp.parts:
		kind = kind_from_token(part.name)
		caps.setdefault(kind, CapabilityDecl(kind=kind, generics=tuple(part.generics), span=Span.from_loc(part.loc, file=file)))
	config_key: Optional[TraitKey] = None
	if comp.configs:
		cfg = comp.configs[0]
		config_key = TraitKey(f"{comp.path.text}::{cfg.name}")
		caps[CapabilityKind.CONFIG] = CapabilityDecl(kind=CapabilityKind.CONFIG, generics=(), span=Span.from_loc(cfg.loc, file=file))
	storage = comp.storages[0] if comp.storages else None
	return Component(
		path=comp.path.text,
		capabilities=caps,
		span=Span.from_loc(comp.path.loc, file=file),
		file=file,
		config=config_key,
		storage_prefix=storage.prefix if storage else None,
		storage_items=tuple(storage.items) if storage else (),
		entry_points=list(comp.calls),
		exports=_exports_for(caps),
	)


class CapabilityRegistry:
	def __init__(
		self,
		components: Dict[str, Component],
		world: TraitWorld,
		candidates: Dict[str, List[Candidate]],
		config: ComposeConfig,
	) -> None:
		self._components = components
		self._candidates = candidates
		self.world = world
		self.config = config

	@property
	def components(self) -> List[Component]:
		return list(self._components.values())

	def get(self, path: str) -> Optional[Component]:
		return self._components.get(path)

	def _lookup(self, component: Union[Component, str]) -> Optional[Component]:
		if isinstance(component, Component):
			return component
		return self._components.get(component)

	def has(self, component: Union[Component, str], kind: CapabilityKind) -> bool:
		comp = self._lookup(component)
		return comp is not None and kind in comp.capabilities

	def type_of(self, component: Union[Component, str], kind: CapabilityKind, *, runtime: str = "Runtime") -> Optional[TypeKey]:
		comp = self._lookup(component)
		if comp is None:
			return None
		decl = comp.capabilities.get(kind)
		info = kind_info(kind)
		if decl is None or info.type_name is None:
			return None
		name = f"{comp.path}::{info.type_name}"
		if info.always_generic or decl.generics:
			return TypeKey(name, (TypeKey(runtime),))
		return TypeKey(name)

	def knows_module(self, segment: str) -> bool:
		"""Whether `segment` is the root of a component, interface or the well-known system path."""
		roots = {p.split("::", 1)[0] for p in self._components}
		roots.update(key.path.split("::", 1)[0] for key in self.world.traits if "::" in key.path)
		roots.add(self.config.system_path.split("::", 1)[0])
		return segment in roots

	def module_candidates(self, *, near: Sequence[str]) -> List[Candidate]:
		cands = [Candidate(path=p, item=p, owner=p, bucket=Bucket.LOCAL) for p in self._components]
		if self.config.system_path not in self._components:
			sp = self.config.system_path
			cands.append(Candidate(path=sp, item=sp, owner=sp, bucket=Bucket.WELL_KNOWN))
		return similar(cands, near=near)

	def suggest(self, item: str, *, near: Sequence[str] = (), exclude: Sequence[str] = ()) -> List[Candidate]:
		return rank(self._candidates.get(item, []), near=near, exclude=exclude)


def _candidate_index(components: Dict[str, Component], units: Iterable[ParsedUnit], config: ComposeConfig) -> Dict[str, List[Candidate]]:
	index: Dict[str, List[Candidate]] = {}

	def add(cand: Candidate) -> None:
		index.setdefault(cand.item, []).append(cand)

	for comp in components.values():
		for item in comp.exports:
			add(Candidate(path=f"{comp.path}::{item}", item=item, owner=comp.path, bucket=Bucket.LOCAL))
	for unit in units:
		for comp_def in unit.program.components:
			if comp_def.path.text not in components:
				continue
			for reexport in comp_def.reexports:
				item = reexport.path.last
				add(Candidate(path=f"{comp_def.path.text}::{item}", item=item, owner=comp_def.path.text, bucket=Bucket.REEXPORT))
	if config.system_path not in components:
		for item in config.well_known_items:
			add(Candidate(path=f"{config.system_path}::{item}", item=item, owner=config.system_path, bucket=Bucket.WELL_KNOWN))
	return index


def _well_known_traits(components: Dict[str, Component], config: ComposeConfig) -> List[str]:
	if config.system_path in components or "Config" not in config.well_known_items:
		return []
	return [f"{config.system_path}::Config"]


def build_registry(workspace: Workspace, config: Optional[ComposeConfig] = None) -> CapabilityRegistry:
	config = config or ComposeConfig()
	components: Dict[str, Component] = {}
	for unit in workspace.units:
		for comp in unit.program.components:
			if comp.path.text in components:
				continue
			components[comp.path.text] = _component(comp, unit.file)
	composition = workspace.composition
	world = build_trait_world(
		workspace.units,
		runtime=composition.runtime if composition else None,
		runtime_span=composition.runtime_span if composition else None,
		aggregate_types=AGGREGATE_TYPES if composition else (),
		aggregate_derives=config.aggregate_derives,
		opaque_types=[name for name, _ in composition.where] if composition else (),
		well_known_traits=_well_known_traits(components, config),
	)
	candidates = _candidate_index(components, workspace.units, config)
	logger.debug(
		"registry: %d component(s), %d interface(s), %d type(s)",
		len(components),
		len(world.traits),
		len(world.types),
	)
	return CapabilityRegistry(components, world, candidates, config)


__all__ = [
	"AGGREGATE_TYPES",
	"CapabilityDecl",
	"Component",
	"CapabilityRegistry",
	"build_registry",
]

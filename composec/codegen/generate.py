# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Aggregate type generation.

Only runs on a composition that produced no diagnostics. Every aggregate is
a tagged union over the entries binding the corresponding capability, in
composition order; the tag of a variant is the entry index.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from composec.core.capabilities import CapabilityKind
from composec.core.config import ComposeConfig
from composec.ir import CompositionIR
from composec.registry import CapabilityRegistry
from composec.resolver import Resolution


class GenerationError(RuntimeError):
	"""Generation was requested for a composition that did not resolve."""


@dataclass(frozen=True)
class Variant:
	name: str
	index: int
	type_ref: str


@dataclass(frozen=True)
class AggregateType:
	kind: CapabilityKind
	name: str
	variants: Tuple[Variant, ...]


@dataclass(frozen=True)
class PalletAlias:
	name: str
	target: str


@dataclass(frozen=True)
class StorageMetadata:
	entry: str
	index: int
	prefix: str
	items: Tuple[str, ...]


@dataclass(frozen=True)
class GenesisField:
	name: str
	type_ref: str


@dataclass(frozen=True)
class GeneratedRuntime:
	runtime: str
	where: Tuple[Tuple[str, str], ...]
	aliases: Tuple[PalletAlias, ...]
	call: AggregateType
	event: AggregateType
	origin: AggregateType
	storage: Tuple[StorageMetadata, ...]
	genesis: Tuple[GenesisField, ...]
	derives: Tuple[str, ...]


_CAMEL = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def snake_case(name: str) -> str:
	return _CAMEL.sub("_", name).lower()


def _variants(comp: CompositionIR, resolution: Resolution, kind: CapabilityKind) -> Tuple[Variant, ...]:
	out: List[Variant] = []
	for entry in comp.entries:
		binding = resolution.binding(entry.name, kind)
		if binding is None or binding.type_ref is None:
			continue
		out.append(Variant(name=entry.name, index=entry.index, type_ref=binding.type_ref.display()))
	return tuple(out)


def _origin_variants(comp: CompositionIR, resolution: Resolution, registry: CapabilityRegistry, config: ComposeConfig) -> Tuple[Variant, ...]:
	variants = list(_variants(comp, resolution, CapabilityKind.ORIGIN))
	system = comp.entry(config.system_entry)
	component = resolution.components.get(config.system_entry)
	# The system origin is part of every runtime origin, requested or not.
	if system is not None and component is not None and not any(v.name == system.name for v in variants):
		type_ref = registry.type_of(component, CapabilityKind.ORIGIN, runtime=comp.runtime)
		if type_ref is not None:
			variants.append(Variant(name=system.name, index=system.index, type_ref=type_ref.display()))
			variants.sort(key=lambda v: [e.name for e in comp.entries].index(v.name))
	return tuple(variants)


def generate(
	comp: CompositionIR,
	registry: CapabilityRegistry,
	resolution: Resolution,
	config: Optional[ComposeConfig] = None,
) -> GeneratedRuntime:
	config = config or registry.config
	if resolution.failures:
		raise GenerationError(f"cannot generate `{comp.runtime}`: {len(resolution.failures)} unresolved reference(s)")
	aliases = tuple(
		PalletAlias(name=v.name, target=v.type_ref) for v in _variants(comp, resolution, CapabilityKind.PALLET)
	)
	storage: List[StorageMetadata] = []
	for entry in comp.entries:
		if resolution.binding(entry.name, CapabilityKind.STORAGE) is None:
			continue
		component = resolution.components[entry.name]
		storage.append(
			StorageMetadata(
				entry=entry.name,
				index=entry.index,
				prefix=component.storage_prefix or entry.name,
				items=component.storage_items,
			)
		)
	genesis = tuple(
		GenesisField(name=snake_case(v.name), type_ref=v.type_ref)
		for v in _variants(comp, resolution, CapabilityKind.GENESIS_CONFIG)
	)
	return GeneratedRuntime(
		runtime=comp.runtime,
		where=tuple(comp.where),
		aliases=aliases,
		call=AggregateType(CapabilityKind.CALL, "Call", _variants(comp, resolution, CapabilityKind.CALL)),
		event=AggregateType(CapabilityKind.EVENT, "Event", _variants(comp, resolution, CapabilityKind.EVENT)),
		origin=AggregateType(CapabilityKind.ORIGIN, "OriginCaller", _origin_variants(comp, resolution, registry, config)),
		storage=tuple(storage),
		genesis=genesis,
		derives=tuple(config.aggregate_derives),
	)


__all__ = [
	"GenerationError",
	"Variant",
	"AggregateType",
	"PalletAlias",
	"StorageMetadata",
	"GenesisField",
	"GeneratedRuntime",
	"generate",
	"snake_case",
]

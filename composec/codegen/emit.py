# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Text and JSON forms of a GeneratedRuntime.

The text form is the glue a runtime crate would include: one alias per
Pallet entry, then the aggregates in their fixed order (Call, Event, Origin,
Storage metadata, GenesisConfig). Both forms are deterministic.
"""

from __future__ import annotations

from typing import Any, Dict, List, Sequence

from .generate import AggregateType, GeneratedRuntime, Variant


def _derive_line(derives: Sequence[str]) -> str:
	return f"#[derive({', '.join(derives)})]"


def _enum(agg: AggregateType, derives: Sequence[str]) -> List[str]:
	lines = [_derive_line(derives), f"pub enum {agg.name} {{"]
	for v in agg.variants:
		lines.append(f"\t#[codec(index = {v.index})]")
		lines.append(f"\t{v.name}({v.type_ref}),")
	lines.append("}")
	return lines


def _conversions(agg: AggregateType) -> List[str]:
	lines: List[str] = []
	for v in agg.variants:
		lines.append(f"impl From<{v.type_ref}> for {agg.name} {{")
		lines.append(f"\tfn from(x: {v.type_ref}) -> Self {{ {agg.name}::{v.name}(x) }}")
		lines.append("}")
	return lines


def render_runtime(gen: GeneratedRuntime) -> str:
	lines: List[str] = [
		f"// Generated by composec for `{gen.runtime}`. Do not edit.",
		"",
		_derive_line(gen.derives),
		f"pub struct {gen.runtime};",
	]
	if gen.where:
		lines.append("")
		for name, value in gen.where:
			lines.append(f"// where {name} = {value}")
	if gen.aliases:
		lines.append("")
		for alias in gen.aliases:
			lines.append(f"pub type {alias.name} = {alias.target};")
	for agg in (gen.call, gen.event, gen.origin):
		lines.append("")
		lines.extend(_enum(agg, gen.derives))
		if agg is not gen.call:
			lines.extend(_conversions(agg))

	lines.append("")
	lines.append("pub const STORAGE_METADATA: &[(&str, u8, &str, &[&str])] = &[")
	for meta in gen.storage:
		items = ", ".join(f'"{item}"' for item in meta.items)
		lines.append(f'\t("{meta.entry}", {meta.index}, "{meta.prefix}", &[{items}]),')
	lines.append("];")

	lines.append("")
	lines.append("#[derive(Default)]")
	lines.append("pub struct GenesisConfig {")
	for fld in gen.genesis:
		lines.append(f"\tpub {fld.name}: {fld.type_ref},")
	lines.append("}")
	return "\n".join(lines) + "\n"


def _variant_json(v: Variant) -> Dict[str, Any]:
	return {"name": v.name, "index": v.index, "type": v.type_ref}


def runtime_to_json(gen: GeneratedRuntime) -> Dict[str, Any]:
	return {
		"runtime": gen.runtime,
		"where": [{"name": n, "value": v} for n, v in gen.where],
		"aliases": [{"name": a.name, "target": a.target} for a in gen.aliases],
		"call": [_variant_json(v) for v in gen.call.variants],
		"event": [_variant_json(v) for v in gen.event.variants],
		"origin": [_variant_json(v) for v in gen.origin.variants],
		"storage": [
			{"entry": m.entry, "index": m.index, "prefix": m.prefix, "items": list(m.items)}
			for m in gen.storage
		],
		"genesis": [{"field": f.name, "type": f.type_ref} for f in gen.genesis],
		"derives": list(gen.derives),
	}


__all__ = ["render_runtime", "runtime_to_json"]

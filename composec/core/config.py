# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Engine configuration.

Defaults describe the conventional runtime layout (a `System` entry backed by
`frame_system`). A JSON file may override any field; unknown keys are
rejected so typos do not silently fall back to defaults.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Tuple

from .errors import ComposeError


@dataclass(frozen=True)
class ComposeConfig:
	# Name of the composition entry every runtime must contain.
	system_entry: str = "System"
	# Well-known path of the component backing the system entry.
	system_path: str = "frame_system"
	# Name of the composition macro (`construct_runtime! { ... }`).
	macro_name: str = "construct_runtime"
	# Interfaces every dispatchable parameter type must implement.
	dispatch_bounds: Tuple[str, ...] = ("Debug", "Clone", "PartialEq")
	# Interfaces implemented by the generated aggregate types.
	aggregate_derives: Tuple[str, ...] = ("Debug", "Clone", "PartialEq", "Eq", "Encode", "Decode")
	# Items assumed to exist under `system_path` even when it is not declared.
	well_known_items: Tuple[str, ...] = ("Pallet", "Call", "Event", "Origin", "RawOrigin", "GenesisConfig", "Config")
	# Multi-line spans longer than this are elided in rendered output.
	context_lines: int = 3
	# Inject the bundled prelude (interfaces + primitive types).
	prelude: bool = True


_TUPLE_FIELDS = {"dispatch_bounds", "aggregate_derives", "well_known_items"}


def config_from_dict(data: Dict[str, Any], *, path: str | None = None) -> ComposeConfig:
	known = {f.name: f for f in fields(ComposeConfig)}
	values: Dict[str, Any] = {}
	for key, raw in data.items():
		if key not in known:
			raise ComposeError("config-invalid", f"unknown config key '{key}'", path=path, key=key)
		default = getattr(ComposeConfig, key)
		if key in _TUPLE_FIELDS:
			if not isinstance(raw, list) or not all(isinstance(v, str) for v in raw):
				raise ComposeError("config-invalid", f"'{key}' must be a list of strings", path=path, key=key)
			values[key] = tuple(raw)
		elif isinstance(default, bool):
			if not isinstance(raw, bool):
				raise ComposeError("config-invalid", f"'{key}' must be a boolean", path=path, key=key)
			values[key] = raw
		elif isinstance(default, int):
			if isinstance(raw, bool) or not isinstance(raw, int) or raw < 1:
				raise ComposeError("config-invalid", f"'{key}' must be a positive integer", path=path, key=key)
			values[key] = raw
		else:
			if not isinstance(raw, str) or not raw:
				raise ComposeError("config-invalid", f"'{key}' must be a non-empty string", path=path, key=key)
			values[key] = raw
	return replace(ComposeConfig(), **values)


def load_config(path: Path) -> ComposeConfig:
	try:
		data = json.loads(path.read_text(encoding="utf-8"))
	except FileNotFoundError:
		raise ComposeError("config-missing", "config file not found", path=str(path)) from None
	except json.JSONDecodeError as err:
		raise ComposeError("config-invalid", f"config is not valid JSON: {err.msg}", path=str(path)) from None
	if not isinstance(data, dict):
		raise ComposeError("config-invalid", "config must be a JSON object", path=str(path))
	return config_from_dict(data, path=str(path))


__all__ = ["ComposeConfig", "config_from_dict", "load_config"]

# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Aggregate runtime type generation."""

from .generate import (
	AggregateType,
	GeneratedRuntime,
	GenerationError,
	GenesisField,
	PalletAlias,
	StorageMetadata,
	Variant,
	generate,
	snake_case,
)
from .emit import render_runtime, runtime_to_json

__all__ = [
	"AggregateType",
	"GeneratedRuntime",
	"GenerationError",
	"GenesisField",
	"PalletAlias",
	"StorageMetadata",
	"Variant",
	"generate",
	"render_runtime",
	"runtime_to_json",
	"snake_case",
]

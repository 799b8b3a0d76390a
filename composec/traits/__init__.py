# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Interface world, solver and bound checking."""

from .world import (
	AssocTypeDef,
	ImplFact,
	ProjectionKey,
	Subject,
	TraitDef,
	TraitKey,
	TraitWorld,
	TypeDef,
	TypeKey,
	build_trait_world,
)
from .solver import Env, ProofResult, ProofStatus, prove_is

__all__ = [
	"AssocTypeDef",
	"ImplFact",
	"ProjectionKey",
	"Subject",
	"TraitDef",
	"TraitKey",
	"TraitWorld",
	"TypeDef",
	"TypeKey",
	"build_trait_world",
	"Env",
	"ProofResult",
	"ProofStatus",
	"prove_is",
]

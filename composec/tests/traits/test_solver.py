# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

from composec.test_helpers import analyze
from composec.traits import Env, ProjectionKey, ProofStatus, TraitKey, TypeKey, prove_is

DEBUG = TraitKey("std::fmt::Debug")
CLONE = TraitKey("Clone")
MEMBER = TraitKey("Member")

DECLS = """
struct Opaque;

#[derive(Copy)]
struct OnlyCopy;

struct Twice;
impl Clone for Twice {}
impl Clone for Twice {}
"""


@pytest.fixture(scope="module")
def world():
	return analyze(DECLS).registry.world


def _ty(name: str, *args: TypeKey) -> TypeKey:
	return TypeKey(name, tuple(args))


def test_derive_applies_through_type_parameters(world) -> None:
	res = prove_is(world, Env(), _ty("Vec", _ty("u8")), DEBUG)
	assert res.status is ProofStatus.PROVED
	assert len(res.used_impls) == 1


def test_type_without_impl_is_refuted(world) -> None:
	res = prove_is(world, Env(), _ty("Opaque"), DEBUG)
	assert res.status is ProofStatus.REFUTED
	assert res.reasons == ["no applicable impls"]


def test_refutation_through_a_parameter_explains_the_chain(world) -> None:
	res = prove_is(world, Env(), _ty("Vec", _ty("Opaque")), DEBUG)
	assert res.status is ProofStatus.REFUTED
	assert res.reasons[0] == "required because of the requirements on the impl of `std::fmt::Debug` for `Vec<Opaque>`"


def test_alias_lists_missing_constituents(world) -> None:
	res = prove_is(world, Env(), _ty("Opaque"), MEMBER)
	assert res.status is ProofStatus.REFUTED
	assert [k.path for k in res.missing] == ["std::fmt::Debug", "Clone", "std::cmp::PartialEq", "std::cmp::Eq"]
	assert prove_is(world, Env(), _ty("u32"), MEMBER).status is ProofStatus.PROVED


def test_supertraits_are_not_part_of_the_proof(world) -> None:
	assert prove_is(world, Env(), _ty("OnlyCopy"), TraitKey("Copy")).status is ProofStatus.PROVED
	assert prove_is(world, Env(), _ty("OnlyCopy"), CLONE).status is ProofStatus.REFUTED


def test_projection_uses_declared_bounds(world) -> None:
	proj = ProjectionKey(TraitKey("pallet::Config"), "Balance")
	env = Env(assumed={proj: [MEMBER]})
	# Member elaborates to its constituents and their supertraits.
	assert prove_is(world, env, proj, DEBUG).status is ProofStatus.PROVED
	assert prove_is(world, env, proj, TraitKey("std::cmp::PartialEq")).status is ProofStatus.PROVED
	refuted = prove_is(world, env, proj, TraitKey("std::cmp::PartialOrd"))
	assert refuted.status is ProofStatus.REFUTED
	assert prove_is(world, Env(), proj, DEBUG).status is ProofStatus.UNKNOWN


def test_duplicate_impls_are_ambiguous(world) -> None:
	res = prove_is(world, Env(), _ty("Twice"), CLONE)
	assert res.status is ProofStatus.AMBIGUOUS
	assert len(res.used_impls) == 2


def test_unknown_names_are_unknown(world) -> None:
	assert prove_is(world, Env(), _ty("u8"), TraitKey("Nope")).status is ProofStatus.UNKNOWN
	assert prove_is(world, Env(), _ty("Ghost"), DEBUG).status is ProofStatus.UNKNOWN


def test_cache_is_shared_between_proofs(world) -> None:
	cache = {}
	prove_is(world, Env(), _ty("Vec", _ty("u8")), DEBUG, _cache=cache)
	assert (_ty("u8"), DEBUG) in cache
	assert (_ty("Vec", _ty("u8")), DEBUG) in cache

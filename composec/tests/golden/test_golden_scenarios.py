# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Whole-pipeline runs over the fixture sources, compared byte for byte."""

from __future__ import annotations

from pathlib import Path

import pytest

from composec.core.diagnostics import DiagnosticKind
from composec.driver import compose
from composec.ir import SourceFile
from composec.render import render_diagnostics

HERE = Path(__file__).resolve().parent


def _run(name: str):
	text = (HERE / f"{name}.compose").read_text(encoding="utf-8")
	return compose([SourceFile(path=f"{name}.compose", text=text)])


@pytest.mark.parametrize("name", ["scenario_a", "scenario_b"])
def test_rendered_output_matches_fixture(name: str) -> None:
	result = _run(name)
	expected = (HERE / f"{name}.stderr").read_text(encoding="utf-8")
	assert render_diagnostics(result.diagnostics, result.sources, context_lines=3) == expected
	assert result.generated is None


def test_scenario_a_reports_every_independent_failure() -> None:
	result = _run("scenario_a")
	assert [d.code for d in result.diagnostics] == [None, "E0433", "E0433", "E0433", "E0412", "E0412", "E0277"]
	assert [d.kind for d in result.diagnostics] == [
		DiagnosticKind.CAPABILITY_NOT_DECLARED,
		DiagnosticKind.UNRESOLVED_COMPONENT,
		DiagnosticKind.UNRESOLVED_COMPONENT,
		DiagnosticKind.UNRESOLVED_COMPONENT,
		DiagnosticKind.UNRESOLVED_TYPE,
		DiagnosticKind.UNRESOLVED_TYPE,
		DiagnosticKind.MISSING_SUPERTRAIT_IMPL,
	]
	spans = [d.span for d in result.diagnostics if d.code == "E0433"]
	assert len(set(spans)) == 3


def test_scenario_b_reports_three_bounds_on_one_parameter() -> None:
	result = _run("scenario_b")
	assert [d.code for d in result.diagnostics] == ["E0277", "E0277", "E0369"]
	assert len({d.span for d in result.diagnostics}) == 1


@pytest.mark.parametrize("name", ["scenario_a", "scenario_b"])
def test_rendering_is_deterministic(name: str) -> None:
	first = _run(name)
	second = _run(name)
	assert first.diagnostics == second.diagnostics
	assert render_diagnostics(first.diagnostics, first.sources) == render_diagnostics(second.diagnostics, second.sources)

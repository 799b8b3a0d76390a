# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from composec.core.diagnostics import Diagnostic, DiagnosticKind, Help, Label, Suggestion
from composec.core.span import Span
from composec.render import diag_to_json, render_diagnostic, render_diagnostics, summary_line


def test_summary_line_counts_errors_only() -> None:
	assert summary_line([]) is None
	assert summary_line([Diagnostic(message="w", severity="warning")]) is None
	assert summary_line([Diagnostic(message="a")]) == "error: aborting due to previous error"
	assert summary_line([Diagnostic(message="a"), Diagnostic(message="b")]) == "error: aborting due to 2 previous errors"


def test_render_without_span_is_header_only() -> None:
	diag = Diagnostic(message="no composition")
	assert render_diagnostic(diag, {}) == "error: no composition"
	assert render_diagnostics([diag], {}) == "error: no composition\n\nerror: aborting due to previous error\n"


def test_tabs_are_expanded_and_underlines_follow() -> None:
	sources = {"x.compose": "first\n\tfoo bar\n"}
	diag = Diagnostic(message="boom", code="E0412", span=Span("x.compose", 2, 2, 2, 5), label="here")
	assert render_diagnostic(diag, sources).splitlines() == [
		"error[E0412]: boom",
		" --> x.compose:2:2",
		"  |",
		"2 |     foo bar",
		"  |     ^^^ here",
	]


def test_secondary_labels_and_footers() -> None:
	sources = {"x.compose": "alpha beta\n"}
	diag = Diagnostic(
		message="boom",
		span=Span("x.compose", 1, 7, 1, 11),
		label="primary",
		secondary=(Label(Span("x.compose", 1, 1, 1, 6), "secondary"),),
		notes=("a note",),
		helps=(Help("inline help"),),
	)
	assert render_diagnostic(diag, sources).splitlines() == [
		"error: boom",
		" --> x.compose:1:7",
		"  |",
		"1 | alpha beta",
		"  | ----- ^^^^ primary",
		"  | |",
		"  | secondary",
		"  |",
		"  = help: inline help",
		"  = note: a note",
	]


def test_removal_and_replacement_rows() -> None:
	sources = {"x": "abc defg\n"}
	diag = Diagnostic(
		message="boom",
		span=Span("x", 1, 1, 1, 4),
		helps=(
			Help("drop it", suggestions=(Suggestion(Span("x", 1, 4, 1, 9), ""),)),
			Help("rename it", suggestions=(Suggestion(Span("x", 1, 1, 1, 4), "xyz"),)),
		),
	)
	assert render_diagnostic(diag, sources).splitlines() == [
		"error: boom",
		" --> x:1:1",
		"  |",
		"1 | abc defg",
		"  | ^^^",
		"  |",
		"help: drop it",
		"  |",
		"1 | abc defg",
		"  |    -----",
		"  |",
		"help: rename it",
		"  |",
		"1 | xyz defg",
		"  | ~~~",
	]


def test_diag_to_json_shape() -> None:
	diag = Diagnostic(
		message="cannot find type `Event` in module `pallet`",
		code="E0412",
		kind=DiagnosticKind.UNRESOLVED_TYPE,
		phase="resolve",
		span=Span("a.compose", 3, 4, 3, 9),
		label="not found in `pallet`",
		helps=(Help("consider importing this enum", imports=("frame_system::Event",)),),
	)
	payload = diag_to_json(diag)
	assert payload["phase"] == "resolve"
	assert payload["code"] == "E0412"
	assert payload["kind"] == DiagnosticKind.UNRESOLVED_TYPE.value
	assert (payload["file"], payload["line"], payload["column"]) == ("a.compose", 3, 4)
	assert payload["helps"] == [{"message": "consider importing this enum", "imports": ["frame_system::Event"], "suggestions": []}]
	assert diag_to_json(Diagnostic(message="m"))["phase"] == "compose"

# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Diagnostic rendering.

`render_diagnostic` produces the rustc-style text form:

	error[E0433]: failed to resolve: use of undeclared crate or module `system`
	  --> runtime.compose:12:11
	   |
	12 |         System: system::{Pallet, Call},
	   |                 ^^^^^^ use of undeclared crate or module `system`

Gutter width follows the largest line number shown anywhere in the
diagnostic (snippets and suggestions alike). Tabs in source lines are
expanded to four spaces and underline columns are adjusted to match.

`diag_to_json` produces the structured form printed by `--json`.
Rendering is pure: the same diagnostics and sources give the same bytes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

from composec.core.diagnostics import Diagnostic, Help, Suggestion
from composec.core.span import Span

TAB_WIDTH = 4


@dataclass(frozen=True)
class _Mark:
	span: Span
	message: str
	primary: bool

	@property
	def char(self) -> str:
		return "^" if self.primary else "-"


class _Source:
	def __init__(self, text: str) -> None:
		self._lines = text.splitlines()

	def raw(self, n: int) -> str:
		if 1 <= n <= len(self._lines):
			return self._lines[n - 1]
		return ""

	def line(self, n: int) -> str:
		return _expand(self.raw(n))

	def col(self, n: int, column: int) -> int:
		"""Visual 1-based column of the raw `column` on line `n`."""
		return len(_expand(self.raw(n)[: max(column - 1, 0)])) + 1


def _expand(text: str) -> str:
	return text.replace("\t", " " * TAB_WIDTH)


def _header(diag: Diagnostic) -> str:
	head = diag.severity
	if diag.code:
		head += f"[{diag.code}]"
	return f"{head}: {diag.message}"


def _plan(marks: Sequence[_Mark], context_lines: int) -> List[Optional[int]]:
	"""Line numbers to print for one file; None stands for an elided run."""
	wanted = set()
	for m in marks:
		s = m.span
		if s.is_multiline():
			last = s.last_line or s.line
			if last - s.line + 1 > context_lines:
				wanted.update(range(s.line, s.line + max(context_lines - 1, 1)))
				wanted.add(last)
			else:
				wanted.update(range(s.line, last + 1))
		else:
			wanted.add(s.line)
	rows: List[Optional[int]] = []
	prev: Optional[int] = None
	for n in sorted(wanted):
		if prev is not None:
			gap = n - prev
			if gap == 2:
				rows.append(prev + 1)
			elif gap > 2:
				rows.append(None)
		rows.append(n)
		prev = n
	return rows


def _span_width(src: _Source, span: Span) -> int:
	if span.end_column is None or span.column is None:
		return 1
	start = src.col(span.line, span.column)
	end = src.col(span.line, span.end_column)
	return max(end - start, 1)


def _underlines(marks: Sequence[_Mark], src: _Source, row: int) -> List[str]:
	placed = sorted(((src.col(row, m.span.column or 1), _span_width(src, m.span), m) for m in marks), key=lambda t: t[0])
	end = max(col - 1 + width for col, width, _ in placed)
	cells = [" "] * end
	# Primary markers win where spans overlap.
	for col, width, m in sorted(placed, key=lambda t: t[2].primary):
		for i in range(width):
			cells[col - 1 + i] = m.char
	base = "".join(cells).rstrip()
	labelled = [(col, m) for col, _, m in placed if m.message]
	if not labelled:
		return [base]
	inline = labelled[-1][1]
	out = [f"{base} {inline.message}"]
	pending = [col for col, _ in labelled[:-1]]
	for col, m in reversed(labelled[:-1]):
		connector = [" "] * col
		for c in pending:
			connector[c - 1] = "|"
		out.append("".join(connector).rstrip())
		pending.remove(col)
		text = [" "] * (col - 1)
		for c in pending:
			text[c - 1] = "|"
		out.append("".join(text) + m.message)
	return out


def _snippet(marks: Sequence[_Mark], src: _Source, width: int, context_lines: int) -> List[str]:
	pad = " " * width
	multi = [m for m in marks if m.span.is_multiline()]
	singles: Dict[int, List[_Mark]] = {}
	for m in marks:
		if not m.span.is_multiline():
			singles.setdefault(m.span.line, []).append(m)
	out: List[str] = []
	for row in _plan(marks, context_lines):
		if row is None:
			out.append("...")
			continue
		bar = ""
		for m in multi:
			if row == m.span.line:
				bar = "/ "
			elif m.span.line < row <= (m.span.last_line or m.span.line) and not bar:
				bar = "| "
		out.append(f"{str(row).ljust(width)} | {bar}{src.line(row)}".rstrip())
		inner = "| " if bar else ""
		for text in _underlines(singles.get(row, []), src, row) if row in singles else []:
			out.append(f"{pad} | {inner}{text}".rstrip())
		for m in multi:
			if m.span.last_line != row:
				continue
			last_col = max(src.col(row, m.span.end_column or 1) - 1, 1)
			tail = f" {m.message}" if m.message else ""
			out.append(f"{pad} | |{'_' * last_col}{m.char}{tail}")
	return out


def _edit_rows(s: Suggestion, src: _Source, width: int) -> List[str]:
	span = s.span
	if span.is_multiline() or span.column is None:
		return []
	n = span.line
	raw = src.raw(n)
	start = span.column - 1
	stop = (span.end_column or span.column) - 1
	col = src.col(n, span.column)
	if s.is_removal:
		text = _expand(raw)
		marker = "-" * _span_width(src, span)
	else:
		text = _expand(raw[:start] + s.replacement + raw[stop:])
		marker = ("+" if s.is_insertion else "~") * max(len(_expand(s.replacement)), 1)
	pad = " " * width
	return [
		f"{str(n).ljust(width)} | {text}".rstrip(),
		f"{pad} | {' ' * (col - 1)}{marker}",
	]


def _help_rows(h: Help, sources: Mapping[str, str], width: int) -> List[str]:
	gutter = " " * width + " |"
	rows: List[str] = []
	for path in h.imports:
		rows.append(f"{'1'.ljust(width)} | use {path};")
		rows.append(gutter)
	first = True
	for s in h.suggestions:
		if s.span.file not in sources:
			continue
		edit = _edit_rows(s, _Source(sources[s.span.file]), width)
		if not edit:
			continue
		if not first:
			rows.append(gutter)
		rows.extend(edit)
		first = False
	return rows


def _gutter_width(groups: Sequence[List[Optional[int]]], diag: Diagnostic) -> int:
	numbers = [n for rows in groups for n in rows if n is not None]
	for h in diag.helps:
		if h.imports:
			numbers.append(1)
		numbers.extend(s.span.line for s in h.suggestions if s.span.line is not None)
	return max((len(str(n)) for n in numbers), default=1)


def render_diagnostic(diag: Diagnostic, sources: Mapping[str, str], *, context_lines: int = 3) -> str:
	out: List[str] = [_header(diag)]
	marks = [_Mark(diag.span, diag.label, True)] + [_Mark(label.span, label.message, False) for label in diag.secondary]
	marks = [m for m in marks if m.span.known and m.span.file in sources]
	files: List[str] = []
	for m in marks:
		if m.span.file is not None and m.span.file not in files:
			files.append(m.span.file)
	primary_file = diag.span.file if diag.span.known else None
	if primary_file is not None and primary_file in files:
		files.remove(primary_file)
		files.insert(0, primary_file)
	by_file = {f: [m for m in marks if m.span.file == f] for f in files}
	plans = [_plan(by_file[f], context_lines) for f in files]
	width = _gutter_width(plans, diag)
	pad = " " * width
	gutter = pad + " |"

	last = "header"
	if primary_file is not None:
		out.append(f"{pad}--> {diag.span.file}:{diag.span.line}:{diag.span.column}")
	for f in files:
		group = by_file[f]
		if f != primary_file:
			first = min(group, key=lambda m: m.span.sort_key())
			out.append(gutter)
			out.append(f"{pad}::: {f}:{first.span.line}:{first.span.column}")
		out.append(gutter)
		out.extend(_snippet(group, _Source(sources[f]), width, context_lines))
		last = "snippet"

	inline = [h for h in diag.helps if not h.imports and not h.suggestions]
	footers = [f"{pad} = help: {h.message}" for h in inline] + [f"{pad} = note: {n}" for n in diag.notes]
	if footers:
		if last == "snippet":
			out.append(gutter)
		out.extend(footers)
		last = "footer"
	for h in diag.helps:
		if h in inline:
			continue
		if last == "snippet":
			out.append(gutter)
		out.append(f"help: {h.message}")
		out.append(gutter)
		rows = _help_rows(h, sources, width)
		out.extend(rows)
		last = "gutter" if not rows or rows[-1] == gutter else "snippet"
	return "\n".join(out)


def summary_line(diagnostics: Sequence[Diagnostic]) -> Optional[str]:
	errors = sum(1 for d in diagnostics if d.severity == "error")
	if errors == 0:
		return None
	if errors == 1:
		return "error: aborting due to previous error"
	return f"error: aborting due to {errors} previous errors"


def render_diagnostics(diagnostics: Sequence[Diagnostic], sources: Mapping[str, str], *, context_lines: int = 3) -> str:
	"""All diagnostics, blank-line separated, followed by the abort summary."""
	blocks = [render_diagnostic(d, sources, context_lines=context_lines) for d in diagnostics]
	summary = summary_line(diagnostics)
	if summary is not None:
		blocks.append(summary)
	if not blocks:
		return ""
	return "\n\n".join(blocks) + "\n"


def _span_json(span: Span) -> Dict[str, Any]:
	return {
		"file": span.file,
		"line": span.line,
		"column": span.column,
		"end_line": span.end_line,
		"end_column": span.end_column,
	}


def diag_to_json(diag: Diagnostic, phase: str = "compose") -> Dict[str, Any]:
	"""Render a Diagnostic to a structured JSON-friendly dict."""
	payload: Dict[str, Any] = {
		"phase": diag.phase or phase,
		"code": diag.code,
		"kind": diag.kind.value,
		"message": diag.message,
		"severity": diag.severity,
		"file": diag.span.file,
		"line": diag.span.line,
		"column": diag.span.column,
		"label": diag.label,
		"labels": [dict(_span_json(label.span), message=label.message) for label in diag.secondary],
		"notes": list(diag.notes),
		"helps": [
			{
				"message": h.message,
				"imports": list(h.imports),
				"suggestions": [dict(_span_json(s.span), replacement=s.replacement) for s in h.suggestions],
			}
			for h in diag.helps
		],
	}
	return payload


__all__ = ["render_diagnostic", "render_diagnostics", "summary_line", "diag_to_json", "TAB_WIDTH"]

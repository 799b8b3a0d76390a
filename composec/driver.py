# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: composec maintainers; created: 2026-10-18
"""
End-to-end composition pipeline and the `composec` command line.

Passes run strictly in order: parse, register, resolve, check bounds, then
either report or generate. Resolution and bound checking are independent;
both always run so one invocation reports everything. A parse failure stops
the pipeline because later passes would only report its echoes.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import List, Optional, Sequence

from composec.codegen import GeneratedRuntime, generate, render_runtime, runtime_to_json
from composec.core.config import ComposeConfig, load_config
from composec.core.diagnostics import Diagnostic, DiagnosticKind
from composec.core.errors import ComposeError
from composec.core.span import Span
from composec.ir import SourceFile, Workspace
from composec.parser import parse_sources
from composec.prelude import prelude_source
from composec.registry import build_registry
from composec.render import diag_to_json, render_diagnostics
from composec.resolver import resolve
from composec.traits.enforce import check_bounds

logger = logging.getLogger(__name__)


@dataclass
class ComposeResult:
	diagnostics: List[Diagnostic] = field(default_factory=list)
	generated: Optional[GeneratedRuntime] = None
	workspace: Optional[Workspace] = None

	@property
	def ok(self) -> bool:
		return not self.diagnostics

	@property
	def sources(self) -> dict:
		return self.workspace.sources if self.workspace is not None else {}


def _missing_composition(config: ComposeConfig, sources: Sequence[SourceFile]) -> Diagnostic:
	file = sources[-1].path if sources else None
	return Diagnostic(
		message=f"no `{config.macro_name}!` composition found in the input",
		kind=DiagnosticKind.PARSE_ERROR,
		phase="parser",
		span=Span(file=file),
	)


def compose(sources: Sequence[SourceFile], config: Optional[ComposeConfig] = None) -> ComposeResult:
	"""Run the whole pipeline over `sources` (the prelude is added per config)."""
	config = config or ComposeConfig()
	inputs = list(sources)
	if config.prelude:
		inputs.insert(0, prelude_source())
	parsed = parse_sources(inputs, config=config)
	workspace = parsed.value
	result = ComposeResult(workspace=workspace)
	if not parsed.ok:
		result.diagnostics = list(parsed.diagnostics)
		return result
	if workspace.composition is None:
		result.diagnostics = [_missing_composition(config, sources)]
		return result

	registry = build_registry(workspace, config)
	resolution = resolve(workspace, registry)
	bounds = check_bounds(workspace, registry, resolution.value)
	result.diagnostics = list(resolution.diagnostics) + list(bounds.diagnostics)
	logger.info(
		"composed `%s`: %d resolution and %d bound diagnostic(s)",
		workspace.composition.runtime,
		len(resolution.diagnostics),
		len(bounds.diagnostics),
	)
	if result.diagnostics:
		return result
	result.generated = generate(workspace.composition, registry, resolution.value, config)
	return result


def _read_sources(paths: Sequence[Path]) -> List[SourceFile]:
	out: List[SourceFile] = []
	for path in paths:
		try:
			text = path.read_text(encoding="utf-8")
		except FileNotFoundError:
			raise ComposeError("source-missing", "source file not found", path=str(path)) from None
		except (OSError, UnicodeDecodeError) as err:
			raise ComposeError("source-unreadable", f"cannot read source: {err}", path=str(path)) from None
		out.append(SourceFile(path=str(path), text=text))
	return out


def _write(path: Path, text: str) -> None:
	try:
		path.write_text(text, encoding="utf-8")
	except OSError as err:
		raise ComposeError("output-unwritable", f"cannot write output: {err}", path=str(path)) from None


def _build_config(args: argparse.Namespace) -> ComposeConfig:
	config = load_config(args.config) if args.config is not None else ComposeConfig()
	if not args.prelude:
		config = replace(config, prelude=False)
	if args.system_path:
		config = replace(config, system_path=args.system_path)
	return config


def main(argv: list[str] | None = None) -> int:
	"""
	Compose a runtime from `.compose` sources.

	With --json, prints structured diagnostics and an exit_code; otherwise
	prints rendered diagnostics to stderr. Exit codes: 0 success, 1 compose
	diagnostics, 2 tooling failure (unreadable input, invalid config).
	"""
	parser = argparse.ArgumentParser(prog="composec", description="Compose and verify a runtime from component declarations")
	parser.add_argument("source", type=Path, nargs="+", help="Path(s) to .compose source file(s)")
	parser.add_argument(
		"--json",
		action="store_true",
		help="Emit diagnostics as JSON (phase/code/message/severity/file/line/column)",
	)
	parser.add_argument("--emit", type=Path, help="Write the generated runtime glue to the given path")
	parser.add_argument("--emit-json", type=Path, help="Write the generated runtime model as JSON to the given path")
	parser.add_argument("--config", type=Path, help="Path to a JSON config file")
	parser.add_argument(
		"--prelude",
		dest="prelude",
		action="store_true",
		default=True,
		help="Inject the bundled interface prelude (default)",
	)
	parser.add_argument(
		"--no-prelude",
		dest="prelude",
		action="store_false",
		help="Do not inject the bundled prelude; every interface must be declared",
	)
	parser.add_argument("--system-path", type=str, help="Well-known path of the system component")
	parser.add_argument("-v", "--verbose", action="count", default=0, help="Log pass progress to stderr (-vv for debug)")
	args = parser.parse_args(argv)

	if args.verbose:
		logging.basicConfig(
			level=logging.DEBUG if args.verbose > 1 else logging.INFO,
			format="%(levelname)s %(name)s: %(message)s",
			stream=sys.stderr,
		)

	try:
		config = _build_config(args)
		sources = _read_sources(args.source)
		result = compose(sources, config)
		if result.ok and result.generated is not None:
			if args.emit is not None:
				_write(args.emit, render_runtime(result.generated))
			if args.emit_json is not None:
				_write(args.emit_json, json.dumps(runtime_to_json(result.generated), indent=2) + "\n")
	except ComposeError as err:
		if args.json:
			print(json.dumps({"exit_code": 2, "diagnostics": [], "error": err.to_dict()}))
		else:
			print(f"composec: error: {err.format_human()}", file=sys.stderr)
		return 2

	if not result.ok:
		if args.json:
			payload = {
				"exit_code": 1,
				"diagnostics": [diag_to_json(d) for d in result.diagnostics],
			}
			print(json.dumps(payload))
		else:
			sys.stderr.write(render_diagnostics(result.diagnostics, result.sources, context_lines=config.context_lines))
		return 1

	if args.json:
		print(json.dumps({"exit_code": 0, "diagnostics": [], "runtime": runtime_to_json(result.generated)}))
	elif args.emit is None and args.emit_json is None:
		sys.stdout.write(render_runtime(result.generated))
	return 0


if __name__ == "__main__":
	sys.exit(main())

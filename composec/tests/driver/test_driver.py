# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import json
import logging
from pathlib import Path

from composec.core.config import ComposeConfig
from composec.core.diagnostics import DiagnosticKind
from composec.driver import compose, main
from composec.ir import SourceFile
from composec.test_helpers import INHERITED_RUNTIME, VALID_RUNTIME

GOLDEN = Path(__file__).resolve().parents[1] / "golden"


def _write(tmp_path: Path, text: str, name: str = "runtime.compose") -> Path:
	path = tmp_path / name
	path.write_text(text, encoding="utf-8")
	return path


def test_compose_generates_for_a_clean_runtime(caplog) -> None:
	with caplog.at_level(logging.INFO, logger="composec.driver"):
		result = compose([SourceFile(path="runtime.compose", text=VALID_RUNTIME)])
	assert result.ok
	assert result.generated is not None
	assert result.generated.runtime == "Runtime"
	assert "composed `Runtime`" in caplog.text


def test_compose_without_composition() -> None:
	result = compose([SourceFile(path="a.compose", text="component pallet { parts { Call } }\n")])
	(diag,) = result.diagnostics
	assert diag.message == "no `construct_runtime!` composition found in the input"
	assert diag.span.file == "a.compose"


def test_parse_errors_stop_the_pipeline() -> None:
	broken = VALID_RUNTIME.replace("parts { Pallet, Call, Storage, Event<T>, Config }", "parts { Pallet Call }")
	result = compose([SourceFile(path="runtime.compose", text=broken)])
	assert result.diagnostics
	assert all(d.kind is DiagnosticKind.PARSE_ERROR for d in result.diagnostics)
	assert result.generated is None


def test_compose_without_prelude_needs_declared_interfaces() -> None:
	result = compose([SourceFile(path="runtime.compose", text=VALID_RUNTIME)], ComposeConfig(prelude=False))
	assert "E0405" in [d.code for d in result.diagnostics]


def test_main_prints_the_runtime(tmp_path: Path, capsys) -> None:
	path = _write(tmp_path, VALID_RUNTIME)
	assert main([str(path)]) == 0
	out = capsys.readouterr()
	assert "pub enum Call {" in out.out
	assert out.err == ""


def test_main_json_success(tmp_path: Path, capsys) -> None:
	path = _write(tmp_path, VALID_RUNTIME)
	assert main([str(path), "--json"]) == 0
	payload = json.loads(capsys.readouterr().out)
	assert payload["exit_code"] == 0
	assert payload["diagnostics"] == []
	assert [v["name"] for v in payload["runtime"]["call"]] == ["System", "Balances"]


def test_main_emits_files(tmp_path: Path, capsys) -> None:
	path = _write(tmp_path, VALID_RUNTIME)
	glue = tmp_path / "runtime.rs"
	model = tmp_path / "runtime.json"
	assert main([str(path), "--emit", str(glue), "--emit-json", str(model)]) == 0
	assert capsys.readouterr().out == ""
	assert "pub struct GenesisConfig {" in glue.read_text(encoding="utf-8")
	assert json.loads(model.read_text(encoding="utf-8"))["runtime"] == "Runtime"


def test_main_reports_diagnostics(tmp_path: Path, capsys) -> None:
	path = _write(tmp_path, (GOLDEN / "scenario_b.compose").read_text(encoding="utf-8"))
	assert main([str(path)]) == 1
	err = capsys.readouterr().err
	assert "error[E0369]" in err
	assert err.endswith("error: aborting due to 3 previous errors\n")


def test_main_json_diagnostics(tmp_path: Path, capsys) -> None:
	path = _write(tmp_path, (GOLDEN / "scenario_a.compose").read_text(encoding="utf-8"))
	assert main([str(path), "--json"]) == 1
	payload = json.loads(capsys.readouterr().out)
	assert payload["exit_code"] == 1
	assert [d["code"] for d in payload["diagnostics"]] == [None, "E0433", "E0433", "E0433", "E0412", "E0412", "E0277"]
	assert payload["diagnostics"][0]["file"] == str(path)


def test_main_missing_source(tmp_path: Path, capsys) -> None:
	assert main([str(tmp_path / "nope.compose")]) == 2
	assert capsys.readouterr().err.startswith("composec: error: [source-missing] source file not found")


def test_main_invalid_config_json(tmp_path: Path, capsys) -> None:
	path = _write(tmp_path, VALID_RUNTIME)
	config = _write(tmp_path, json.dumps({"context_lines": 0}), name="composec.json")
	assert main([str(path), "--config", str(config), "--json"]) == 2
	payload = json.loads(capsys.readouterr().out)
	assert payload["exit_code"] == 2
	assert payload["error"]["reason_code"] == "config-invalid"
	assert payload["error"]["key"] == "context_lines"


def test_main_system_path_override(tmp_path: Path, capsys) -> None:
	src = VALID_RUNTIME.replace("frame_system", "my_system")
	path = _write(tmp_path, src)
	assert main([str(path), "--system-path", "my_system", "--json"]) == 0
	payload = json.loads(capsys.readouterr().out)
	assert payload["runtime"]["origin"] == [{"name": "System", "index": 0, "type": "my_system::Origin"}]


def test_compose_generates_with_inherited_associated_types() -> None:
	result = compose([SourceFile(path="runtime.compose", text=INHERITED_RUNTIME)])
	assert result.diagnostics == []
	assert [v.name for v in result.generated.call.variants] == ["System", "Example"]

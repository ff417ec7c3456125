"""Argument handling of scripts/run_scene_batch.py."""

from __future__ import annotations

import importlib.util
import json
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[2]


def _load_script():
    path = REPO_ROOT / "scripts" / "run_scene_batch.py"
    spec = importlib.util.spec_from_file_location("run_scene_batch", path)
    module = importlib.util.module_from_spec(spec)
    assert spec.loader is not None
    spec.loader.exec_module(module)
    return module


def test_dry_run_prints_planned_payloads(tmp_path, capsys):
    script = _load_script()
    preview = tmp_path / "preview.json"
    exit_code = script.main(
        [
            "--config",
            str(REPO_ROOT / "configs" / "default_scene.yaml"),
            "--seed",
            "5",
            "--batch",
            "3",
            "--preview",
            str(preview),
            "--dry-run",
            "--log-level",
            "WARNING",
        ]
    )

    assert exit_code == 0
    printed = json.loads(capsys.readouterr().out)
    assert len(printed) == 3
    assert all(payload["Post"] == "standard processing" for payload in printed)
    assert json.loads(preview.read_text(encoding="utf-8")) == printed


def test_overrides_apply_to_config():
    script = _load_script()
    args = script.build_parser().parse_args(
        ["--seed", "3", "--concurrency", "2", "--model", "gpt-4o", "--transport", "sdk", "--balanced"]
    )
    cfg = script.apply_overrides(script.load_run_config(None), args)

    assert cfg.controls.seed == 3
    assert cfg.controls.concurrency == 2
    assert cfg.controls.model == "gpt-4o"
    assert cfg.controls.balanced is True
    assert cfg.dispatch.transport == "sdk"


def test_invalid_batch_exits_with_error_code(capsys):
    script = _load_script()
    exit_code = script.main(
        [
            "--config",
            str(REPO_ROOT / "configs" / "default_scene.yaml"),
            "--batch",
            "0",
            "--dry-run",
            "--log-level",
            "ERROR",
        ]
    )
    assert exit_code == 2


def test_missing_config_file_exits_with_error_code(tmp_path):
    script = _load_script()
    exit_code = script.main(
        ["--config", str(tmp_path / "absent.yaml"), "--dry-run", "--log-level", "ERROR"]
    )
    assert exit_code == 2


def test_mistyped_config_value_exits_with_error_code(tmp_path):
    script = _load_script()
    path = tmp_path / "run.yaml"
    path.write_text("controls:\n  batch: abc\n", encoding="utf-8")
    exit_code = script.main(["--config", str(path), "--dry-run", "--log-level", "ERROR"])
    assert exit_code == 2

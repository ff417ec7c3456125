"""End-to-end runner wiring with stubbed transports."""

from __future__ import annotations

import asyncio
import json
import types

import pytest

from scene_architect.config import RunConfig, SectionConfig
from scene_architect.dispatch import ChatRequestError
from scene_architect.errors import InvalidArgumentError
from scene_architect.runner import SceneBatchRunner


def _config(tmp_path, **controls) -> RunConfig:
    cfg = RunConfig(
        instructions="One paragraph.",
        sections=[
            SectionConfig(id="s1", title="Composition", list="wide, close-up"),
            SectionConfig(id="s2", title="Post", list="grain, clean", is_randomized=False),
        ],
    )
    cfg.controls.seed = 7
    cfg.controls.batch = 4
    for key, value in controls.items():
        setattr(cfg.controls, key, value)
    cfg.dispatch.base_delay = 0.0
    cfg.export.output_dir = tmp_path / "prompts"
    cfg.export.name = "test"
    return cfg


def test_run_dispatches_every_payload_and_writes_results(tmp_path):
    sent = []

    async def send(request):
        sent.append(request)
        payload = json.loads(request.messages[-1]["content"])
        return f"{payload['Composition']} / {payload['Post']}"

    runner = SceneBatchRunner(_config(tmp_path), send=send, show_progress=False)
    result = runner.run()

    assert len(result.payloads) == 4
    assert result.outputs == [f"{p['Composition']} / {p['Post']}" for p in result.payloads]
    assert [p["Post"] for p in result.payloads] == ["grain", "clean", "grain", "clean"]
    assert result.progress.done == 4 and result.progress.succeeded == 4
    assert sent[0].model == "gpt-4o-mini"
    assert "Composition, Post." in sent[0].messages[0]["content"]
    assert result.output_path is not None
    assert result.output_path.name.startswith("4_test_prompts_")
    assert result.output_path.read_text(encoding="utf-8").count("\n") == 3


def test_failed_items_leave_blank_outputs(tmp_path):
    async def send(request):
        if "close-up" in request.messages[-1]["content"]:
            raise ChatRequestError("denied", status_code=403, error_type="http_403")
        return "ok"

    cfg = _config(tmp_path)
    cfg.export.write_results = False
    result = SceneBatchRunner(cfg, send=send, show_progress=False).run()

    for payload, output in zip(result.payloads, result.outputs):
        assert output == ("" if payload["Composition"] == "close-up" else "ok")
    assert result.progress.succeeded + result.progress.failed == 4
    assert result.output_path is None


def test_explicit_payloads_are_dispatched_as_given(tmp_path):
    async def send(request):
        return request.messages[-1]["content"]

    cfg = _config(tmp_path)
    cfg.export.write_results = False
    payloads = [{"Composition": "wide"}]
    result = SceneBatchRunner(cfg, send=send, show_progress=False).run(payloads)

    assert result.payloads == payloads
    assert json.loads(result.outputs[0]) == {"Composition": "wide"}


def test_guardrail_warnings_are_reported(tmp_path):
    async def send(request):
        return "ok"

    cfg = _config(tmp_path, concurrency=9)
    cfg.export.write_results = False
    result = SceneBatchRunner(cfg, send=send, show_progress=False).run()
    assert any("High concurrency" in warning for warning in result.warnings)


def test_sdk_transport_uses_the_sdk_client(tmp_path):
    calls = []

    def create(**kwargs):
        calls.append(kwargs)
        return types.SimpleNamespace(
            model_dump=lambda mode="json": {"choices": [{"message": {"content": "from sdk"}}]}
        )

    options = {}
    sdk = types.SimpleNamespace(
        chat=types.SimpleNamespace(completions=types.SimpleNamespace(create=create))
    )

    def with_options(**kwargs):
        options.update(kwargs)
        return sdk

    sdk.with_options = with_options
    llm = types.SimpleNamespace(
        api_key="sk-test",
        org_id=None,
        api_base="https://api.example.com/v1",
        sdk_client=sdk,
    )
    cfg = _config(tmp_path, batch=2)
    cfg.dispatch.transport = "sdk"
    cfg.export.write_results = False

    result = SceneBatchRunner(cfg, llm_client=llm, show_progress=False).run()

    assert result.outputs == ["from sdk", "from sdk"]
    assert len(calls) == 2
    assert options == {"timeout": 30.0}


def test_missing_api_key_fails_before_any_work(tmp_path, monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("OPENAI_API_BASE", raising=False)
    runner = SceneBatchRunner(_config(tmp_path), show_progress=False)
    with pytest.raises(InvalidArgumentError, match="API key"):
        runner.run()
    assert not (tmp_path / "prompts").exists()


def test_invalid_batch_size_fails_before_dispatch(tmp_path):
    async def send(request):  # pragma: no cover - never called
        raise AssertionError("dispatch must not start")

    runner = SceneBatchRunner(_config(tmp_path, batch=0), send=send, show_progress=False)
    with pytest.raises(InvalidArgumentError):
        asyncio.run(runner.run_async())


def test_unknown_transport_is_rejected(tmp_path):
    cfg = _config(tmp_path)
    cfg.dispatch.transport = "carrier-pigeon"
    with pytest.raises(InvalidArgumentError, match="transport"):
        SceneBatchRunner(cfg)

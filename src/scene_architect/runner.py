"""End-to-end batch run: plan payloads, dispatch them, export the outputs."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Awaitable, Callable

from tqdm import tqdm

from .config import RunConfig, check_guardrails, to_candidate_pools
from .dispatch import (
    AsyncChatClient,
    BatchDispatcher,
    ChatRequest,
    JobResult,
    ProgressState,
    SceneRequestBuilder,
    SdkChatClient,
    format_progress,
)
from .errors import InvalidArgumentError
from .export import write_results
from .sampling import Payload, plan_batch
from .utils.llm_client_factory import create_llm_client
from .utils.openai_client import OpenAIClient

logger = logging.getLogger(__name__)

SendFn = Callable[[ChatRequest], Awaitable[str]]

_TRANSPORTS = {"aiohttp", "sdk"}


@dataclass(slots=True)
class BatchRunResult:
    """Everything a caller needs to render a finished run."""

    payloads: list[Payload]
    results: list[JobResult]
    progress: ProgressState
    warnings: list[str] = field(default_factory=list)
    output_path: Path | None = None

    @property
    def outputs(self) -> list[str]:
        return [result.output for result in self.results]


class SceneBatchRunner:
    """Coordinates planning and dispatch for one :class:`RunConfig`."""

    def __init__(
        self,
        cfg: RunConfig,
        *,
        api_key: str | None = None,
        llm_client: OpenAIClient | None = None,
        send: SendFn | None = None,
        show_progress: bool = True,
    ) -> None:
        transport = cfg.dispatch.transport.lower()
        if transport not in _TRANSPORTS:
            raise InvalidArgumentError(
                f"Unsupported transport {cfg.dispatch.transport!r}; expected one of {sorted(_TRANSPORTS)}"
            )
        self._cfg = cfg
        self._transport = transport
        self._api_key = api_key
        self._llm = llm_client
        self._send = send
        self._show_progress = show_progress

    def plan(self) -> list[Payload]:
        controls = self._cfg.controls
        return plan_batch(
            to_candidate_pools(self._cfg),
            controls.batch,
            controls.seed,
            balanced=controls.balanced,
        )

    def request_builder(self) -> SceneRequestBuilder:
        return SceneRequestBuilder(
            field_names=self._cfg.field_names(),
            model=self._cfg.controls.model,
            instructions=self._cfg.instructions,
            temperature=self._cfg.controls.temperature,
        )

    def _resolve_llm(self) -> OpenAIClient:
        if self._llm is None:
            self._llm = create_llm_client(self._cfg.llm, api_key=self._api_key)
        return self._llm

    async def run_async(
        self,
        payloads: list[Payload] | None = None,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> BatchRunResult:
        """Dispatch ``payloads`` (planned from the config when omitted)."""

        cfg = self._cfg
        llm = self._resolve_llm() if self._send is None else None
        warnings = check_guardrails(cfg.controls)
        if payloads is None:
            payloads = self.plan()
        logger.info(
            "Planned %d payload(s) from %d section(s); model=%s seed=%s",
            len(payloads),
            len(cfg.sections),
            cfg.controls.model,
            cfg.controls.seed,
        )

        progress_bar = tqdm(
            total=len(payloads), desc="scenes", unit="prompt", disable=not self._show_progress
        )

        def on_progress(state: ProgressState) -> None:
            progress_bar.update(1)
            progress_bar.set_postfix_str(f"ok {state.succeeded} • fail {state.failed}")

        def make_dispatcher(send: SendFn) -> BatchDispatcher[ChatRequest]:
            return BatchDispatcher(
                self.request_builder(),
                send,
                concurrency=cfg.controls.concurrency,
                max_retries=cfg.dispatch.max_retries,
                base_delay=cfg.dispatch.base_delay,
                request_timeout=cfg.dispatch.request_timeout,
                on_progress=on_progress,
            )

        try:
            if self._send is not None:
                dispatcher = make_dispatcher(self._send)
                results = await dispatcher.run(payloads, cancel_event=cancel_event)
            elif self._transport == "sdk":
                sdk_client = SdkChatClient(llm, timeout_seconds=cfg.dispatch.request_timeout)
                dispatcher = make_dispatcher(sdk_client.send)
                results = await dispatcher.run(payloads, cancel_event=cancel_event)
            else:
                async with AsyncChatClient(
                    llm,
                    concurrency=cfg.controls.concurrency,
                    timeout_seconds=cfg.dispatch.request_timeout,
                ) as client:
                    dispatcher = make_dispatcher(client.send)
                    results = await dispatcher.run(payloads, cancel_event=cancel_event)
        finally:
            progress_bar.close()

        progress = dispatcher.progress
        logger.info("Run complete: %s", format_progress(progress))
        run_result = BatchRunResult(
            payloads=payloads, results=results, progress=progress, warnings=warnings
        )
        if cfg.export.write_results:
            run_result.output_path = write_results(
                run_result.outputs, Path(cfg.export.output_dir), cfg.export.name
            )
        return run_result

    def run(self, payloads: list[Payload] | None = None) -> BatchRunResult:
        return asyncio.run(self.run_async(payloads))


__all__ = ["BatchRunResult", "SceneBatchRunner"]

"""Bounded-concurrency dispatch of scene payloads with retry and progress accounting."""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from threading import Lock
from typing import Any, Awaitable, Callable, Generic, Mapping, Sequence, TypeVar

import aiohttp

from ..errors import InvalidArgumentError
from .chat_client import ChatRequestError

logger = logging.getLogger(__name__)

RequestT = TypeVar("RequestT")

MIN_CONCURRENCY = 1
MAX_CONCURRENCY = 10
JITTER_SECONDS = 0.2


@dataclass(frozen=True, slots=True)
class ProgressState:
    """Snapshot of a dispatch run."""

    total: int = 0
    done: int = 0
    succeeded: int = 0
    failed: int = 0

    @property
    def percent(self) -> int:
        if not self.total:
            return 0
        return round(self.done / self.total * 100)


def format_progress(state: ProgressState) -> str:
    return f"{state.done}/{state.total} • ok {state.succeeded} • fail {state.failed}"


@dataclass(slots=True)
class JobResult:
    """Terminal outcome of one payload. Failed jobs carry ``output == ""``."""

    index: int
    payload: Mapping[str, str]
    output: str = ""
    error: ChatRequestError | None = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


ProgressCallback = Callable[[ProgressState], None]


class ProgressTracker:
    """Lock-guarded counters, touched once per job on its terminal outcome."""

    def __init__(self, total: int, on_progress: ProgressCallback | None = None) -> None:
        self._lock = Lock()
        self._state = ProgressState(total=total)
        self._on_progress = on_progress

    @property
    def state(self) -> ProgressState:
        with self._lock:
            return self._state

    def record(self, success: bool) -> ProgressState:
        with self._lock:
            current = self._state
            if current.done >= current.total:
                raise RuntimeError("Progress already complete; a job was recorded twice.")
            self._state = ProgressState(
                total=current.total,
                done=current.done + 1,
                succeeded=current.succeeded + (1 if success else 0),
                failed=current.failed + (0 if success else 1),
            )
            snapshot = self._state
        if self._on_progress is not None:
            try:
                self._on_progress(snapshot)
            except Exception:
                logger.exception("Progress callback failed at %s", format_progress(snapshot))
        return snapshot


class _WorkCursor:
    """Shared fetch-and-increment index over ``total`` jobs."""

    def __init__(self, total: int) -> None:
        self._lock = Lock()
        self._next = 0
        self._total = total

    def claim(self) -> int | None:
        with self._lock:
            if self._next >= self._total:
                return None
            index = self._next
            self._next += 1
            return index


def clamp_concurrency(value: Any) -> int:
    try:
        requested = int(value)
    except (TypeError, ValueError):
        requested = MIN_CONCURRENCY
    return max(MIN_CONCURRENCY, min(requested, MAX_CONCURRENCY))


def backoff_delay(base_delay: float, attempt: int, jitter: float = 0.0) -> float:
    """Delay after failed attempt number ``attempt`` (1-based)."""

    return base_delay * (2 ** (attempt - 1)) + jitter


class BatchDispatcher(Generic[RequestT]):
    """Run one request per payload across a small pool of async workers.

    Workers pull job indices from a shared cursor until it is exhausted, so
    faster workers simply take more jobs. Results are stored by job index,
    never in completion order.
    """

    def __init__(
        self,
        build_request: Callable[[Mapping[str, str]], RequestT],
        send: Callable[[RequestT], Awaitable[str]],
        *,
        concurrency: int = 4,
        max_retries: int = 3,
        base_delay: float = 0.5,
        request_timeout: float = 30.0,
        on_progress: ProgressCallback | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        if max_retries < 1:
            raise InvalidArgumentError(f"max_retries must be >= 1, got {max_retries}")
        if base_delay < 0:
            raise InvalidArgumentError(f"base_delay must be >= 0, got {base_delay}")
        if request_timeout <= 0:
            raise InvalidArgumentError(f"request_timeout must be > 0, got {request_timeout}")
        self._build_request = build_request
        self._send = send
        self.concurrency = clamp_concurrency(concurrency)
        self._max_retries = int(max_retries)
        self._base_delay = float(base_delay)
        self._timeout = float(request_timeout)
        self._on_progress = on_progress
        self._sleep = sleep
        self._tracker = ProgressTracker(0)

    @property
    def progress(self) -> ProgressState:
        return self._tracker.state

    async def run(
        self,
        payloads: Sequence[Mapping[str, str]],
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> list[JobResult]:
        jobs = [(payload, self._build_request(payload)) for payload in payloads]
        total = len(jobs)
        self._tracker = ProgressTracker(total, self._on_progress)
        if not total:
            return []
        results: list[JobResult | None] = [None] * total
        cursor = _WorkCursor(total)
        worker_count = min(self.concurrency, total)
        logger.info(
            "Dispatching %d job(s) across %d worker(s) (max_retries=%d)",
            total,
            worker_count,
            self._max_retries,
        )

        async def worker(worker_id: int) -> None:
            while True:
                index = cursor.claim()
                if index is None:
                    return
                payload, request = jobs[index]
                if cancel_event is not None and cancel_event.is_set():
                    result = JobResult(
                        index=index,
                        payload=payload,
                        error=ChatRequestError(
                            f"Job {index} cancelled before dispatch",
                            error_type="cancelled",
                        ),
                    )
                else:
                    result = await self._process(index, payload, request, cancel_event)
                results[index] = result
                self._tracker.record(result.ok)
                logger.debug("Worker %d finished job %d (ok=%s)", worker_id, index, result.ok)

        await asyncio.gather(*(worker(worker_id) for worker_id in range(worker_count)))
        final = self._tracker.state
        logger.info("Dispatch finished: %s", format_progress(final))
        return [result for result in results if result is not None]

    async def _process(
        self,
        index: int,
        payload: Mapping[str, str],
        request: RequestT,
        cancel_event: asyncio.Event | None,
    ) -> JobResult:
        attempt = 0
        while True:
            attempt += 1
            logger.debug("Job %d attempt %d/%d", index, attempt, self._max_retries)
            try:
                output = await asyncio.wait_for(self._send(request), timeout=self._timeout)
                return JobResult(
                    index=index, payload=payload, output=(output or "").strip(), attempts=attempt
                )
            except asyncio.TimeoutError:
                error = ChatRequestError(
                    f"Request timeout after {self._timeout:.1f}s for job {index}",
                    error_type="timeout",
                    retryable=True,
                )
            except ChatRequestError as exc:
                error = exc
            except (aiohttp.ClientError, OSError) as exc:
                error = ChatRequestError(
                    f"{exc.__class__.__name__}: {exc}",
                    error_type=exc.__class__.__name__,
                    retryable=True,
                )
            except Exception as exc:
                logger.exception("Job %d attempt %d raised %s", index, attempt, exc.__class__.__name__)
                error = ChatRequestError(
                    f"{exc.__class__.__name__}: {exc}",
                    error_type="unexpected_error",
                    retryable=False,
                )
            error.attempts = attempt
            logger.warning(
                "Job %d attempt %d failed (%s): %s",
                index,
                attempt,
                error.error_type,
                error,
            )
            if not error.retryable or attempt >= self._max_retries:
                break
            if cancel_event is not None and cancel_event.is_set():
                break
            await self._sleep(
                backoff_delay(self._base_delay, attempt, random.random() * JITTER_SECONDS)
            )
        logger.error("Job %d failed after %d attempt(s): %s", index, attempt, error)
        return JobResult(index=index, payload=payload, error=error, attempts=attempt)


async def dispatch(
    payloads: Sequence[Mapping[str, str]],
    build_request: Callable[[Mapping[str, str]], RequestT],
    send: Callable[[RequestT], Awaitable[str]],
    *,
    concurrency: int = 4,
    max_retries: int = 3,
    base_delay: float = 0.5,
    request_timeout: float = 30.0,
    on_progress: ProgressCallback | None = None,
    cancel_event: asyncio.Event | None = None,
) -> list[JobResult]:
    """Dispatch ``payloads`` and return one :class:`JobResult` per payload, in order."""

    dispatcher = BatchDispatcher(
        build_request,
        send,
        concurrency=concurrency,
        max_retries=max_retries,
        base_delay=base_delay,
        request_timeout=request_timeout,
        on_progress=on_progress,
    )
    return await dispatcher.run(payloads, cancel_event=cancel_event)


__all__ = [
    "BatchDispatcher",
    "JobResult",
    "MAX_CONCURRENCY",
    "ProgressState",
    "ProgressTracker",
    "backoff_delay",
    "clamp_concurrency",
    "dispatch",
    "format_progress",
]

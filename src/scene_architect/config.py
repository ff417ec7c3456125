"""Configuration schema for a scene batch run."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from omegaconf import OmegaConf

from .sampling import CandidatePool

logger = logging.getLogger(__name__)

MAX_ADVISED_BATCH = 250
MAX_ADVISED_CONCURRENCY = 8


@dataclass(slots=True)
class OpenAIConfig:
    """Configuration for the OpenAI client. The API key is never written back."""

    api_key: Optional[str] = None
    org_id: Optional[str] = None
    api_base: Optional[str] = None
    client_timeout: Optional[float] = None


@dataclass(slots=True)
class LLMConfig:
    """Backend selection; ``vllm`` reuses the OpenAI-compatible client."""

    backend: str = "openai"  # options: openai, vllm
    openai: OpenAIConfig = field(default_factory=OpenAIConfig)


@dataclass(slots=True)
class SectionConfig:
    """One editable scene parameter as stored in a run file."""

    id: str = ""
    title: str = ""
    list: str = ""
    # The `list` field shadows the builtin inside this class body.
    selections: List[str] = field(default_factory=lambda: [])
    is_randomized: bool = True


@dataclass(slots=True)
class ControlsConfig:
    """Run controls: seed ``-1`` draws non-deterministically."""

    seed: int = -1
    batch: int = 1
    concurrency: int = 4
    model: str = "gpt-4o-mini"
    temperature: float = 0.7
    balanced: bool = False


@dataclass(slots=True)
class DispatchConfig:
    """Retry, timeout and transport settings for the dispatcher."""

    max_retries: int = 3
    base_delay: float = 0.5
    request_timeout: float = 30.0
    transport: str = "aiohttp"  # options: aiohttp, sdk


@dataclass(slots=True)
class ExportConfig:
    """Where result files land and the name stamped into them."""

    output_dir: Path = Path("outputs/prompts")
    name: str = "default"
    write_results: bool = True


@dataclass(slots=True)
class RunConfig:
    """Aggregated configuration for one batch run."""

    instructions: str = ""
    sections: List[SectionConfig] = field(default_factory=list)
    controls: ControlsConfig = field(default_factory=ControlsConfig)
    dispatch: DispatchConfig = field(default_factory=DispatchConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    export: ExportConfig = field(default_factory=ExportConfig)

    def field_names(self) -> list[str]:
        return [section.title for section in self.sections]


def load_run_config(path: Path | None) -> RunConfig:
    """Merge a YAML/JSON run file over the defaults."""

    if path is None:
        return RunConfig()
    base = OmegaConf.structured(RunConfig())
    overrides = OmegaConf.load(path)
    merged = OmegaConf.merge(base, overrides)
    cfg = OmegaConf.to_object(merged)
    logger.debug("Loaded run config from %s (%d sections)", path, len(cfg.sections))
    return cfg  # type: ignore[return-value]


def to_candidate_pools(cfg: RunConfig) -> list[CandidatePool]:
    pools: list[CandidatePool] = []
    for position, section in enumerate(cfg.sections, start=1):
        pools.append(
            CandidatePool(
                label=section.title.strip(),
                raw_list=section.list or "",
                selections=tuple(section.selections or ()),
                randomize=bool(section.is_randomized),
                identity=section.id or f"section-{position}",
            )
        )
    return pools


def check_guardrails(controls: ControlsConfig) -> list[str]:
    """Advisory warnings for costly runs; they never block dispatch."""

    warnings: list[str] = []
    if (controls.batch or 0) > MAX_ADVISED_BATCH:
        warnings.append(
            f"Large batch: consider <= {MAX_ADVISED_BATCH} for cost/rate safety."
        )
    if (controls.concurrency or 0) > MAX_ADVISED_CONCURRENCY:
        warnings.append(
            f"High concurrency: consider <= {MAX_ADVISED_CONCURRENCY} to avoid rate limits."
        )
    for message in warnings:
        logger.warning(message)
    return warnings


__all__ = [
    "ControlsConfig",
    "DispatchConfig",
    "ExportConfig",
    "LLMConfig",
    "OpenAIConfig",
    "RunConfig",
    "SectionConfig",
    "check_guardrails",
    "load_run_config",
    "to_candidate_pools",
]

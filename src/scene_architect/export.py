"""Write batch results and payload previews to disk."""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Mapping, Sequence

logger = logging.getLogger(__name__)

_UNSAFE_NAME = re.compile(r"[^A-Za-z0-9._-]+")


def results_filename(count: int, name: str, now: datetime | None = None) -> str:
    """``{count}_{name}_prompts_{yyyy_mm_dd_hh_mm_ss}.txt``"""

    stamp = (now or datetime.now()).strftime("%Y_%m_%d_%H_%M_%S")
    safe_name = _UNSAFE_NAME.sub("_", name.strip()) or "default"
    return f"{count}_{safe_name}_prompts_{stamp}.txt"


def write_results(
    outputs: Sequence[str],
    output_dir: Path,
    name: str,
    *,
    now: datetime | None = None,
) -> Path:
    """Write one output per line, failed items included as blank lines."""

    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / results_filename(len(outputs), name, now)
    path.write_text("\n".join(outputs), encoding="utf-8")
    logger.info("Wrote %d result(s) to %s", len(outputs), path)
    return path


def write_payload_preview(payloads: Sequence[Mapping[str, str]], path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps([dict(payload) for payload in payloads], indent=2, ensure_ascii=False),
        encoding="utf-8",
    )
    return path


__all__ = ["results_filename", "write_payload_preview", "write_results"]

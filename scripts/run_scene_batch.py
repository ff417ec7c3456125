#!/usr/bin/env python3
"""Plan a batch of scene specs from a run file and send them to the chat API."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys

_REPO_ROOT = Path(__file__).resolve().parents[1]
_SRC = _REPO_ROOT / "src"
if _SRC.exists():
    sys.path.insert(0, str(_SRC))

from omegaconf.errors import OmegaConfBaseException

from scene_architect.config import RunConfig, load_run_config
from scene_architect.errors import InvalidArgumentError
from scene_architect.export import write_payload_preview
from scene_architect.runner import SceneBatchRunner
from scene_architect.dispatch import format_progress
from scene_architect.utils import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--config", type=Path, help="Path to a RunConfig YAML/JSON file")
    parser.add_argument("--seed", type=int, help="Run seed override (-1 = fully random)")
    parser.add_argument("--batch", type=int, help="Batch size override")
    parser.add_argument(
        "--concurrency",
        type=int,
        help="Parallel requests override (clamped to 1..10)",
    )
    parser.add_argument("--model", type=str, help="Model identifier override")
    parser.add_argument(
        "--balanced",
        action="store_true",
        help="Shuffle-and-cycle each section across the batch instead of independent draws",
    )
    parser.add_argument("--max-retries", type=int, help="Attempts per request override")
    parser.add_argument(
        "--transport",
        choices=["aiohttp", "sdk"],
        help="HTTP transport for requests (default: taken from the run config)",
    )
    parser.add_argument(
        "--api-key",
        type=str,
        help="Bearer credential; falls back to OPENAI_API_KEY. Never written to disk.",
    )
    parser.add_argument("--output-dir", type=Path, help="Directory for the results file")
    parser.add_argument("--name", type=str, help="Name stamped into the results filename")
    parser.add_argument(
        "--preview", type=Path, help="Also write the planned payloads as JSON to this path"
    )
    parser.add_argument(
        "--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"]
    )
    parser.add_argument(
        "--dry-run", action="store_true", help="Plan payloads, print them, and exit"
    )
    return parser


def apply_overrides(cfg: RunConfig, args: argparse.Namespace) -> RunConfig:
    if args.seed is not None:
        cfg.controls.seed = args.seed
    if args.batch is not None:
        cfg.controls.batch = args.batch
    if args.concurrency is not None:
        cfg.controls.concurrency = args.concurrency
    if args.model:
        cfg.controls.model = args.model
    if args.balanced:
        cfg.controls.balanced = True
    if args.max_retries is not None:
        cfg.dispatch.max_retries = args.max_retries
    if args.transport:
        cfg.dispatch.transport = args.transport
    if args.output_dir is not None:
        cfg.export.output_dir = args.output_dir
    if args.name:
        cfg.export.name = args.name
    return cfg


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    try:
        cfg = apply_overrides(load_run_config(args.config), args)
        if args.dry_run:
            payloads = SceneBatchRunner(cfg, show_progress=False).plan()
            if args.preview:
                write_payload_preview(payloads, args.preview)
            print(json.dumps(payloads, indent=2, ensure_ascii=False))
            return 0
        runner = SceneBatchRunner(cfg, api_key=args.api_key)
        payloads = runner.plan()
        if args.preview:
            write_payload_preview(payloads, args.preview)
        result = runner.run(payloads)
    except (InvalidArgumentError, OmegaConfBaseException, OSError) as exc:
        logging.getLogger("scene_architect").error("%s", exc)
        return 2

    summary = {
        "progress": format_progress(result.progress),
        "warnings": result.warnings,
        "output_path": str(result.output_path) if result.output_path else None,
    }
    print(json.dumps(summary, indent=2, ensure_ascii=False))
    return 0 if result.progress.failed == 0 else 1


if __name__ == "__main__":
    sys.exit(main())

"""Credential and endpoint lookup, with an optional repository-local .env file."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

from ..errors import InvalidArgumentError

_REPO_ROOT = Path(__file__).resolve().parents[3]

API_KEY_ENV = "OPENAI_API_KEY"
API_BASE_ENV = "OPENAI_API_BASE"
ORG_ID_ENV = "OPENAI_ORG_ID"
DEFAULT_API_BASE = "https://api.openai.com/v1"


@lru_cache(maxsize=1)
def load_repo_dotenv() -> bool:
    """Load the .env file at the repository root once; existing variables win."""

    env_path = _REPO_ROOT / ".env"
    if not env_path.exists():
        return False
    load_dotenv(env_path, override=False)
    return True


def resolve_api_base(explicit: str | None = None) -> str:
    load_repo_dotenv()
    return explicit or os.getenv(API_BASE_ENV, DEFAULT_API_BASE)


def resolve_api_key(explicit: str | None, api_base: str) -> str:
    """Return the bearer credential for ``api_base``.

    Local OpenAI-compatible servers (vLLM) accept any token, so a placeholder
    is used for them when nothing is configured.
    """

    load_repo_dotenv()
    api_key = explicit or os.getenv(API_KEY_ENV)
    if api_key:
        return api_key
    if "localhost" in api_base or "127.0.0.1" in api_base:
        return "EMPTY"
    raise InvalidArgumentError(
        f"OpenAI API key required. Set {API_KEY_ENV} or pass --api-key."
    )


__all__ = [
    "API_KEY_ENV",
    "DEFAULT_API_BASE",
    "load_repo_dotenv",
    "resolve_api_base",
    "resolve_api_key",
]

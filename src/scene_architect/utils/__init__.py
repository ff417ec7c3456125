"""Utility helpers for logging, credentials, and API clients."""

from .env import load_repo_dotenv, resolve_api_base, resolve_api_key
from .logging import configure_logging

__all__ = [
    "configure_logging",
    "load_repo_dotenv",
    "resolve_api_base",
    "resolve_api_key",
]

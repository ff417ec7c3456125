from __future__ import annotations

from dataclasses import asdict

from ..config import LLMConfig
from .env import load_repo_dotenv
from .openai_client import OpenAIClient


def create_llm_client(config: LLMConfig, *, api_key: str | None = None) -> OpenAIClient:
    """Factory resolving the client for the configured backend.

    ``api_key`` takes precedence over the configured key and the environment.
    """

    load_repo_dotenv()
    backend = config.backend.lower()
    kwargs = asdict(config.openai)
    if api_key:
        kwargs["api_key"] = api_key
    if backend in {"openai", "vllm"}:
        # vLLM serves an OpenAI-compatible API, so both share OpenAIClient.
        return OpenAIClient(**kwargs)
    raise ValueError(f"Unsupported LLM backend: {config.backend}. Supported: openai, vllm")

from __future__ import annotations

from openai import OpenAI

from .env import resolve_api_base, resolve_api_key


class OpenAIClient:
    """Credentials and SDK handle for the OpenAI chat completions API."""

    def __init__(
        self,
        api_key: str | None = None,
        org_id: str | None = None,
        api_base: str | None = None,
        client_timeout: float | None = None,
    ) -> None:
        self.api_base = resolve_api_base(api_base)
        self.api_key = resolve_api_key(api_key, self.api_base)
        self.org_id = org_id
        self.client_timeout = client_timeout
        client_kwargs = {
            "api_key": self.api_key,
            "organization": self.org_id,
            "base_url": self.api_base,
            # Retries belong to the dispatcher; the SDK must not add its own.
            "max_retries": 0,
        }
        if self.client_timeout is not None:
            client_kwargs["timeout"] = float(self.client_timeout)
        self._client = OpenAI(**client_kwargs)

    @property
    def sdk_client(self) -> OpenAI:
        """Return the underlying OpenAI SDK client."""

        return self._client

    def __repr__(self) -> str:
        return f"OpenAIClient(api_base={self.api_base!r}, org_id={self.org_id!r})"

"""Chat messages for one scene payload."""

from __future__ import annotations

import hashlib
import json
from typing import Mapping, Sequence

from .chat_client import ChatRequest

DEFAULT_INSTRUCTIONS = (
    "You rewrite a structured scene spec into ONE cinematic paragraph for an AI image generator."
)

SCHEMA_TEMPLATE = """The user message is a JSON object with these fields:
{field_names}.
Use them verbatim as source tags; rewrite into one cohesive cinematic paragraph.
Do not invent values not present; resolve contradictions by omission only."""


def serialize_payload(payload: Mapping[str, str]) -> str:
    return json.dumps(dict(payload), indent=2, ensure_ascii=False)


def build_messages(
    payload: Mapping[str, str],
    *,
    field_names: Sequence[str],
    instructions: str = "",
) -> list[dict[str, str]]:
    """Return the ``[system, user]`` exchange for ``payload``.

    The system message lists every parameter label (even ones the payload
    omitted) ahead of the caller's instructions.
    """

    schema = SCHEMA_TEMPLATE.format(field_names=", ".join(field_names))
    system = f"{schema}\n\n{instructions or DEFAULT_INSTRUCTIONS}"
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": serialize_payload(payload)},
    ]


class SceneRequestBuilder:
    """Callable turning a payload into a :class:`ChatRequest` for the dispatcher."""

    def __init__(
        self,
        *,
        field_names: Sequence[str],
        model: str,
        instructions: str = "",
        temperature: float = 0.7,
    ) -> None:
        self.field_names = list(field_names)
        self.model = model
        self.instructions = instructions
        self.temperature = temperature

    def __call__(self, payload: Mapping[str, str]) -> ChatRequest:
        messages = build_messages(
            payload, field_names=self.field_names, instructions=self.instructions
        )
        digest = hashlib.sha1(messages[-1]["content"].encode("utf-8")).hexdigest()[:10]
        return ChatRequest(
            request_id=f"scene-{digest}",
            messages=messages,
            model=self.model,
            temperature=self.temperature,
        )


__all__ = [
    "DEFAULT_INSTRUCTIONS",
    "SceneRequestBuilder",
    "build_messages",
    "serialize_payload",
]

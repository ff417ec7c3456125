"""Dispatch of planned scene payloads to the chat completions API."""

from .chat_client import (
    AsyncChatClient,
    ChatRequest,
    ChatRequestError,
    SdkChatClient,
)
from .dispatcher import (
    BatchDispatcher,
    JobResult,
    ProgressState,
    ProgressTracker,
    dispatch,
    format_progress,
)
from .messages import DEFAULT_INSTRUCTIONS, SceneRequestBuilder, build_messages

__all__ = [
    "AsyncChatClient",
    "BatchDispatcher",
    "ChatRequest",
    "ChatRequestError",
    "DEFAULT_INSTRUCTIONS",
    "JobResult",
    "ProgressState",
    "ProgressTracker",
    "SceneRequestBuilder",
    "SdkChatClient",
    "build_messages",
    "dispatch",
    "format_progress",
]

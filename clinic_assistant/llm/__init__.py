"""LLM abstraction layer behind the remote intent classifier."""

from clinic_assistant.llm.base import (
    BaseLLM,
    LLMConnectionError,
    LLMError,
    LLMOverloadError,
    LLMResponse,
    LLMTimeoutError,
    Message,
    MessageRole,
)
from clinic_assistant.llm.router import LLMRouter, create_router_from_settings

__all__ = [
    "BaseLLM",
    "LLMConnectionError",
    "LLMError",
    "LLMOverloadError",
    "LLMResponse",
    "LLMRouter",
    "LLMTimeoutError",
    "Message",
    "MessageRole",
    "create_router_from_settings",
]

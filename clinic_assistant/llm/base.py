"""Provider-neutral contract for the models that classify chat messages.

A classifier call is a single system prompt plus one user turn, answered with
a JSON object. Providers translate their SDK errors into the ``LLMError``
family so the router can decide between retrying and failing over.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class MessageRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class Message:
    """One prompt turn."""

    role: MessageRole
    content: str

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role=MessageRole.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=MessageRole.USER, content=content)

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


@dataclass
class LLMResponse:
    """Raw model answer plus the token counts recorded in telemetry."""

    content: str
    model: str
    input_tokens: int = 0
    output_tokens: int = 0
    stop_reason: Optional[str] = None


class LLMError(Exception):
    """A model call failed."""


class LLMConnectionError(LLMError):
    """The provider could not be reached or rejected the request."""


class LLMTimeoutError(LLMError):
    """The provider did not answer in time. Retried by the router."""


class LLMOverloadError(LLMError):
    """The provider is rate limiting or overloaded. Retried by the router."""


def split_system_prompt(messages: list[Message]) -> tuple[str, list[Message]]:
    """Separate system turns from the conversation.

    Anthropic and Gemini take the system prompt as a request field rather
    than as a turn.
    """
    system = "\n\n".join(m.content for m in messages if m.role == MessageRole.SYSTEM)
    turns = [m for m in messages if m.role != MessageRole.SYSTEM]
    return system, turns


def strip_code_fences(content: str) -> str:
    """Remove a surrounding ```json ... ``` block, if any."""
    text = content.strip()
    if text.startswith("```"):
        lines = text.split("\n")
        if lines[-1].strip() == "```":
            text = "\n".join(lines[1:-1])
        else:
            text = "\n".join(lines[1:])
    return text.replace("```", "").strip()


class BaseLLM(ABC):
    """A chat model that can answer a classifier prompt."""

    @property
    @abstractmethod
    def provider(self) -> str:
        """Short provider tag used in logs and telemetry ('gemini', 'local', 'anthropic')."""

    @property
    @abstractmethod
    def model_name(self) -> str:
        pass

    @abstractmethod
    async def complete(
        self,
        messages: list[Message],
        *,
        temperature: float = 0.0,
        max_tokens: int = 512,
        json_output: bool = False,
    ) -> LLMResponse:
        """Answer the prompt.

        Args:
            messages: System and user turns
            temperature: Sampling temperature
            max_tokens: Upper bound on generated tokens
            json_output: Ask the provider to constrain the answer to a JSON object

        Raises:
            LLMConnectionError: If the provider is unreachable or refuses the request
            LLMTimeoutError: If the request times out
            LLMOverloadError: If the provider is rate limiting
        """

    @abstractmethod
    async def health_check(self) -> bool:
        """Return True if the provider answers a cheap metadata request."""

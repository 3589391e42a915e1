"""Claude as the fallback classifier model."""

import logging

from anthropic import APIConnectionError, APIStatusError, APITimeoutError, AsyncAnthropic

from clinic_assistant.llm.base import (
    BaseLLM,
    LLMConnectionError,
    LLMError,
    LLMOverloadError,
    LLMResponse,
    LLMTimeoutError,
    Message,
    split_system_prompt,
)

logger = logging.getLogger(__name__)

# 429 rate limited, 529 overloaded
_OVERLOAD_STATUS = {429, 529}


class AnthropicLLM(BaseLLM):
    """Claude messages API.

    Claude has no JSON mode; ``json_output`` prefills the assistant turn with
    ``{`` and the brace is put back on the returned text.
    """

    def __init__(self, api_key: str, model: str = "claude-sonnet-4-20250514", timeout: int = 30):
        self._model = model
        self._timeout = timeout
        self._client = AsyncAnthropic(api_key=api_key, timeout=timeout, max_retries=0)

    @property
    def provider(self) -> str:
        return "anthropic"

    @property
    def model_name(self) -> str:
        return self._model

    def _translate(self, error: Exception) -> LLMError:
        if isinstance(error, APITimeoutError):
            return LLMTimeoutError(f"Claude did not answer within {self._timeout}s")
        if isinstance(error, APIConnectionError):
            return LLMConnectionError("Cannot reach the Anthropic API")
        if isinstance(error, APIStatusError) and error.status_code in _OVERLOAD_STATUS:
            return LLMOverloadError(f"Anthropic API returned {error.status_code}")
        return LLMConnectionError(f"Anthropic API refused the request: {error}")

    async def complete(
        self,
        messages: list[Message],
        *,
        temperature: float = 0.0,
        max_tokens: int = 512,
        json_output: bool = False,
    ) -> LLMResponse:
        system, turns = split_system_prompt(messages)
        conversation = [m.to_dict() for m in turns]
        if json_output:
            conversation.append({"role": "assistant", "content": "{"})

        try:
            response = await self._client.messages.create(
                model=self._model,
                system=system,
                messages=conversation,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except (APIConnectionError, APIStatusError) as e:
            error = self._translate(e)
            logger.warning(f"Claude call failed: {error}")
            raise error from e

        text = "".join(block.text for block in response.content if block.type == "text")
        if json_output:
            text = "{" + text
        return LLMResponse(
            content=text,
            model=response.model,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            stop_reason=response.stop_reason,
        )

    async def health_check(self) -> bool:
        try:
            await self._client.models.retrieve(self._model)
        except (APIConnectionError, APIStatusError) as e:
            logger.debug(f"Anthropic health check failed: {e}")
            return False
        return True

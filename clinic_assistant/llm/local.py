"""Self-hosted classifier model behind an OpenAI-compatible endpoint (vLLM, Ollama, TGI)."""

import logging

import httpx
from openai import APIConnectionError, APIStatusError, APITimeoutError, AsyncOpenAI, RateLimitError

from clinic_assistant.llm.base import (
    BaseLLM,
    LLMConnectionError,
    LLMError,
    LLMOverloadError,
    LLMResponse,
    LLMTimeoutError,
    Message,
)

logger = logging.getLogger(__name__)


class LocalLLM(BaseLLM):
    def __init__(
        self,
        base_url: str,
        model: str,
        timeout: int = 30,
        api_key: str = "not-needed",
    ):
        self._base_url = base_url
        self._model = model
        self._timeout = timeout
        self._client = AsyncOpenAI(
            base_url=base_url,
            api_key=api_key,
            timeout=httpx.Timeout(timeout, connect=5.0),
            max_retries=0,
        )

    @property
    def provider(self) -> str:
        return "local"

    @property
    def model_name(self) -> str:
        return self._model

    def _translate(self, error: Exception) -> LLMError:
        # APITimeoutError subclasses APIConnectionError, so it is checked first
        if isinstance(error, APITimeoutError):
            return LLMTimeoutError(f"{self._base_url} did not answer within {self._timeout}s")
        if isinstance(error, APIConnectionError):
            return LLMConnectionError(f"Cannot reach classifier model at {self._base_url}")
        if isinstance(error, RateLimitError) or (
            isinstance(error, APIStatusError) and error.status_code == 503
        ):
            return LLMOverloadError(f"Classifier model at {self._base_url} is busy")
        return LLMConnectionError(f"Classifier model at {self._base_url} refused the request: {error}")

    async def complete(
        self,
        messages: list[Message],
        *,
        temperature: float = 0.0,
        max_tokens: int = 512,
        json_output: bool = False,
    ) -> LLMResponse:
        extra = {"response_format": {"type": "json_object"}} if json_output else {}
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[m.to_dict() for m in messages],
                temperature=temperature,
                max_tokens=max_tokens,
                **extra,
            )
        except (APIConnectionError, APIStatusError) as e:
            error = self._translate(e)
            logger.warning(f"Local model call failed: {error}")
            raise error from e

        choice = response.choices[0]
        usage = response.usage
        return LLMResponse(
            content=choice.message.content or "",
            model=response.model,
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
            stop_reason=choice.finish_reason,
        )

    async def health_check(self) -> bool:
        try:
            await self._client.models.list()
        except (APIConnectionError, APIStatusError) as e:
            logger.debug(f"Local model health check failed: {e}")
            return False
        return True

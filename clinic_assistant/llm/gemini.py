"""Google Gemini implementation via the google-genai SDK."""

import logging

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types

from clinic_assistant.llm.base import (
    BaseLLM,
    LLMConnectionError,
    LLMOverloadError,
    LLMResponse,
    LLMTimeoutError,
    Message,
    MessageRole,
    split_system_prompt,
)

logger = logging.getLogger(__name__)

_OVERLOAD_CODES = {429, 503}


class GeminiLLM(BaseLLM):
    """Gemini model used as the primary remote classifier."""

    def __init__(self, api_key: str, model: str = "gemini-2.5-flash"):
        self._model = model
        self._client = genai.Client(api_key=api_key)

    @property
    def provider(self) -> str:
        return "gemini"

    @property
    def model_name(self) -> str:
        return self._model

    @staticmethod
    def _contents(turns: list[Message]) -> list[genai_types.Content]:
        return [
            genai_types.Content(
                role="model" if m.role == MessageRole.ASSISTANT else "user",
                parts=[genai_types.Part.from_text(text=m.content)],
            )
            for m in turns
        ]

    async def complete(
        self,
        messages: list[Message],
        *,
        temperature: float = 0.0,
        max_tokens: int = 512,
        json_output: bool = False,
    ) -> LLMResponse:
        system, turns = split_system_prompt(messages)
        config = genai_types.GenerateContentConfig(
            system_instruction=system or None,
            temperature=temperature,
            max_output_tokens=max_tokens,
            response_mime_type="application/json" if json_output else None,
        )

        try:
            response = await self._client.aio.models.generate_content(
                model=self._model,
                contents=self._contents(turns),
                config=config,
            )
        except genai_errors.APIError as e:
            if e.code in _OVERLOAD_CODES:
                logger.warning(f"Gemini overloaded ({e.code}): {e}")
                raise LLMOverloadError(f"Gemini API returned {e.code}") from e
            logger.warning(f"Gemini API error: {e}")
            raise LLMConnectionError(f"Gemini API error {e.code}") from e
        except httpx.TimeoutException as e:
            logger.warning(f"Gemini timeout: {e}")
            raise LLMTimeoutError("Gemini request timed out") from e
        except httpx.HTTPError as e:
            logger.warning(f"Gemini connection error: {e}")
            raise LLMConnectionError("Failed to connect to Gemini API") from e

        usage = response.usage_metadata
        finish_reason = None
        if response.candidates and response.candidates[0].finish_reason:
            finish_reason = str(response.candidates[0].finish_reason)
        return LLMResponse(
            content=response.text or "",
            model=self._model,
            input_tokens=(usage.prompt_token_count or 0) if usage else 0,
            output_tokens=(usage.candidates_token_count or 0) if usage else 0,
            stop_reason=finish_reason,
        )

    async def health_check(self) -> bool:
        try:
            await self._client.aio.models.get(model=self._model)
        except (genai_errors.APIError, httpx.HTTPError) as e:
            logger.debug(f"Gemini health check failed: {e}")
            return False
        return True

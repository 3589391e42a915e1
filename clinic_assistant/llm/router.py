"""Model routing for the remote classifier: primary provider, retries, fallback."""

import logging
from typing import Iterator, Optional

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from clinic_assistant.llm.base import (
    BaseLLM,
    LLMError,
    LLMOverloadError,
    LLMResponse,
    LLMTimeoutError,
    Message,
)
from clinic_assistant.observability import get_observability_logger

logger = logging.getLogger(__name__)


class LLMRouter:
    """Sends classifier prompts to the primary model and fails over to the fallback.

    Timeouts and overload are retried on the same provider with exponential
    backoff. Any other ``LLMError`` moves straight on to the fallback. After
    ``failure_threshold`` consecutive primary failures the primary is skipped
    until a call succeeds on it again; with no fallback configured it is
    always tried.
    """

    def __init__(
        self,
        primary: BaseLLM,
        fallback: Optional[BaseLLM] = None,
        max_retries: int = 3,
        failure_threshold: int = 3,
    ):
        self.primary = primary
        self.fallback = fallback
        self.max_retries = max_retries
        self._failure_threshold = failure_threshold
        self._consecutive_failures = 0

    @property
    def primary_healthy(self) -> bool:
        return self._consecutive_failures < self._failure_threshold

    @property
    def active_provider(self) -> str:
        if self.primary_healthy:
            return self.primary.provider
        if self.fallback:
            return self.fallback.provider
        return "none"

    def _candidates(self) -> Iterator[tuple[BaseLLM, bool]]:
        if self.primary_healthy or self.fallback is None:
            yield self.primary, False
        if self.fallback is not None:
            yield self.fallback, True

    async def complete(
        self,
        messages: list[Message],
        *,
        temperature: float = 0.0,
        max_tokens: int = 512,
        json_output: bool = False,
        request_id: Optional[str] = None,
    ) -> LLMResponse:
        """Answer the prompt with the first provider that succeeds.

        Raises:
            LLMError: The last provider's error when every candidate failed
        """
        obs = get_observability_logger()
        request_id = request_id or obs.generate_request_id()
        last_error: Optional[LLMError] = None

        for llm, is_fallback in self._candidates():
            if is_fallback and last_error is not None:
                obs.log_llm_fallback(
                    from_provider=self.primary.provider,
                    to_provider=llm.provider,
                    reason=str(last_error),
                    request_id=request_id,
                )
            try:
                response = await self._call(
                    llm, messages, temperature, max_tokens, json_output, request_id, is_fallback
                )
            except LLMError as e:
                if not is_fallback:
                    self._consecutive_failures += 1
                logger.warning(f"{llm.provider} model failed: {e}")
                last_error = e
                continue

            if is_fallback:
                logger.info(f"Fallback model ({llm.provider}) answered")
            else:
                self._consecutive_failures = 0
            return response

        raise last_error

    async def _call(
        self,
        llm: BaseLLM,
        messages: list[Message],
        temperature: float,
        max_tokens: int,
        json_output: bool,
        request_id: str,
        is_fallback: bool,
    ) -> LLMResponse:
        obs = get_observability_logger()
        with obs.llm_call(
            provider=llm.provider,
            model=llm.model_name,
            messages=[m.to_dict() for m in messages],
            temperature=temperature,
            max_tokens=max_tokens,
            request_id=request_id,
        ) as event:
            event.is_fallback = is_fallback
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type((LLMTimeoutError, LLMOverloadError)),
                stop=stop_after_attempt(max(1, self.max_retries)),
                wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
                reraise=True,
            ):
                with attempt:
                    response = await llm.complete(
                        messages,
                        temperature=temperature,
                        max_tokens=max_tokens,
                        json_output=json_output,
                    )
            event.response_content = response.content
            event.input_tokens = response.input_tokens
            event.output_tokens = response.output_tokens
            return response

    async def health_check(self) -> dict[str, bool]:
        result = {"primary": await self.primary.health_check()}
        if self.fallback:
            result["fallback"] = await self.fallback.health_check()
        return result


def create_router_from_settings() -> LLMRouter:
    """Build the router for the configured providers.

    Gemini is primary when selected and keyed, otherwise the local
    OpenAI-compatible server. Claude is the fallback when keyed.
    """
    from clinic_assistant.config import get_settings
    from clinic_assistant.llm.anthropic_llm import AnthropicLLM
    from clinic_assistant.llm.gemini import GeminiLLM
    from clinic_assistant.llm.local import LocalLLM

    settings = get_settings()

    if settings.llm_primary == "gemini" and settings.has_gemini_key:
        primary: BaseLLM = GeminiLLM(api_key=settings.gemini_api_key, model=settings.gemini_model)
    else:
        primary = LocalLLM(
            base_url=settings.local_llm_base_url,
            model=settings.local_llm_model,
            timeout=settings.local_llm_timeout,
        )

    fallback = None
    if settings.has_anthropic_key:
        fallback = AnthropicLLM(api_key=settings.anthropic_api_key, model=settings.anthropic_model)

    return LLMRouter(primary=primary, fallback=fallback, max_retries=settings.max_retries)

"""
Completion service client.

Wraps a LangChain chat model behind a narrow request/response contract:
instructions (the cached prefix) plus content (text, optionally with an
image) in, response text out. Calls are bounded by their own timeout and
rate-limited calls are retried with exponential backoff.

Dependencies: langchain, langchain_core, tenacity
System role: Single seam between the analysis engine and the model provider
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from langchain.chat_models import init_chat_model
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, HumanMessage
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from labelcheck.configs.llm import LLMSettings
from labelcheck.core.analysis.compliance_prompts import COMPLIANCE_PROMPT
from labelcheck.core.exceptions import (
    NoContentReturnedError,
    RateLimitedError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)
from labelcheck.core.ingestion.models import ImagePayload

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompletionRequest:
    """One completion call."""

    instructions: str
    content: str
    image: ImagePayload | None = None
    expect_json: bool = False


@dataclass(frozen=True)
class CompletionResponse:
    """Text returned by the completion service."""

    text: str


def _retry_after(exc: Exception) -> int | None:
    response = getattr(exc, "response", None)
    headers = getattr(response, "headers", None)
    if not headers:
        return None
    value = headers.get("retry-after")
    try:
        return int(float(value)) if value is not None else None
    except (TypeError, ValueError):
        return None


def is_rate_limit_error(exc: Exception) -> bool:
    """True for provider exceptions that signal HTTP 429 / rate limiting."""
    status = getattr(exc, "status_code", None)
    if status is None:
        status = getattr(getattr(exc, "response", None), "status_code", None)
    return status == 429 or "ratelimit" in type(exc).__name__.lower()


def message_text(message: AIMessage) -> str:
    """Concatenate the text parts of a model message."""
    content = message.content
    if isinstance(content, str):
        return content
    parts = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


class CompletionClient:
    """Bounded, retrying access to a chat model."""

    def __init__(
        self,
        model: BaseChatModel,
        timeout_seconds: float = 120.0,
        max_retries: int = 3,
        retry_base_delay_seconds: float = 5.0,
        json_model: Any | None = None,
    ) -> None:
        """
        Initialize completion client.

        Args:
            model: LangChain chat model
            timeout_seconds: Bound on a single model call
            max_retries: Attempts made when rate limited
            retry_base_delay_seconds: First backoff delay, doubled per attempt
            json_model: Optional runnable forcing JSON output, used when a request expects JSON
        """
        self._model = model
        self._json_model = json_model
        self._timeout = timeout_seconds
        self._max_retries = max(1, max_retries)
        self._retry_base_delay = retry_base_delay_seconds

    @classmethod
    def from_settings(cls, settings: LLMSettings) -> "CompletionClient":
        """
        Build a client for the configured provider.

        Args:
            settings: LLM settings

        Returns:
            CompletionClient: Client wrapping init_chat_model
        """
        model = init_chat_model(
            settings.model,
            model_provider=settings.provider,
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
            max_retries=0,
        )
        json_model = None
        if settings.provider == "openai":
            json_model = model.bind(response_format={"type": "json_object"})

        logger.info(
            f"{__name__}:from_settings - Using {settings.provider}:{settings.model}",
            extra={"timeout_seconds": settings.request_timeout_seconds},
        )
        return cls(
            model=model,
            timeout_seconds=settings.request_timeout_seconds,
            max_retries=settings.max_retries,
            retry_base_delay_seconds=settings.retry_base_delay_seconds,
            json_model=json_model,
        )

    def build_messages(self, request: CompletionRequest) -> list:
        """
        Build provider messages: instructions as system, content as human.

        Args:
            request: Completion request

        Returns:
            list: LangChain messages
        """
        messages = COMPLIANCE_PROMPT.invoke({
            "cached_prefix": request.instructions,
            "dynamic_suffix": request.content,
        }).to_messages()

        if request.image is not None:
            messages[-1] = HumanMessage(content=[
                {"type": "text", "text": request.content},
                {"type": "image_url", "image_url": {"url": request.image.data_url, "detail": "high"}},
            ])
        return messages

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        """
        Issue a completion call.

        Args:
            request: Instructions and content

        Returns:
            CompletionResponse: Non-empty response text

        Raises:
            UpstreamTimeoutError: A call exceeded the timeout
            RateLimitedError: Still rate limited after all retries
            UpstreamUnavailableError: Network or provider failure
            NoContentReturnedError: Provider returned no text
        """
        messages = self.build_messages(request)
        model = self._json_model if request.expect_json and self._json_model is not None else self._model

        retrying = AsyncRetrying(
            retry=retry_if_exception_type(RateLimitedError),
            stop=stop_after_attempt(self._max_retries),
            wait=wait_exponential(multiplier=self._retry_base_delay, max=60),
            before_sleep=lambda retry_state: logger.warning(
                f"{__name__}:complete - Rate limited, retry "
                f"{retry_state.attempt_number}/{self._max_retries}"
            ),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                text = await self._invoke_once(model, messages)

        if not text.strip():
            raise NoContentReturnedError("Completion service returned an empty response")
        return CompletionResponse(text=text)

    async def _invoke_once(self, model: Any, messages: list) -> str:
        try:
            message = await asyncio.wait_for(model.ainvoke(messages), timeout=self._timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"{__name__}:_invoke_once - Timed out after {self._timeout}s")
            raise UpstreamTimeoutError(self._timeout) from e
        except Exception as e:
            if is_rate_limit_error(e):
                raise RateLimitedError(
                    f"Completion service rate limited the request: {e}",
                    retry_after=_retry_after(e),
                ) from e
            logger.error(
                f"{__name__}:_invoke_once - Completion call failed",
                extra={"error_type": type(e).__name__, "error_msg": str(e)},
            )
            raise UpstreamUnavailableError(
                f"Completion service error: {type(e).__name__}",
                {"error_type": type(e).__name__},
            ) from e
        return message_text(message)

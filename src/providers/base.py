"""Provider adapter: one canonical wrapper over langchain chat models."""

import asyncio
import logging
from enum import Enum
from typing import Any, Callable, Protocol

from langchain_core.messages import HumanMessage
from langchain_core.runnables import Runnable
from pydantic import BaseModel, Field, SecretStr

from src.errors import ProviderError, ProviderErrorKind

logger = logging.getLogger(__name__)

MAX_ERROR_MESSAGE = 300

_AUTH_MARKERS = (
    "invalid api key",
    "incorrect api key",
    "invalid_api_key",
    "api key not valid",
    "api_key_invalid",
    "authentication_error",
    "unauthorized",
    "unrecognizedclientexception",
    "security token included in the request is invalid",
)
_RATE_LIMIT_MARKERS = (
    "rate limit",
    "rate_limit",
    "too many requests",
    "quota",
    "throttl",
    "resource_exhausted",
    "resource has been exhausted",
)
_UNREACHABLE_MARKERS = (
    "connection refused",
    "connection error",
    "failed to establish",
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo",
    "temporary failure in name resolution",
    "timed out",
    "service unavailable",
)
# Exception class names (anywhere in the MRO) raised by provider SDKs and
# their HTTP clients when the endpoint cannot be reached.
_UNREACHABLE_TYPES = {
    "ConnectError",
    "ConnectTimeout",
    "TimeoutException",
    "APIConnectionError",
    "APITimeoutError",
    "EndpointConnectionError",
    "ConnectTimeoutError",
    "ReadTimeoutError",
    "ServiceUnavailable",
    "DeadlineExceeded",
}


class ProviderName(str, Enum):
    """Concrete generative backends."""

    OPENAI = "OpenAI"
    GEMINI = "Gemini"
    BEDROCK = "Bedrock"
    LOCAL = "Local"


class ProviderConfig(BaseModel):
    """Immutable description of how to reach one provider."""

    provider: ProviderName
    model_name: str = Field(..., min_length=1)
    temperature: float = Field(default=0.7, ge=0.0, le=1.0)
    api_key: SecretStr | None = None
    base_url: str | None = None
    region: str | None = None
    timeout_seconds: float = Field(default=120.0, gt=0.0)

    model_config = {"frozen": True}


class TextProvider(Protocol):
    """Anything that turns a prompt into raw completion text."""

    async def generate(self, prompt: str, temperature: float | None = None) -> str:
        ...


ChatModelFactory = Callable[[ProviderConfig, float], Runnable]


class ChatModelProvider:
    """
    Generate text through a langchain chat model.

    Exactly one request is issued per call; retries are left to the caller.
    Every failure surfaces as a ``ProviderError`` with a normalized kind.
    """

    def __init__(self, config: ProviderConfig, model_factory: ChatModelFactory):
        self.config = config
        self._model_factory = model_factory

    async def generate(self, prompt: str, temperature: float | None = None) -> str:
        """
        Send ``prompt`` and return the raw completion text.

        Args:
            prompt: Non-empty prompt text
            temperature: Overrides the configured temperature for this call

        Returns:
            The completion text, unparsed

        Raises:
            ProviderError: On any transport, auth or response-shape failure
        """
        if not prompt or not prompt.strip():
            raise ValueError("prompt must not be empty")

        effective_temperature = (
            self.config.temperature if temperature is None else temperature
        )
        logger.debug(
            "Calling %s model %s (temperature=%.2f)",
            self.config.provider.value,
            self.config.model_name,
            effective_temperature,
        )

        try:
            llm = self._model_factory(self.config, effective_temperature)
            message = await asyncio.wait_for(
                llm.ainvoke([HumanMessage(content=prompt)]),
                timeout=self.config.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise ProviderError(
                ProviderErrorKind.UNREACHABLE,
                f"AI API Error: no response within {self.config.timeout_seconds:g} seconds",
            ) from e
        except Exception as e:
            error = classify_provider_error(e)
            logger.warning(
                "%s call failed (%s): %s",
                self.config.provider.value,
                error.kind.value,
                error.message,
            )
            raise error from e

        return extract_text(getattr(message, "content", None))


def extract_text(content: Any) -> str:
    """
    Flatten a chat message's content into plain text.

    Some providers return a list of content blocks instead of a string.

    Raises:
        ProviderError: If the content has no textual shape
    """
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and isinstance(block.get("text"), str):
                parts.append(block["text"])
        if parts:
            return "".join(parts)
    raise ProviderError(
        ProviderErrorKind.MALFORMED_UPSTREAM_RESPONSE,
        "AI API Error: the provider returned no text content",
    )


def _status_code(exc: BaseException) -> int | None:
    for attr in ("status_code", "code", "http_status"):
        value = getattr(exc, attr, None)
        if isinstance(value, int) and not isinstance(value, bool) and 100 <= value < 600:
            return value

    response = getattr(exc, "response", None)
    if isinstance(response, dict):
        # botocore ClientError
        value = response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        if isinstance(value, int):
            return value
    elif response is not None:
        value = getattr(response, "status_code", None)
        if isinstance(value, int):
            return value
    return None


def _type_names(exc: BaseException) -> set[str]:
    return {cls.__name__ for cls in type(exc).__mro__}


def classify_provider_error(exc: BaseException) -> ProviderError:
    """
    Map any exception raised while calling a provider onto ``ProviderError``.

    Args:
        exc: Exception raised by the SDK, its HTTP client or the event loop

    Returns:
        ProviderError with a normalized kind and a readable message
    """
    if isinstance(exc, ProviderError):
        return exc

    detail = str(exc).strip() or type(exc).__name__
    message = f"AI API Error: {detail[:MAX_ERROR_MESSAGE]}"
    lowered = detail.lower()
    status = _status_code(exc)

    if isinstance(exc, (asyncio.TimeoutError, TimeoutError, ConnectionError)):
        kind = ProviderErrorKind.UNREACHABLE
    elif status in (401, 403) or any(m in lowered for m in _AUTH_MARKERS):
        kind = ProviderErrorKind.AUTHENTICATION_FAILED
    elif status == 429 or any(m in lowered for m in _RATE_LIMIT_MARKERS):
        kind = ProviderErrorKind.RATE_LIMITED
    elif status is not None and (status >= 500 or status == 408):
        kind = ProviderErrorKind.UNREACHABLE
    elif (
        _type_names(exc) & _UNREACHABLE_TYPES
        or isinstance(exc, OSError)
        or any(m in lowered for m in _UNREACHABLE_MARKERS)
    ):
        kind = ProviderErrorKind.UNREACHABLE
    else:
        kind = ProviderErrorKind.UNKNOWN

    return ProviderError(kind, message)

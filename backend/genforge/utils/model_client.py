"""
Generative model client

The engine only depends on the ModelClient contract:

    invoke(prompt, params)            -> full completion text
    invoke_streaming(prompt, params)  -> async iterator of text fragments

AnthropicModelClient is the production implementation. Any failure coming
out of it is a ModelInvocationError.
"""

import asyncio
import random
import time
from dataclasses import dataclass
from typing import AsyncIterator, Callable, List, Optional, Protocol, runtime_checkable

import httpx
from anthropic import AsyncAnthropic, APIStatusError, APIError, APIConnectionError, APITimeoutError

from genforge.core.config import Settings
from genforge.core.exceptions import ModelInvocationError
from genforge.core.logging_config import logger


RETRYABLE_ERRORS = ['overloaded_error', 'rate_limit_error', 'server_error', 'api_error']
RETRYABLE_STATUS_CODES = [429, 500, 502, 503, 529]


@dataclass(frozen=True)
class ModelParameters:
    """Per-call model parameters"""
    model: str
    temperature: float = 0.7
    max_tokens: int = 3000
    system: Optional[str] = None

    @classmethod
    def from_settings(cls, settings: Settings, system: Optional[str] = None) -> "ModelParameters":
        return cls(
            model=settings.MODEL_NAME,
            temperature=settings.MODEL_TEMPERATURE,
            max_tokens=settings.MODEL_MAX_TOKENS,
            system=system,
        )


@runtime_checkable
class ModelClient(Protocol):
    """External generative model contract"""

    async def invoke(self, prompt: str, params: ModelParameters) -> str:
        ...

    def invoke_streaming(self, prompt: str, params: ModelParameters) -> AsyncIterator[str]:
        ...


async def accumulate_stream(
    fragments: AsyncIterator[str],
    on_fragment: Optional[Callable[[str], None]] = None
) -> str:
    """
    Collect a fragment stream into the full text.

    If the stream breaks, the raised ModelInvocationError carries whatever
    text was received before the failure.
    """
    collected: List[str] = []
    try:
        async for fragment in fragments:
            collected.append(fragment)
            if on_fragment is not None:
                on_fragment(fragment)
    except ModelInvocationError as e:
        if e.partial_text is None:
            e.partial_text = ''.join(collected)
            e.details["partial_length"] = len(e.partial_text)
        raise
    except Exception as e:
        raise ModelInvocationError(
            f"Stream interrupted: {type(e).__name__}: {e}",
            partial_text=''.join(collected)
        ) from e
    return ''.join(collected)


class AnthropicModelClient:
    """Anthropic Messages API client with retry/backoff on transient errors"""

    def __init__(self, settings: Settings, async_client: Optional[AsyncAnthropic] = None):
        self.max_retries = settings.MODEL_MAX_RETRIES
        self.base_delay = settings.MODEL_RETRY_BASE_DELAY
        self.max_delay = settings.MODEL_RETRY_MAX_DELAY

        if async_client is not None:
            self.async_client = async_client
        else:
            client_kwargs = {"api_key": settings.ANTHROPIC_API_KEY}

            # Mock server or proxy
            if settings.ANTHROPIC_BASE_URL and settings.ANTHROPIC_BASE_URL.strip():
                client_kwargs["base_url"] = settings.ANTHROPIC_BASE_URL.strip()
                logger.info(f"[ModelClient] Using custom base URL: {settings.ANTHROPIC_BASE_URL}")

            client_kwargs["timeout"] = httpx.Timeout(
                connect=float(settings.MODEL_CONNECT_TIMEOUT),
                read=float(settings.MODEL_REQUEST_TIMEOUT),
                write=float(settings.MODEL_REQUEST_TIMEOUT),
                pool=float(settings.MODEL_REQUEST_TIMEOUT)
            )
            # Retries are handled here, not by the SDK
            client_kwargs["max_retries"] = 0

            self.async_client = AsyncAnthropic(**client_kwargs)

        logger.info(
            f"[ModelClient] Initialized: model={settings.MODEL_NAME}, "
            f"timeout={settings.MODEL_REQUEST_TIMEOUT}s, max_retries={self.max_retries}"
        )

    def _is_retryable_error(self, error: Exception) -> bool:
        """Check if an error is retryable (overload, rate limit, network issues)"""
        if isinstance(error, (APIConnectionError, APITimeoutError)):
            logger.warning(f"[ModelClient] Network error detected (retryable): {type(error).__name__}")
            return True

        if isinstance(error, (httpx.ConnectError, httpx.TimeoutException, httpx.NetworkError)):
            logger.warning(f"[ModelClient] HTTPX network error detected (retryable): {type(error).__name__}")
            return True

        if isinstance(error, APIStatusError):
            if isinstance(error.body, dict):
                error_type = error.body.get('error', {}).get('type', '')
                if error_type in RETRYABLE_ERRORS:
                    return True
            return error.status_code in RETRYABLE_STATUS_CODES

        if isinstance(error, APIError):
            return False

        error_str = str(error).lower()
        network_errors = ['overload', 'rate_limit', '529', '503', 'capacity',
                          'connection', 'timeout', 'network']
        return any(err in error_str for err in network_errors)

    def _calculate_retry_delay(self, attempt: int) -> float:
        """Calculate delay with exponential backoff and jitter"""
        delay = min(self.base_delay * (2 ** attempt), self.max_delay)
        # Add jitter (0-25% of delay)
        jitter = delay * random.uniform(0, 0.25)
        return delay + jitter

    async def invoke(self, prompt: str, params: ModelParameters) -> str:
        """
        Non-streaming completion

        Args:
            prompt: Rendered user prompt
            params: Model parameters (model, temperature, max_tokens, system)

        Returns:
            Completion text
        """
        logger.info(f"[ModelClient] invoke: model={params.model}, max_tokens={params.max_tokens}, prompt_len={len(prompt)}")
        start = time.monotonic()

        for attempt in range(self.max_retries + 1):
            try:
                response = await self.async_client.messages.create(
                    model=params.model,
                    max_tokens=params.max_tokens,
                    temperature=params.temperature,
                    system=params.system or "",
                    messages=[{"role": "user", "content": prompt}]
                )
                content = "".join(
                    block.text for block in response.content if getattr(block, "type", "") == "text"
                )
                logger.info(
                    f"[ModelClient] response: id={response.id}, "
                    f"tokens={response.usage.input_tokens + response.usage.output_tokens}, "
                    f"stop={response.stop_reason}"
                )
                logger.log_performance("model.invoke", (time.monotonic() - start) * 1000)
                return content

            except Exception as e:
                error_type = type(e).__name__
                retryable = self._is_retryable_error(e)
                if retryable and attempt < self.max_retries:
                    delay = self._calculate_retry_delay(attempt)
                    logger.warning(
                        f"[ModelClient] {error_type} (attempt {attempt + 1}/{self.max_retries + 1}), "
                        f"retrying in {delay:.1f}s...",
                        extra={
                            "event_type": "model_retry",
                            "error_type": error_type,
                            "attempt": attempt + 1,
                            "retry_delay": delay
                        }
                    )
                    await asyncio.sleep(delay)
                    continue

                logger.error(
                    f"[ModelClient] invoke failed (non-retryable or max retries exceeded): {error_type}: {e}",
                    extra={"event_type": "model_error", "error_type": error_type, "attempt": attempt + 1}
                )
                raise ModelInvocationError(f"{error_type}: {e}", retryable=retryable) from e

        raise ModelInvocationError("Model invocation failed without a response")

    async def invoke_streaming(self, prompt: str, params: ModelParameters) -> AsyncIterator[str]:
        """
        Streaming completion. Transient errors are retried only until the
        first fragment has been yielded.
        """
        logger.info(f"[ModelClient] stream: model={params.model}, max_tokens={params.max_tokens}, prompt_len={len(prompt)}")

        for attempt in range(self.max_retries + 1):
            has_yielded = False
            collected: List[str] = []
            try:
                async with self.async_client.messages.stream(
                    model=params.model,
                    max_tokens=params.max_tokens,
                    temperature=params.temperature,
                    system=params.system or "",
                    messages=[{"role": "user", "content": prompt}]
                ) as stream:
                    async for text in stream.text_stream:
                        has_yielded = True
                        collected.append(text)
                        yield text
                    final_message = await stream.get_final_message()

                logger.info(
                    f"[ModelClient] stream complete: id={final_message.id}, "
                    f"tokens={final_message.usage.input_tokens + final_message.usage.output_tokens}"
                )
                return

            except Exception as e:
                error_type = type(e).__name__
                retryable = self._is_retryable_error(e)
                if not has_yielded and retryable and attempt < self.max_retries:
                    delay = self._calculate_retry_delay(attempt)
                    logger.warning(
                        f"[ModelClient] stream {error_type} (attempt {attempt + 1}/{self.max_retries + 1}), "
                        f"retrying in {delay:.1f}s..."
                    )
                    await asyncio.sleep(delay)
                    continue

                logger.error(
                    f"[ModelClient] stream failed: {error_type}: {e}",
                    extra={"event_type": "model_stream_error", "has_yielded": has_yielded}
                )
                raise ModelInvocationError(
                    f"{error_type}: {e}",
                    retryable=retryable and not has_yielded,
                    partial_text=''.join(collected)
                ) from e

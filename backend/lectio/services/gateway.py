"""Model gateway: one completion call against the Anthropic Messages API."""

import asyncio
import logging
import random
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from anthropic import APIConnectionError, APIError, APIStatusError, AsyncAnthropic, RateLimitError

from lectio.config import Settings, sanitize_error
from lectio.errors import ModelUnavailableError, UpstreamError

logger = logging.getLogger(__name__)

# (role, content); oldest first
Turn = tuple[str, str]

# Transient error types that warrant retrying (APITimeoutError is an APIConnectionError)
_RETRYABLE_ERRORS = (APIConnectionError, RateLimitError)


@dataclass(frozen=True)
class Completion:
    text: str
    token_count: int


class ModelGateway(Protocol):
    async def complete(
        self,
        system_prompt: str,
        history: Sequence[Turn],
        user_message: str,
        *,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> Completion: ...


def normalize_history(history: Sequence[Turn], user_message: str) -> list[dict[str, str]]:
    """
    Build the messages list the API accepts.

    The API wants alternating user/assistant turns starting with a user turn,
    so system turns and anything before the first user turn (the greeting)
    are dropped and consecutive same-role turns are merged.
    """
    messages: list[dict[str, str]] = []
    for role, content in [*history, ("user", user_message)]:
        if role not in ("user", "assistant"):
            continue
        if not messages and role != "user":
            continue
        if messages and messages[-1]["role"] == role:
            messages[-1]["content"] += "\n\n" + content
        else:
            messages.append({"role": role, "content": content})
    return messages


def _is_retryable(error: Exception) -> bool:
    if isinstance(error, _RETRYABLE_ERRORS):
        return True
    # 529 is Overloaded
    return isinstance(error, APIStatusError) and error.status_code >= 500


class AnthropicGateway:
    """
    ``ModelGateway`` backed by ``AsyncAnthropic``.

    Built once in the application lifespan and shared by every request.
    The SDK's own retries are disabled so the policy below is the only one.
    """

    def __init__(self, settings: Settings, client: AsyncAnthropic | None = None):
        self.client = client or AsyncAnthropic(
            api_key=settings.anthropic_api_key,
            timeout=settings.llm_timeout_seconds,
            max_retries=0,
        )
        self.model = settings.llm_model
        self.max_tokens = settings.llm_max_tokens
        self.temperature = settings.llm_temperature
        self.max_attempts = settings.llm_max_attempts
        self.base_delay = settings.llm_retry_base_delay

    async def complete(
        self,
        system_prompt: str,
        history: Sequence[Turn],
        user_message: str,
        *,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> Completion:
        """
        Send one request, retrying transient failures.

        Raises:
            ModelUnavailableError: Every attempt hit a transient failure
            UpstreamError: The API rejected the request
        """
        messages = normalize_history(history, user_message)

        for attempt in range(self.max_attempts):
            try:
                response = await self.client.messages.create(
                    model=self.model,
                    max_tokens=max_tokens or self.max_tokens,
                    temperature=self.temperature if temperature is None else temperature,
                    system=system_prompt,
                    messages=messages,
                )
            except APIError as e:
                if not _is_retryable(e):
                    logger.exception("Anthropic API request failed")
                    raise UpstreamError(
                        sanitize_error(e, generic_message="Failed to generate AI response")
                    ) from e
                if attempt < self.max_attempts - 1:
                    # Full jitter
                    delay = random.uniform(0, self.base_delay * (2**attempt))
                    logger.warning(
                        "Anthropic API transient error (attempt %d/%d), retrying in %.1fs: %s",
                        attempt + 1, self.max_attempts, delay, str(e),
                    )
                    await asyncio.sleep(delay)
                    continue
                logger.error("Anthropic API unavailable after %d attempts: %s", self.max_attempts, e)
                raise ModelUnavailableError() from e

            text = "".join(block.text for block in response.content if block.type == "text")
            usage = response.usage
            return Completion(text=text, token_count=usage.input_tokens + usage.output_tokens)

        raise ModelUnavailableError()

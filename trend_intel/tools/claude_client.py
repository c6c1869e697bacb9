"""
Async Claude client for trend scoring calls.

Wraps ``anthropic.AsyncAnthropic`` (Messages API).  Anthropic is the
preferred scoring provider: with ``ANTHROPIC_API_KEY`` configured, every
raw item is scored here first.

The client only moves text.  Prompt construction, JSON parsing and schema
checks live in ``trend_intel.scoring.ai_scorer``; a failure raised here is
turned into a fallback score by the adapter.
"""

import logging
import os
from typing import Any, Dict, Optional

import anthropic
from anthropic import AsyncAnthropic

from trend_intel.exceptions import ProviderError
from trend_intel.models import ScoringMethod
from trend_intel.utils import with_retry

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-5-20250929"

# Scoring wants repeatable JSON, not creative variety.
SCORING_TEMPERATURE = 0.3

# Worth one more attempt; auth and bad-request errors are final.
TRANSIENT_ERRORS = (
    anthropic.APIConnectionError,
    anthropic.RateLimitError,
    anthropic.InternalServerError,
)


class ClaudeClient:
    """Async Claude client returning plain text.

    Args:
        api_key: Anthropic API key; ``ANTHROPIC_API_KEY`` when omitted.
        model: Model identifier.
        max_tokens: Response token ceiling per call.
        temperature: Sampling temperature.

    Raises:
        KeyError: If no key is passed and the environment has none.

    Usage::

        client = ClaudeClient(model=settings.anthropic_model)
        text = await client.generate(build_prompt(raw))
    """

    method = ScoringMethod.ANTHROPIC

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        max_tokens: int = 2000,
        temperature: float = SCORING_TEMPERATURE,
    ) -> None:
        self.client = AsyncAnthropic(api_key=api_key or os.environ["ANTHROPIC_API_KEY"])
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._usage = {"input_tokens": 0, "output_tokens": 0}

    @with_retry(max_attempts=2, base_delay=1.0, retryable_exceptions=TRANSIENT_ERRORS)
    async def generate(self, prompt: str, system: Optional[str] = None) -> str:
        """Send one user message and return the concatenated text blocks.

        Raises:
            ProviderError: If the reply holds no text block.
            RetryExhaustedError: If both attempts hit a transient error.
        """
        request: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            request["system"] = system

        response = await self.client.messages.create(**request)

        usage = response.usage
        self._usage["input_tokens"] += usage.input_tokens
        self._usage["output_tokens"] += usage.output_tokens
        logger.debug(
            "[PROVIDER] Claude %s: in=%d out=%d tokens",
            self.model,
            usage.input_tokens,
            usage.output_tokens,
        )

        texts = [
            block.text
            for block in response.content or []
            if getattr(block, "type", None) == "text"
        ]
        if not texts:
            raise ProviderError("Claude response contained no text block")
        return "".join(texts)

    @property
    def usage_stats(self) -> Dict[str, int]:
        """Cumulative token usage of this client."""
        return dict(self._usage)

    def reset_usage(self) -> None:
        self._usage = {"input_tokens": 0, "output_tokens": 0}

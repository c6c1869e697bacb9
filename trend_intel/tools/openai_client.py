"""
Async OpenAI chat-completions client.

Uses ``httpx`` to call the ``/chat/completions`` endpoint directly.  This
is the secondary scoring provider, used when ``OPENAI_API_KEY`` is set and
no Anthropic key is configured.

Transient HTTP errors are retried with exponential backoff; permanent
failures propagate to the caller.
"""

import logging
import os
from typing import Any, Dict, Optional

import httpx

from trend_intel.exceptions import ProviderError
from trend_intel.models import ScoringMethod
from trend_intel.utils import with_retry

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o"


class OpenAIClient:
    """Async wrapper around the OpenAI chat-completions API.

    Args:
        api_key: OpenAI API key.  Falls back to the ``OPENAI_API_KEY``
            environment variable.
        model: Chat model name.
        max_tokens: Response token ceiling per call.
        timeout: Per-request HTTP timeout in seconds.

    Usage::

        client = OpenAIClient()
        text = await client.generate("Analyze this trend item ...")
    """

    BASE_URL: str = "https://api.openai.com/v1"

    method = ScoringMethod.OPENAI

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        max_tokens: int = 2000,
        timeout: float = 30.0,
    ) -> None:
        self.api_key: str = api_key or os.environ.get("OPENAI_API_KEY", "")
        self.model = model
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._total_input_tokens: int = 0
        self._total_output_tokens: int = 0

    @with_retry(
        max_attempts=2,
        base_delay=1.0,
        retryable_exceptions=(httpx.TransportError,),
    )
    async def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                f"{self.BASE_URL}/chat/completions",
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json=payload,
            )
            response.raise_for_status()
            return response.json()

    async def generate(self, prompt: str, system: Optional[str] = None) -> str:
        """Generate a plain-text response from the model.

        Args:
            prompt: The user message content.
            system: Optional system prompt.

        Returns:
            The content of the first choice.

        Raises:
            httpx.HTTPStatusError: On non-2xx responses.
            ProviderError: If the response has no message content.
        """
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        data = await self._post(
            {
                "model": self.model,
                "messages": messages,
                "max_tokens": self.max_tokens,
            }
        )

        usage = data.get("usage") or {}
        self._total_input_tokens += usage.get("prompt_tokens", 0)
        self._total_output_tokens += usage.get("completion_tokens", 0)

        logger.debug(
            "OpenAI generate: in=%d out=%d tokens",
            usage.get("prompt_tokens", 0),
            usage.get("completion_tokens", 0),
        )

        choices = data.get("choices") or []
        content = choices[0].get("message", {}).get("content") if choices else None
        if not content:
            raise ProviderError("OpenAI response contained no message content")
        return content

    @property
    def usage_stats(self) -> Dict[str, int]:
        """Cumulative token usage since this client was instantiated."""
        return {
            "input_tokens": self._total_input_tokens,
            "output_tokens": self._total_output_tokens,
        }

    def reset_usage(self) -> None:
        self._total_input_tokens = 0
        self._total_output_tokens = 0

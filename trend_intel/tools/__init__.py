"""
External LLM provider clients for trend scoring.

- ClaudeClient: Anthropic Claude API (preferred provider)
- OpenAIClient: OpenAI chat-completions over httpx (secondary provider)
- build_provider(): pick the client matching the configured ScoringMode
"""

import logging
from typing import Optional, Union

from trend_intel.config import ScoringMode, Settings
from trend_intel.tools.claude_client import ClaudeClient
from trend_intel.tools.openai_client import OpenAIClient

logger = logging.getLogger(__name__)

LLMProvider = Union[ClaudeClient, OpenAIClient]


def build_provider(settings: Settings) -> Optional[LLMProvider]:
    """Create the provider client for ``settings.scoring_mode()``.

    Returns:
        A configured client, or ``None`` in fallback mode.
    """
    mode = settings.scoring_mode()
    if mode is ScoringMode.ANTHROPIC:
        logger.info("[PROVIDER] Using Anthropic model %s", settings.anthropic_model)
        return ClaudeClient(
            api_key=settings.anthropic_api_key,
            model=settings.anthropic_model,
            max_tokens=settings.max_tokens,
        )
    if mode is ScoringMode.OPENAI:
        logger.info("[PROVIDER] Using OpenAI model %s", settings.openai_model)
        return OpenAIClient(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            max_tokens=settings.max_tokens,
        )
    logger.warning(
        "[PROVIDER] No AI provider configured. Items will be processed with fallback logic."
    )
    return None


__all__ = [
    "ClaudeClient",
    "OpenAIClient",
    "LLMProvider",
    "build_provider",
]

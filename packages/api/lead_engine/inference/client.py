# This project was developed with assistance from AI tools.
"""Thin OpenAI-compatible LLM client.

Wraps the openai Python SDK with a configurable base_url so document
classification works against any OpenAI-compatible vision endpoint.
"""

import logging
from typing import Any

from openai import AsyncOpenAI

from ..core.config import settings

logger = logging.getLogger(__name__)

_client: AsyncOpenAI | None = None


def _get_client() -> AsyncOpenAI:
    """Return the cached AsyncOpenAI client (avoids re-creating HTTP connections)."""
    global _client  # noqa: PLW0603
    if _client is None:
        _client = AsyncOpenAI(base_url=settings.LLM_BASE_URL, api_key=settings.LLM_API_KEY)
    return _client


def clear_client_cache() -> None:
    """Drop the cached client (useful after settings change)."""
    global _client  # noqa: PLW0603
    _client = None


async def get_completion(
    messages: list[dict[str, Any]],
    model: str | None = None,
    **kwargs: Any,
) -> str:
    """Get a non-streaming completion from the classifier model."""
    client = _get_client()
    response = await client.chat.completions.create(
        model=model or settings.LLM_CLASSIFIER_MODEL,
        messages=messages,
        **kwargs,
    )
    return response.choices[0].message.content or ""

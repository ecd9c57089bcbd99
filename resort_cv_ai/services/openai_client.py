"""Shared AsyncOpenAI client with the configured timeout and retry budget."""

from typing import Optional

from openai import AsyncOpenAI

from resort_cv_ai.config import LLM_MAX_RETRIES, LLM_TIMEOUT_SECONDS, OPENAI_API_KEY

_client: Optional[AsyncOpenAI] = None


def get_openai_client() -> Optional[AsyncOpenAI]:
    """Return the process-wide client, or None when OPENAI_API_KEY is not set."""
    global _client
    if not OPENAI_API_KEY:
        return None
    if _client is None:
        _client = AsyncOpenAI(
            api_key=OPENAI_API_KEY,
            timeout=LLM_TIMEOUT_SECONDS,
            max_retries=LLM_MAX_RETRIES,
        )
    return _client

"""LLM classification of CV text into the closed recruiting taxonomy."""

import json
import re
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Optional

from openai import AsyncOpenAI

from resort_cv_ai.config import (
    MODEL_NAME,
    PARSER_MAX_INPUT_CHARS,
    PARSER_MAX_TOKENS,
    PARSER_TEMPERATURE,
)
from resort_cv_ai.services.openai_client import get_openai_client
from resort_cv_ai.taxonomy import build_parser_prompt
from resort_cv_ai.utils.logger import get_logger

logger = get_logger(__name__)

# Loosely-typed parser output: category name -> str | list | mapping
ParsedCV = Dict[str, Any]


class CVParseError(RuntimeError):
    """The parser could not produce a JSON object for the CV."""


def parse_llm_json(text: str) -> Optional[dict]:
    """Parse JSON from LLM response, stripping markdown code blocks if present."""
    raw = (text or "").strip()
    if raw.startswith("```"):
        raw = re.sub(r"^```(?:json)?\s*", "", raw)
        raw = re.sub(r"\s*```$", "", raw)
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return None


class CVParser(ABC):
    @abstractmethod
    async def parse(self, text: str) -> ParsedCV:
        """Classify CV text. Raises CVParseError on failure."""
        ...


class OpenAICVParser(CVParser):
    """Chat-completion parser in JSON mode."""

    def __init__(
        self,
        client: Optional[AsyncOpenAI],
        model: str = MODEL_NAME,
        max_input_chars: int = PARSER_MAX_INPUT_CHARS,
    ) -> None:
        self._client = client
        self._model = model
        self._max_input_chars = max_input_chars

    async def parse(self, text: str) -> ParsedCV:
        if self._client is None:
            raise CVParseError("OPENAI_API_KEY is not set in environment variables")
        content = (text or "")[: self._max_input_chars].strip()
        if not content:
            raise CVParseError("No CV text to parse")
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": build_parser_prompt(datetime.now().year)},
                    {"role": "user", "content": content},
                ],
                temperature=PARSER_TEMPERATURE,
                max_tokens=PARSER_MAX_TOKENS,
                response_format={"type": "json_object"},
            )
        except Exception as e:
            logger.exception("CV parsing request failed: %s", e)
            raise CVParseError(f"Failed to parse CV: {e}") from e

        choice = response.choices[0] if response.choices else None
        if not choice or not choice.message or not choice.message.content:
            raise CVParseError("Failed to parse CV: empty response from OpenAI")
        parsed = parse_llm_json(choice.message.content)
        if not isinstance(parsed, dict):
            logger.warning("Unparsable parser response: %s", choice.message.content[:200])
            raise CVParseError("Failed to parse CV: response is not a JSON object")
        logger.info("Parsed CV into %s categories", len(parsed))
        return parsed


def get_cv_parser(client: Optional[AsyncOpenAI] = None) -> CVParser:
    client = client or get_openai_client()
    if client is None:
        logger.error("OPENAI_API_KEY is not set; CV parsing will fail")
    return OpenAICVParser(client)

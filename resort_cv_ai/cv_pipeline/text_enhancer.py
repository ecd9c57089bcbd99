"""LLM cleanup of extracted CV text. Best-effort: never raises, falls back to the input."""

from abc import ABC, abstractmethod
from typing import Optional

from openai import AsyncOpenAI

from resort_cv_ai.config import (
    ENHANCER_MAX_INPUT_CHARS,
    ENHANCER_MAX_TOKENS,
    ENHANCER_TEMPERATURE,
    MODEL_NAME,
)
from resort_cv_ai.services.openai_client import get_openai_client
from resort_cv_ai.utils.logger import get_logger

logger = get_logger(__name__)

ENHANCER_SYSTEM_PROMPT = "You are a professional CV enhancer."

ENHANCER_INSTRUCTIONS = """Improve the following CV text, which was extracted from a document by a parser or OCR:
- Fix OCR artifacts, broken words, grammatical and spelling errors
- Normalize the structure into clear sections with consistent formatting
- Preserve ALL original information: contact details, education, work experience, skills, languages and certifications
- Do not drop content and do not add fictitious information
- Return only the improved CV text

CV text:
"""


class TextEnhancer(ABC):
    @abstractmethod
    async def enhance(self, text: str) -> str:
        """Return improved text; must return the input unchanged on any failure."""
        ...


class PassthroughTextEnhancer(TextEnhancer):
    """Used when no LLM is configured."""

    async def enhance(self, text: str) -> str:
        return text


class OpenAITextEnhancer(TextEnhancer):
    """Chat-completion enhancer."""

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str = MODEL_NAME,
        max_input_chars: int = ENHANCER_MAX_INPUT_CHARS,
    ) -> None:
        self._client = client
        self._model = model
        self._max_input_chars = max_input_chars

    async def enhance(self, text: str) -> str:
        if not text or not text.strip():
            return text
        content = text[: self._max_input_chars]
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": ENHANCER_SYSTEM_PROMPT},
                    {"role": "user", "content": ENHANCER_INSTRUCTIONS + content},
                ],
                temperature=ENHANCER_TEMPERATURE,
                max_tokens=ENHANCER_MAX_TOKENS,
            )
            choice = response.choices[0] if response.choices else None
            enhanced = choice.message.content if choice and choice.message else None
            if not enhanced or not enhanced.strip():
                logger.warning("Enhancement returned empty text; using original text")
                return text
            logger.info("Enhanced CV text: %s -> %s characters", len(text), len(enhanced))
            return enhanced.strip()
        except Exception as e:
            logger.exception("CV text enhancement failed; using original text: %s", e)
            return text


def get_text_enhancer(client: Optional[AsyncOpenAI] = None) -> TextEnhancer:
    """Return the configured enhancer; passthrough when no OpenAI client is available."""
    client = client or get_openai_client()
    if client is None:
        logger.warning("OPENAI_API_KEY not set; CV text enhancement disabled")
        return PassthroughTextEnhancer()
    return OpenAITextEnhancer(client)

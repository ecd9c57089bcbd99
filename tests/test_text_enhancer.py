"""Tests for the LLM text enhancer."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

from resort_cv_ai.cv_pipeline.text_enhancer import (
    OpenAITextEnhancer,
    PassthroughTextEnhancer,
    get_text_enhancer,
)

RAW_TEXT = "Jane  Doe\nFront 0ffice agent, 4 yeras at a luxury resort"


def make_client(content=None, error=None):
    client = MagicMock()
    if error is not None:
        client.chat.completions.create = AsyncMock(side_effect=error)
    else:
        response = MagicMock()
        response.choices = [MagicMock()]
        response.choices[0].message.content = content
        client.chat.completions.create = AsyncMock(return_value=response)
    return client


class TestOpenAITextEnhancer:
    """Tests for OpenAITextEnhancer."""

    def test_returns_enhanced_text(self):
        """Test the model output replaces the input."""
        client = make_client("Jane Doe\nFront Office agent, 4 years at a luxury resort\n")
        enhanced = asyncio.run(OpenAITextEnhancer(client).enhance(RAW_TEXT))

        assert enhanced == "Jane Doe\nFront Office agent, 4 years at a luxury resort"

    def test_client_error_returns_input_unchanged(self):
        """Test any remote failure degrades to the original text without raising."""
        for error in (RuntimeError("quota exceeded"), TimeoutError("timed out"), ValueError("bad response")):
            client = make_client(error=error)
            assert asyncio.run(OpenAITextEnhancer(client).enhance(RAW_TEXT)) == RAW_TEXT

    def test_empty_response_returns_input(self):
        """Test empty or missing content falls back to the input."""
        for content in (None, "", "   "):
            client = make_client(content)
            assert asyncio.run(OpenAITextEnhancer(client).enhance(RAW_TEXT)) == RAW_TEXT

    def test_malformed_response_returns_input(self):
        """Test a response without choices falls back to the input."""
        client = MagicMock()
        response = MagicMock()
        response.choices = []
        client.chat.completions.create = AsyncMock(return_value=response)

        assert asyncio.run(OpenAITextEnhancer(client).enhance(RAW_TEXT)) == RAW_TEXT

    def test_input_is_truncated(self):
        """Test only the first max_input_chars characters are sent."""
        client = make_client("enhanced")
        asyncio.run(OpenAITextEnhancer(client, max_input_chars=10).enhance("x" * 50))

        kwargs = client.chat.completions.create.call_args.kwargs
        user_message = kwargs["messages"][-1]["content"]
        assert user_message.endswith("x" * 10)
        assert "x" * 11 not in user_message
        assert "Preserve ALL original information" in user_message
        assert kwargs["temperature"] == 0.5

    def test_blank_input_skips_call(self):
        client = make_client("should not be used")
        assert asyncio.run(OpenAITextEnhancer(client).enhance("  ")) == "  "
        client.chat.completions.create.assert_not_called()


class TestGetTextEnhancer:
    """Tests for get_text_enhancer."""

    def test_passthrough_without_key(self):
        """Test no API key gives the passthrough enhancer."""
        with patch("resort_cv_ai.cv_pipeline.text_enhancer.get_openai_client", return_value=None):
            enhancer = get_text_enhancer()

        assert isinstance(enhancer, PassthroughTextEnhancer)
        assert asyncio.run(enhancer.enhance(RAW_TEXT)) == RAW_TEXT

    def test_openai_with_client(self):
        assert isinstance(get_text_enhancer(make_client("x")), OpenAITextEnhancer)

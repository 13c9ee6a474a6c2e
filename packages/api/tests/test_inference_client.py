# This project was developed with assistance from AI tools.
"""Tests for the OpenAI-compatible classifier client."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from lead_engine.core.config import settings
from lead_engine.inference import client as client_module
from lead_engine.inference.client import clear_client_cache, get_completion


@pytest.fixture(autouse=True)
def _reset_client():
    clear_client_cache()
    yield
    clear_client_cache()


def _fake_openai(content):
    fake = MagicMock()
    choice = MagicMock()
    choice.message.content = content
    fake.chat.completions.create = AsyncMock(return_value=MagicMock(choices=[choice]))
    return fake


@patch.object(client_module, "AsyncOpenAI")
async def test_get_completion_uses_classifier_model(mock_openai):
    fake = _fake_openai('{"detected_type": "pan_card"}')
    mock_openai.return_value = fake

    text = await get_completion([{"role": "user", "content": "hi"}])

    assert text == '{"detected_type": "pan_card"}'
    kwargs = fake.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == settings.LLM_CLASSIFIER_MODEL
    mock_openai.assert_called_once_with(
        base_url=settings.LLM_BASE_URL, api_key=settings.LLM_API_KEY
    )


@patch.object(client_module, "AsyncOpenAI")
async def test_empty_message_content_becomes_empty_string(mock_openai):
    mock_openai.return_value = _fake_openai(None)
    assert await get_completion([], model="other-model") == ""


@patch.object(client_module, "AsyncOpenAI")
async def test_client_is_cached_until_cleared(mock_openai):
    mock_openai.side_effect = [_fake_openai("a"), _fake_openai("b")]

    assert await get_completion([]) == "a"
    assert await get_completion([]) == "a"
    clear_client_cache()
    assert await get_completion([]) == "b"
    assert mock_openai.call_count == 2

"""Unit tests for the AI client and photo classifier"""
import json
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from challenge_bot.exceptions import AIServiceError, ConfigurationError
from challenge_bot.services.ai_client import AIClient, extract_json, split_model
from challenge_bot.services.photo_classifier import PhotoClassifier


def anthropic_response(text: str) -> MagicMock:
    block = MagicMock()
    block.type = "text"
    block.text = text
    response = MagicMock()
    response.content = [block]
    return response


def openai_response(text: str) -> MagicMock:
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = text
    return response


class TestExtractJson:

    def test_plain_json(self):
        assert extract_json('{"a": 1}') == {"a": 1}

    def test_json_fence(self):
        assert extract_json('Here you go:\n```json\n{"a": 2}\n```\nDone') == {"a": 2}

    def test_bare_fence(self):
        assert extract_json('```\n[1, 2]\n```') == [1, 2]

    def test_not_json(self):
        with pytest.raises(json.JSONDecodeError):
            extract_json("I can't help with that")


class TestSplitModel:

    def test_provider_prefix(self):
        assert split_model("openai:gpt-4o") == ("openai", "gpt-4o")

    def test_bare_name_is_anthropic(self):
        assert split_model("claude-3-5-haiku-latest") == ("anthropic", "claude-3-5-haiku-latest")

    def test_empty_name_uses_provider_default(self):
        assert split_model("openai:") == ("openai", "gpt-4o-mini")


class TestAIClient:

    @pytest.mark.asyncio
    async def test_anthropic_call(self):
        anthropic_client = MagicMock()
        anthropic_client.messages.create = AsyncMock(return_value=anthropic_response("hello"))
        client = AIClient("anthropic:claude-test", anthropic_client=anthropic_client)

        result = await client.complete("system prompt", "hi")

        assert result == "hello"
        kwargs = anthropic_client.messages.create.call_args.kwargs
        assert kwargs["model"] == "claude-test"
        assert kwargs["system"] == "system prompt"
        assert kwargs["messages"][0]["content"][-1] == {"type": "text", "text": "hi"}

    @pytest.mark.asyncio
    async def test_anthropic_image_sent_as_base64(self):
        anthropic_client = MagicMock()
        anthropic_client.messages.create = AsyncMock(return_value=anthropic_response("{}"))
        client = AIClient("anthropic:claude-test", anthropic_client=anthropic_client)

        await client.complete("s", "what is this", image=b"\x89PNG", media_type="image/png")

        content = anthropic_client.messages.create.call_args.kwargs["messages"][0]["content"]
        assert content[0]["type"] == "image"
        assert content[0]["source"]["media_type"] == "image/png"
        assert content[0]["source"]["data"] == "iVBORw=="

    @pytest.mark.asyncio
    async def test_openai_call_and_model_override(self):
        openai_client = MagicMock()
        openai_client.chat.completions.create = AsyncMock(return_value=openai_response('{"ok": true}'))
        client = AIClient("anthropic:claude-test", openai_client=openai_client)

        result = await client.complete_json("s", "p", model="openai:gpt-4o-mini")

        assert result == {"ok": True}
        kwargs = openai_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["messages"][0] == {"role": "system", "content": "s"}

    @pytest.mark.asyncio
    async def test_complete_json_rejects_prose(self):
        anthropic_client = MagicMock()
        anthropic_client.messages.create = AsyncMock(return_value=anthropic_response("Sure! It was eggs."))
        client = AIClient("anthropic:claude-test", anthropic_client=anthropic_client)

        with pytest.raises(AIServiceError):
            await client.complete_json("s", "p")

    @pytest.mark.asyncio
    async def test_unknown_provider(self):
        with pytest.raises(ConfigurationError):
            await AIClient("mistral:large").complete("s", "p")

    @pytest.mark.asyncio
    async def test_missing_api_key(self):
        with patch("challenge_bot.services.ai_client.ANTHROPIC_API_KEY", ""):
            with pytest.raises(ConfigurationError):
                await AIClient("anthropic:claude-test").complete("s", "p")


class TestPhotoClassifier:

    @pytest.mark.asyncio
    async def test_workout_screenshot(self, mock_ai_client):
        mock_ai_client.complete_json.return_value = {
            "kind": "workout_screenshot",
            "duration_mins": 47,
            "calories_burned": 512,
            "hr_avg": 141,
            "hr_max": 172,
            "workout_type": "Running",
        }
        result = await PhotoClassifier(mock_ai_client).classify(b"img")

        assert result.is_workout is True
        assert result.calories_burned == 512
        assert mock_ai_client.complete_json.call_args.kwargs["image"] == b"img"

    @pytest.mark.asyncio
    async def test_progress_pic(self, mock_ai_client):
        mock_ai_client.complete_json.return_value = {"kind": "progress_pic"}
        assert (await PhotoClassifier(mock_ai_client).classify(b"img")).is_workout is False

    @pytest.mark.asyncio
    async def test_ai_failure_is_progress_pic(self, mock_ai_client):
        mock_ai_client.complete_json.side_effect = AIServiceError("down", provider="Anthropic")
        result = await PhotoClassifier(mock_ai_client).classify(b"img")
        assert result.kind == "progress_pic"

    @pytest.mark.asyncio
    async def test_unexpected_kind_is_progress_pic(self, mock_ai_client):
        mock_ai_client.complete_json.return_value = {"kind": "cat_photo"}
        result = await PhotoClassifier(mock_ai_client).classify(b"img")
        assert result.kind == "progress_pic"

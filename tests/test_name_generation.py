"""Unit tests for OpenAI-backed candidate generation (the client is mocked)."""

import asyncio
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from openai import APIConnectionError, APIStatusError

from gokaku.api.naming.schemas import DEFAULT_POLICY
from gokaku.config.settings import settings
from gokaku.services import name_generation
from gokaku.services.name_generation import (
    NameGenerationError,
    build_system_prompt,
    build_user_prompt,
    debug_candidates,
    extract_candidates,
    extract_policy,
    generate_raw_candidates,
    get_openai_client,
    parse_model_json,
)

OPENAI_URL = "https://api.openai.com/v1/chat/completions"


def make_completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def make_client(create):
    client = MagicMock()
    client.chat.completions.create = create
    return client


class TestParseModelJson:
    """Test cases for parse_model_json."""

    def test_plain_json(self):
        assert parse_model_json('{"candidates": []}') == {"candidates": []}

    def test_json_surrounded_by_text(self):
        content = 'はい、こちらです:\n```json\n{"candidates": [{"name": "山田 太志"}]}\n```'

        assert parse_model_json(content) == {"candidates": [{"name": "山田 太志"}]}

    @pytest.mark.parametrize("content", ["", "no json here", "{broken", "[1, 2]", None])
    def test_unusable_reply(self, content):
        assert parse_model_json(content) == {}


class TestExtract:
    def test_candidates_are_limited(self):
        raw = {"candidates": [{"name": str(i)} for i in range(5)]}

        assert extract_candidates(raw, 3) == [{"name": "0"}, {"name": "1"}, {"name": "2"}]

    def test_candidates_must_be_a_list(self):
        assert extract_candidates({"candidates": {"name": "x"}}, 3) == []
        assert extract_candidates({}, 3) == []

    def test_policy(self):
        assert extract_policy({"policy": {"ryuha": "独自"}}) == {"ryuha": "独自"}
        assert extract_policy({}) == DEFAULT_POLICY
        assert extract_policy({"policy": "text"}) == DEFAULT_POLICY


class TestPrompts:
    def test_system_prompt_mentions_count_and_json(self):
        prompt = build_system_prompt(5)

        assert "候補は5つ" in prompt
        assert "json" in prompt

    def test_user_prompt(self):
        assert build_user_prompt("山田", "", "明るい") == "苗字: 山田\n性別: unknown\n希望イメージ: 明るい"


class TestGenerateRawCandidates:
    """Test cases for generate_raw_candidates."""

    def test_success(self):
        reply = {
            "candidates": [{"name": f"山田 {c}"} for c in "一二三四"],
            "policy": {"ryuha": "五格法", "notes": "テスト"},
        }
        create = AsyncMock(return_value=make_completion(json.dumps(reply, ensure_ascii=False)))

        with patch.object(name_generation, "get_openai_client", return_value=make_client(create)):
            raw = asyncio.run(generate_raw_candidates("山田", "male", "力強い"))

        assert len(raw["candidates"]) == settings.CANDIDATE_COUNT
        assert raw["candidates"][0] == {"name": "山田 一"}
        assert raw["policy"] == {"ryuha": "五格法", "notes": "テスト"}

        kwargs = create.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["model"] == settings.OPENAI_MODEL
        assert kwargs["messages"][1]["content"].startswith("苗字: 山田")

    def test_empty_reply(self):
        create = AsyncMock(return_value=make_completion(None))

        with patch.object(name_generation, "get_openai_client", return_value=make_client(create)):
            raw = asyncio.run(generate_raw_candidates("山田", "female", "やさしい"))

        assert raw == {"candidates": [], "policy": DEFAULT_POLICY}

    def test_api_status_error_keeps_status(self):
        response = httpx.Response(429, request=httpx.Request("POST", OPENAI_URL))
        create = AsyncMock(side_effect=APIStatusError("Rate limit reached", response=response, body=None))

        with patch.object(name_generation, "get_openai_client", return_value=make_client(create)):
            with pytest.raises(NameGenerationError) as exc_info:
                asyncio.run(generate_raw_candidates("山田", "male", "力強い"))

        assert exc_info.value.status_code == 429
        assert "Rate limit" in str(exc_info.value)

    def test_connection_error_is_bad_gateway(self):
        create = AsyncMock(side_effect=APIConnectionError(request=httpx.Request("POST", OPENAI_URL)))

        with patch.object(name_generation, "get_openai_client", return_value=make_client(create)):
            with pytest.raises(NameGenerationError) as exc_info:
                asyncio.run(generate_raw_candidates("山田", "male", "力強い"))

        assert exc_info.value.status_code == 502


class TestOpenAIClient:
    def test_missing_api_key(self, monkeypatch):
        monkeypatch.setattr(name_generation, "_openai_client", None)
        monkeypatch.setattr(settings, "OPENAI_API_KEY", "")

        with pytest.raises(NameGenerationError) as exc_info:
            get_openai_client()

        assert exc_info.value.status_code == 500

    def test_client_is_reused(self, monkeypatch):
        monkeypatch.setattr(name_generation, "_openai_client", None)
        monkeypatch.setattr(settings, "OPENAI_API_KEY", "sk-test-key")

        assert get_openai_client() is get_openai_client()


class TestDebugCandidates:
    def test_surname_prefix(self):
        raw = debug_candidates("佐藤")

        assert len(raw["candidates"]) == 3
        assert all(c["name"].startswith("佐藤 ") for c in raw["candidates"])
        assert raw["policy"] == DEFAULT_POLICY

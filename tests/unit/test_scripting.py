"""Tests for script prompt building and response parsing."""

import json

import pytest

from reelpost.models.errors import StageFailure
from reelpost.scripting.parser import normalize_hashtags, parse_llm_response, validate_script
from reelpost.scripting.prompts import build_json_schema, build_script_prompt


class TestParseLLMResponse:
    def test_plain_json(self):
        assert parse_llm_response('{"text": "hi"}') == {"text": "hi"}

    def test_markdown_fenced(self):
        response = 'Here you go:\n```json\n{"text": "hi", "hashtags": []}\n```'
        assert parse_llm_response(response)["text"] == "hi"

    def test_embedded_object(self):
        assert parse_llm_response('Sure! {"text": "hi"} Enjoy.') == {"text": "hi"}

    def test_garbage(self):
        with pytest.raises(StageFailure) as exc_info:
            parse_llm_response("no json here")
        assert exc_info.value.component == "script"

    def test_empty(self):
        with pytest.raises(StageFailure):
            parse_llm_response("")


class TestValidateScript:
    def test_valid(self):
        result = validate_script({"text": "  Drink water first.  ", "hashtags": "health #water"})
        assert result.text == "Drink water first."
        assert result.hashtags == ["#health", "#water"]

    def test_script_key_alias(self):
        assert validate_script({"script": "Walk more."}).text == "Walk more."

    def test_missing_text(self):
        with pytest.raises(StageFailure, match="no script text"):
            validate_script({"hashtags": ["#x"]})


class TestNormalizeHashtags:
    def test_list(self):
        assert normalize_hashtags(["a", "#b", " ", "two words"]) == ["#a", "#b", "#twowords"]

    def test_unexpected_type(self):
        assert normalize_hashtags(42) == []


class TestPrompts:
    def test_prompt_includes_topic_and_footage(self):
        prompt = build_script_prompt("budget travel", "/clips/night-market_tour.mp4")
        assert "budget travel" in prompt
        assert "night market tour" in prompt
        assert json.dumps(build_json_schema(), indent=2) in prompt

    def test_prompt_without_clip(self):
        assert "## Footage" not in build_script_prompt("budget travel")

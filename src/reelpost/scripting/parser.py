"""LLM response parser for script extraction."""

import json
import re

from reelpost.models.capabilities import ScriptResult
from reelpost.models.errors import StageFailure


def parse_llm_response(response_text: str) -> dict:
    """Parse LLM response, handling markdown-wrapped JSON."""
    text = (response_text or "").strip()

    # Try to extract JSON from markdown code blocks
    json_match = re.search(r"```(?:json)?\s*\n?(.*?)\n?```", text, re.DOTALL)
    if json_match:
        text = json_match.group(1).strip()

    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        # Try to find JSON object in text
        brace_match = re.search(r"\{.*\}", text, re.DOTALL)
        if brace_match:
            try:
                return json.loads(brace_match.group())
            except json.JSONDecodeError:
                pass
        raise StageFailure(
            f"Failed to parse LLM response as JSON: {e}",
            component="script",
            details={"response_preview": text[:200]},
        )


def normalize_hashtags(raw: object) -> list[str]:
    """Accept a list or a whitespace separated string; ensure a leading #."""
    if isinstance(raw, str):
        raw = raw.split()
    if not isinstance(raw, list):
        return []
    tags = []
    for item in raw:
        tag = str(item).strip().replace(" ", "")
        if not tag:
            continue
        tags.append(tag if tag.startswith("#") else f"#{tag}")
    return tags


def validate_script(data: dict) -> ScriptResult:
    """Construct a ScriptResult from parsed data."""
    text = str(data.get("text") or data.get("script") or "").strip()
    if not text:
        raise StageFailure(
            "LLM response contained no script text",
            component="script",
            details={"keys": sorted(data)},
        )
    return ScriptResult(text=text, hashtags=normalize_hashtags(data.get("hashtags", [])))

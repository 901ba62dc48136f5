"""Prompt templates for LLM script writing."""

import json
from pathlib import Path

SYSTEM_PROMPT = (
    "You are a copywriter for short vertical videos (Reels). You receive a "
    "topic and, when available, the file name of the footage the voice-over "
    "will play over. Write a spoken script and a handful of hashtags.\n"
    "\n"
    "Rules:\n"
    "1. The script is read aloud in 20-40 seconds (roughly 50-100 words)\n"
    "2. Open with a hook in the first sentence\n"
    "3. Plain spoken language, no stage directions or emoji\n"
    "4. Between 3 and 6 hashtags, each starting with #\n"
    "\n"
    "Respond with ONLY valid JSON matching the provided schema."
)


def build_json_schema() -> dict:
    """Build the JSON schema for expected LLM output."""
    return {
        "type": "object",
        "required": ["text", "hashtags"],
        "properties": {
            "text": {"type": "string", "minLength": 1},
            "hashtags": {"type": "array", "items": {"type": "string"}},
        },
    }


def build_script_prompt(topic: str, clip_path: str | None = None) -> str:
    """Build the user prompt for one script."""
    sections = [f"## Topic\n{topic}"]
    if clip_path:
        sections.append(f"## Footage\n{Path(clip_path).stem.replace('_', ' ').replace('-', ' ')}")
    sections.append(f"## Output Schema\n{json.dumps(build_json_schema(), indent=2)}")
    return "\n\n".join(sections)

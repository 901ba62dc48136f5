"""OpenAI-backed script provider."""

import logging

from openai import OpenAI

from reelpost.config import ConfigResolver, get_settings
from reelpost.models.capabilities import ScriptResult
from reelpost.models.errors import StageFailure
from reelpost.providers.base import ScriptProvider
from reelpost.scripting.parser import parse_llm_response, validate_script
from reelpost.scripting.prompts import SYSTEM_PROMPT, build_script_prompt

logger = logging.getLogger(__name__)


class OpenAIScriptProvider(ScriptProvider):
    """Writes the voice-over script with a chat completion."""

    def __init__(self, config: ConfigResolver, client: OpenAI | None = None):
        super().__init__(config)
        self.model = config.get("script.model") or "gpt-4o-mini"
        self.topic = config.get("script.topic") or "short practical tips"
        self.settings = get_settings()
        self.client = client
        if self.client is None:
            api_key = config.get("openai.api_key")
            if not api_key:
                raise StageFailure(
                    "Missing OpenAI API key. Set REELPOST_OPENAI_API_KEY or config openai.api_key",
                    component="script",
                )
            self.client = OpenAI(api_key=api_key, timeout=self.settings.http_timeout_secs)

    def generate(self, clip_path: str | None = None) -> ScriptResult:
        prompt = build_script_prompt(self.topic, clip_path)
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                response_format={"type": "json_object"},
                temperature=0.7,
            )
        except Exception as e:
            raise StageFailure(f"Script generation failed: {e}", component="script")

        response_text = response.choices[0].message.content
        result = validate_script(parse_llm_response(response_text))
        logger.info(
            "Generated script (%d chars, %d hashtags)", len(result.text), len(result.hashtags)
        )
        return result

"""OpenAI text-to-speech provider."""

import logging
import time
from pathlib import Path

from openai import OpenAI

from reelpost.config import ConfigResolver, get_settings
from reelpost.models.capabilities import SpeechResult
from reelpost.models.errors import StageFailure
from reelpost.providers.base import TtsProvider
from reelpost.rendering.probe import probe_duration

logger = logging.getLogger(__name__)

WORDS_PER_MINUTE = 150
MIN_ESTIMATED_SECS = 3.0


def estimate_duration(text: str) -> float:
    """Spoken length estimate at ~150 words per minute."""
    words = len(text.split())
    return max(MIN_ESTIMATED_SECS, words / WORDS_PER_MINUTE * 60)


class OpenAISpeechProvider(TtsProvider):
    """Synthesizes the voice-over to mp3 with the OpenAI speech endpoint."""

    def __init__(self, config: ConfigResolver, client: OpenAI | None = None):
        super().__init__(config)
        self.model = config.get("tts.model") or "tts-1"
        self.voice = config.get("tts.voice") or "alloy"
        self.settings = get_settings()
        self.client = client
        if self.client is None:
            api_key = config.get("openai.api_key")
            if not api_key:
                raise StageFailure(
                    "Missing OpenAI API key. Set REELPOST_OPENAI_API_KEY or config openai.api_key",
                    component="tts",
                )
            self.client = OpenAI(api_key=api_key, timeout=self.settings.http_timeout_secs)

    def synthesize(self, text: str, output_dir: Path) -> SpeechResult:
        if not text or not text.strip():
            raise StageFailure("No script text to synthesize", component="tts")

        output_dir.mkdir(parents=True, exist_ok=True)
        out_path = output_dir / f"tts-{time.time_ns() // 1_000_000}.mp3"
        try:
            with self.client.audio.speech.with_streaming_response.create(
                model=self.model,
                voice=self.voice,
                input=text,
            ) as response:
                response.stream_to_file(out_path)
        except Exception as e:
            raise StageFailure(f"Speech synthesis failed: {e}", component="tts")

        duration = probe_duration(out_path, self.settings.ffprobe_timeout_secs)
        if duration is None:
            duration = estimate_duration(text)
        logger.info("Synthesized %s (%.1fs, voice=%s)", out_path, duration, self.voice)
        return SpeechResult(audio_path=str(out_path), duration_secs=round(duration, 2))

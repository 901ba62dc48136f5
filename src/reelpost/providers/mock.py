"""Mock providers that write deterministic placeholder artifacts without external services."""

import json
import struct
import time
from datetime import UTC, datetime, timedelta
from pathlib import Path

from reelpost.models.capabilities import (
    ContainerRequest,
    ContainerResult,
    PublishResult,
    RenderRequest,
    RenderResult,
    ScriptResult,
    SpeechResult,
    UploadResult,
)
from reelpost.providers.base import (
    PublisherProvider,
    RendererProvider,
    ScriptProvider,
    StorageProvider,
    TtsProvider,
)

MOCK_SCRIPT = (
    "Mock script: 3 productivity tips for crushing your day. "
    "Tip 1: Start early. Tip 2: Stay focused. Tip 3: Review your wins."
)
MOCK_HASHTAGS = ["#productivity", "#tips", "#automation"]


def _stamp() -> int:
    return time.time_ns() // 1_000_000


class MockScriptProvider(ScriptProvider):
    def generate(self, clip_path: str | None = None) -> ScriptResult:
        return ScriptResult(text=MOCK_SCRIPT, hashtags=list(MOCK_HASHTAGS))


class MockTtsProvider(TtsProvider):
    def synthesize(self, text: str, output_dir: Path) -> SpeechResult:
        output_dir.mkdir(parents=True, exist_ok=True)
        out_path = output_dir / f"tts-{_stamp()}.wav"
        out_path.write_bytes(_empty_wav_header())
        return SpeechResult(audio_path=str(out_path), duration_secs=15.0)


class MockRendererProvider(RendererProvider):
    def render(self, request: RenderRequest, output_dir: Path) -> RenderResult:
        output_dir.mkdir(parents=True, exist_ok=True)
        out_path = output_dir / f"rendered-{_stamp()}.mp4"
        manifest = {
            "type": "mock-render",
            "inputs": {
                "clip_path": request.clip_path,
                "audio_path": request.audio_path,
                "script_text": (request.script_text or "")[:50],
            },
            "output": str(out_path),
            "timestamp": datetime.now(UTC).isoformat(),
        }
        out_path.write_text(json.dumps(manifest, indent=2))
        return RenderResult(video_path=str(out_path), duration_secs=30.0)


class MockStorageProvider(StorageProvider):
    def upload(self, file_path: Path) -> UploadResult:
        expires = datetime.now(UTC) + timedelta(minutes=15)
        return UploadResult(
            url=f"mock://storage/{Path(file_path).as_posix()}",
            expires_at=expires.isoformat(),
        )


class MockPublisherProvider(PublisherProvider):
    def create_container(self, request: ContainerRequest) -> ContainerResult:
        return ContainerResult(container_id=f"mock-container-{_stamp()}")

    def publish_container(self, container_id: str) -> PublishResult:
        return PublishResult(media_id=f"mock-media-{_stamp()}", container_id=container_id)


def _empty_wav_header(sample_rate: int = 22050) -> bytes:
    """44-byte PCM WAV header with no samples (mono, 8-bit)."""
    return (
        b"RIFF"
        + struct.pack("<I", 36)
        + b"WAVEfmt "
        + struct.pack("<IHHIIHH", 16, 1, 1, sample_rate, sample_rate, 1, 8)
        + b"data"
        + struct.pack("<I", 0)
    )

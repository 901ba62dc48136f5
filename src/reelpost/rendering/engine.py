"""Rendering engine that assembles the final reel with FFmpeg."""

import logging
import subprocess
import threading
import time
from collections.abc import Callable
from pathlib import Path

from reelpost.config import ConfigResolver, get_settings
from reelpost.models.capabilities import RenderRequest, RenderResult
from reelpost.models.errors import StageFailure
from reelpost.providers.base import RendererProvider
from reelpost.rendering.ffmpeg_builder import MAX_REEL_SECONDS, ReelCommandBuilder
from reelpost.rendering.probe import probe_duration
from reelpost.rendering.progress import FFmpegProgressMonitor

logger = logging.getLogger(__name__)


class FFmpegRenderer(RendererProvider):
    """Renders a 1080x1920 reel from the source clip and the voice-over."""

    def __init__(
        self,
        config: ConfigResolver,
        builder: ReelCommandBuilder | None = None,
        progress_callback: Callable[[float], None] | None = None,
    ):
        super().__init__(config)
        self.builder = builder or ReelCommandBuilder()
        self.settings = get_settings()
        self.progress_callback = progress_callback

    def render(self, request: RenderRequest, output_dir: Path) -> RenderResult:
        """Render the reel into ``output_dir``."""
        clip_path = (
            request.clip_path if request.clip_path and Path(request.clip_path).exists() else None
        )
        audio_path = (
            request.audio_path if request.audio_path and Path(request.audio_path).exists() else None
        )
        if not clip_path and not audio_path:
            raise StageFailure("Need at least a clip or audio file to render", component="renderer")

        output_dir.mkdir(parents=True, exist_ok=True)
        output_path = output_dir / f"reel-{time.time_ns() // 1_000_000}.mp4"
        cmd = self.builder.build_command(clip_path, audio_path, str(output_path))
        self._run(cmd, output_path)

        if not output_path.exists():
            raise StageFailure("FFmpeg produced no output file", component="renderer")

        duration = probe_duration(output_path, self.settings.ffprobe_timeout_secs) or 0.0
        logger.info("Rendered %s (%.1fs)", output_path, duration)
        return RenderResult(video_path=str(output_path), duration_secs=duration)

    def _run(self, cmd: list[str], output_path: Path) -> None:
        monitor = FFmpegProgressMonitor(float(MAX_REEL_SECONDS), self.progress_callback)
        timeout = self.settings.ffmpeg_timeout_secs

        try:
            process = subprocess.Popen(
                cmd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                text=True,
            )
        except FileNotFoundError:
            raise StageFailure(
                "FFmpeg not found. Please install FFmpeg.",
                component="renderer",
                details={"command": "ffmpeg"},
            )

        # stderr is drained off-thread; wait() enforces the deadline.
        stderr_lines: list[str] = []
        reader = threading.Thread(
            target=_drain_stderr, args=(process.stderr, stderr_lines, monitor), daemon=True
        )
        reader.start()
        try:
            process.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            process.kill()
            process.wait()
            reader.join(timeout=1)
            logger.error("FFmpeg exceeded %ss rendering %s", timeout, output_path)
            raise StageFailure(
                f"FFmpeg render timed out after {timeout}s",
                component="renderer",
                details={"timeout_secs": timeout},
            )
        reader.join()

        if process.returncode != 0:
            stderr_text = "".join(stderr_lines[-30:])
            logger.error("FFmpeg failed (code %d) rendering %s", process.returncode, output_path)
            raise StageFailure(
                f"FFmpeg render failed (code {process.returncode}): {stderr_text[-500:]}",
                component="renderer",
                details={"stderr": stderr_text},
            )


def _drain_stderr(stream, lines: list[str], monitor: FFmpegProgressMonitor) -> None:
    for line in stream:
        lines.append(line)
        monitor.parse_line(line)

"""FFmpeg command construction for portrait reels."""

REEL_WIDTH = 1080
REEL_HEIGHT = 1920
REEL_FPS = 30
MAX_REEL_SECONDS = 60


class ReelCommandBuilder:
    """Builds the ffmpeg argv for a 9:16 reel from a clip and/or voice-over."""

    def __init__(
        self,
        width: int = REEL_WIDTH,
        height: int = REEL_HEIGHT,
        fps: int = REEL_FPS,
        max_seconds: int = MAX_REEL_SECONDS,
        video_codec: str = "libx264",
        audio_codec: str = "aac",
        crf: int = 23,
        preset: str = "fast",
    ):
        self.width = width
        self.height = height
        self.fps = fps
        self.max_seconds = max_seconds
        self.video_codec = video_codec
        self.audio_codec = audio_codec
        self.crf = crf
        self.preset = preset

    def build_video_filter(self) -> str:
        """Scale into the portrait frame and pad the remainder black."""
        w, h = self.width, self.height
        return (
            f"scale={w}:{h}:force_original_aspect_ratio=decrease,"
            f"pad={w}:{h}:(ow-iw)/2:(oh-ih)/2:black,"
            f"fps={self.fps}"
        )

    def build_command(
        self, clip_path: str | None, audio_path: str | None, output_path: str
    ) -> list[str]:
        """Return the full argv.

        * clip + audio: clip video with the voice-over, cut to the shorter one
        * clip only: clip video with its own audio track if it has one
        * audio only: voice-over over a black background
        """
        if not clip_path and not audio_path:
            raise ValueError("Need at least a clip or audio file to render")

        cmd = ["ffmpeg", "-y"]
        if clip_path and audio_path:
            cmd += ["-i", clip_path, "-i", audio_path]
            cmd += ["-vf", self.build_video_filter()]
            cmd += ["-map", "0:v:0", "-map", "1:a:0", "-shortest"]
        elif clip_path:
            cmd += ["-i", clip_path]
            cmd += ["-vf", self.build_video_filter()]
            cmd += ["-map", "0:v:0", "-map", "0:a?"]
        else:
            background = f"color=c=black:s={self.width}x{self.height}:r={self.fps}"
            cmd += ["-f", "lavfi", "-i", background, "-i", audio_path]
            cmd += ["-map", "0:v:0", "-map", "1:a:0", "-shortest"]

        cmd += [
            "-c:v",
            self.video_codec,
            "-preset",
            self.preset,
            "-crf",
            str(self.crf),
            "-c:a",
            self.audio_codec,
            "-b:a",
            "128k",
            "-t",
            str(self.max_seconds),
            "-movflags",
            "+faststart",
            output_path,
        ]
        return cmd

"""FFmpeg progress monitoring."""

import re
from collections.abc import Callable

_TIME_RE = re.compile(r"time=(\d+):(\d+):(\d+\.?\d*)")


class FFmpegProgressMonitor:
    """Monitor FFmpeg rendering progress from stderr output."""

    def __init__(self, total_duration: float, callback: Callable[[float], None] | None = None):
        self.total_duration = total_duration
        self.callback = callback
        self.current_time = 0.0

    def parse_line(self, line: str) -> float | None:
        """Parse an FFmpeg stderr line for time= progress."""
        match = _TIME_RE.search(line)
        if not match:
            return None
        hours = int(match.group(1))
        minutes = int(match.group(2))
        seconds = float(match.group(3))
        self.current_time = hours * 3600 + minutes * 60 + seconds
        progress = self.progress
        if self.callback:
            self.callback(progress)
        return progress

    @property
    def progress(self) -> float:
        """Current progress as fraction [0, 1]."""
        if self.total_duration <= 0:
            return 0.0
        return min(1.0, self.current_time / self.total_duration)

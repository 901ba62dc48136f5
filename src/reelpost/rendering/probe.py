"""Media duration probing via ffprobe."""

import json
import subprocess
from pathlib import Path


def probe_duration(path: Path, timeout: float = 10) -> float | None:
    """Container duration in seconds via ffprobe, or None if unavailable."""
    try:
        result = subprocess.run(
            ["ffprobe", "-v", "quiet", "-print_format", "json", "-show_format", str(path)],
            capture_output=True,
            text=True,
            timeout=timeout,
        )
        probe = json.loads(result.stdout or "{}")
    except (OSError, subprocess.TimeoutExpired, json.JSONDecodeError):
        return None
    try:
        duration = float(probe.get("format", {}).get("duration", 0))
    except (TypeError, ValueError):
        return None
    return duration if duration > 0 else None

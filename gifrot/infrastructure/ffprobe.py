import json
import math
import logging
import subprocess
from pathlib import Path
from typing import Any, Dict, Optional
from gifrot.domain.errors import ProbeError

class FFprobeAdapter:
    """Wrapper around ffprobe to read container duration."""

    def __init__(self, ffprobe_path: str = "ffprobe", timeout_seconds: Optional[float] = None):
        self.ffprobe_path = ffprobe_path
        self.timeout_seconds = timeout_seconds
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def _to_float(value: Any) -> float:
        try:
            return float(value)
        except (TypeError, ValueError):
            return 0.0

    @classmethod
    def _parse_duration_tag(cls, value: Any) -> float:
        """Parses tag durations such as '00:03:40.120000000'."""
        if value is None:
            return 0.0
        text = str(value).strip()
        if not text:
            return 0.0
        try:
            return float(text)
        except ValueError:
            pass
        if ":" in text:
            parts = text.split(":")
            if len(parts) in (2, 3):
                try:
                    parts_f = [float(p) for p in parts]
                except ValueError:
                    return 0.0
                if len(parts_f) == 2:
                    minutes, seconds = parts_f
                    return minutes * 60 + seconds
                hours, minutes, seconds = parts_f
                return hours * 3600 + minutes * 60 + seconds
        return 0.0

    def _run(self, file_path: Path) -> Dict[str, Any]:
        cmd = [
            self.ffprobe_path,
            "-v", "error",
            "-print_format", "json",
            "-show_format",
            "-show_streams",
            str(file_path),
        ]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout_seconds)
        except subprocess.TimeoutExpired as e:
            raise ProbeError(f"ffprobe timed out after {e.timeout}s for {file_path}") from e
        except OSError as e:
            raise ProbeError(f"ffprobe could not be started: {e}") from e
        if result.returncode != 0:
            raise ProbeError(f"ffprobe failed for {file_path}: {result.stderr.strip()}")
        try:
            return json.loads(result.stdout or "{}")
        except json.JSONDecodeError as e:
            raise ProbeError(f"ffprobe returned invalid JSON for {file_path}") from e

    @staticmethod
    def _usable(duration: float) -> bool:
        return math.isfinite(duration) and duration > 0

    def get_duration(self, file_path: Path) -> int:
        """Returns the duration of `file_path` in whole seconds.

        Floored, except that a positive sub-second duration counts as 1 so the
        video still yields one segment. NaN and infinite values count as missing.
        """
        data = self._run(file_path)

        # Fallback order: format.duration, format tags, first video stream, its tags
        fmt = data.get("format", {}) or {}
        duration = self._to_float(fmt.get("duration"))
        if not self._usable(duration):
            tags = fmt.get("tags", {}) or {}
            duration = self._parse_duration_tag(tags.get("DURATION") or tags.get("duration"))
        if not self._usable(duration):
            video_stream = next(
                (s for s in data.get("streams", []) if s.get("codec_type") == "video"), {}
            )
            duration = self._to_float(video_stream.get("duration"))
            if not self._usable(duration):
                tags = video_stream.get("tags", {}) or {}
                duration = self._parse_duration_tag(tags.get("DURATION") or tags.get("duration"))

        if not self._usable(duration):
            raise ProbeError(f"No usable duration reported for {file_path} (got {duration})")

        self.logger.debug(f"PROBE: {file_path.name} duration={duration:.3f}s")
        return max(1, math.floor(duration))

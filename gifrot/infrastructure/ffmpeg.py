import time
import logging
import subprocess
from pathlib import Path
from typing import List, Optional
from gifrot.config.models import PublishTarget, SegmentConfig
from gifrot.domain.errors import EncodeError
from gifrot.domain.models import OutputSpec

BANNER_ASPECT_RATIO = 9 / 16

def build_output_spec(segment: SegmentConfig, target: PublishTarget) -> OutputSpec:
    """Avatars use the configured box; banners are scaled up to 16:9."""
    if target == PublishTarget.BANNER:
        width = segment.width * segment.banner_quality_multiplier
        return OutputSpec(width=width, height=int(width * BANNER_ASPECT_RATIO), fps=segment.fps)
    return OutputSpec(width=segment.width, height=segment.height, fps=segment.fps)

class FFmpegAdapter:
    """Wrapper around ffmpeg for cutting a segment into a looping GIF."""

    def __init__(self, ffmpeg_path: str = "ffmpeg", timeout_seconds: Optional[float] = None):
        self.ffmpeg_path = ffmpeg_path
        self.timeout_seconds = timeout_seconds
        self.logger = logging.getLogger(__name__)

    def _build_command(self, source: Path, start_offset: int, duration: int, tmp_path: Path, spec: OutputSpec) -> List[str]:
        """Constructs the ffmpeg command line arguments."""
        video_filter = f"fps={spec.fps},scale={spec.width}:{spec.height}:flags=lanczos"
        return [
            self.ffmpeg_path,
            "-y",
            "-ss", str(start_offset),
            "-t", str(duration),
            "-i", str(source),
            "-vf", video_filter,
            "-c:v", "gif",
            # .tmp extension does not indicate format
            "-f", "gif",
            str(tmp_path),
        ]

    def encode(self, source: Path, start_offset: int, duration: int, output_path: Path, spec: OutputSpec) -> Path:
        """Encodes one segment to `output_path` and returns it.

        Output is written to a .tmp sibling and renamed on success, so a
        half-written GIF never looks like a finished artifact.
        """
        tmp_path = output_path.with_suffix(".tmp")
        cmd = self._build_command(source, start_offset, duration, tmp_path, spec)
        self.logger.debug(f"FFMPEG_CMD: {' '.join(cmd)}")

        start_time = time.monotonic()
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout_seconds)
        except subprocess.TimeoutExpired as e:
            self._discard(tmp_path)
            raise EncodeError(f"ffmpeg timed out after {e.timeout}s on {source.name}") from e
        except OSError as e:
            self._discard(tmp_path)
            raise EncodeError(f"ffmpeg could not be started: {e}") from e

        if result.returncode != 0:
            self._discard(tmp_path)
            tail = (result.stderr or "").strip().splitlines()[-1:] or [""]
            raise EncodeError(f"ffmpeg exited with code {result.returncode}: {tail[0]}")
        if not tmp_path.exists():
            raise EncodeError(f"ffmpeg reported success but wrote no output for {source.name}")

        tmp_path.replace(output_path)
        elapsed = time.monotonic() - start_time
        self.logger.info(f"FFMPEG_END: {output_path.name} elapsed={elapsed:.2f}s")
        return output_path

    @staticmethod
    def _discard(tmp_path: Path):
        if tmp_path.exists():
            tmp_path.unlink()

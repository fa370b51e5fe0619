import re
from pathlib import Path

ARTIFACT_SUFFIX = ".gif"

class CompletionOracle:
    """Decides from on-disk artifacts whether a video still needs work."""

    def is_complete(self, output_dir: Path) -> bool:
        """True iff `output_dir` exists and holds at least one artifact.

        Coarse: a partially finished video counts as done.
        """
        if not output_dir.is_dir():
            return False
        return any(
            p.is_file() and p.name.endswith(ARTIFACT_SUFFIX)
            for p in output_dir.iterdir()
        )

    def completed_segments(self, output_dir: Path, video_name: str) -> int:
        """Counts artifacts named `{video_name}_part{N}.gif`."""
        if not output_dir.is_dir():
            return 0
        pattern = re.compile(rf"^{re.escape(video_name)}_part(\d+){re.escape(ARTIFACT_SUFFIX)}$")
        parts = set()
        for p in output_dir.iterdir():
            match = pattern.match(p.name)
            if match and p.is_file():
                parts.add(int(match.group(1)))
        return len(parts)

    def is_fully_complete(self, output_dir: Path, video_name: str, total_segments: int) -> bool:
        return self.completed_segments(output_dir, video_name) >= total_segments

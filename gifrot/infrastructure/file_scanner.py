import os
import logging
from pathlib import Path
from typing import Iterable, List, Generator
from gifrot.domain.models import VideoEntry

class FileScanner:
    """Recursively scans for video files in a directory."""

    def __init__(self, extensions: List[str], exclude_dirs: Iterable[Path] = ()):
        self.extensions = [(ext if ext.startswith(".") else f".{ext}").lower() for ext in extensions]
        self.exclude_dirs = {Path(d).resolve() for d in exclude_dirs}
        self.logger = logging.getLogger(__name__)

    def _on_walk_error(self, error: OSError):
        self.logger.warning(f"SCAN_SKIP: {error.filename} ({error.strerror})")

    def scan(self, root_dir: Path) -> Generator[VideoEntry, None, None]:
        """Scans the directory and yields VideoEntry objects.

        A missing root yields nothing.
        """
        for root, dirs, files in os.walk(str(root_dir), onerror=self._on_walk_error):
            root_path = Path(root)

            # Ensure deterministic traversal: sort directories and files
            dirs[:] = sorted(
                d for d in dirs
                if (root_path / d).resolve() not in self.exclude_dirs
            )
            files.sort()

            for file_name in files:
                file_path = root_path / file_name
                if file_path.suffix.lower() not in self.extensions:
                    continue
                if not file_path.is_file():
                    continue
                yield VideoEntry(path=file_path.absolute())

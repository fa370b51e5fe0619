import os
import logging
from pathlib import Path

class HousekeepingService:
    """Service for cleaning up leftovers of interrupted encodes."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def cleanup_temp_files(self, directory: Path) -> int:
        """Recursively removes all .tmp files in the directory."""
        removed = 0
        for root, dirs, files in os.walk(directory):
            for file in files:
                if file.endswith(".tmp"):
                    try:
                        (Path(root) / file).unlink()
                        removed += 1
                    except OSError as e:
                        self.logger.warning(f"Failed to remove stale temp file {file}: {e}")
        if removed:
            self.logger.info(f"HOUSEKEEPING: removed {removed} stale temp files under {directory}")
        return removed

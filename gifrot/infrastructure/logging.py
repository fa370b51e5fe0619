import logging
from pathlib import Path
from typing import Optional
from rich.logging import RichHandler

def setup_logging(output_dir: Path, debug: bool = False, log_path: Optional[Path] = None, console: bool = True) -> logging.Logger:
    """
    Setup logging configuration for gifrot.

    Creates the output root and gifrot.log file.
    Returns configured logger instance.

    Args:
        output_dir: Output root where segment folders are written
        debug: If True, enable DEBUG level logging
        log_path: Optional path to log file (overrides output_dir)
        console: If True, also log to the terminal through rich
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    log_file = Path(log_path) if log_path else (output_dir / "gifrot.log")
    log_file.parent.mkdir(parents=True, exist_ok=True)

    level = logging.DEBUG if debug else logging.INFO

    file_handler = logging.FileHandler(log_file)
    file_handler.setFormatter(logging.Formatter('%(asctime)s - %(levelname)s - %(message)s'))
    handlers = [file_handler]
    if console:
        handlers.append(RichHandler(show_path=False, markup=False, rich_tracebacks=False))

    logging.basicConfig(
        level=level,
        format='%(message)s',
        handlers=handlers,
        force=True  # Override any existing configuration
    )

    logger = logging.getLogger(__name__)
    logger.info(f"Logging initialized: {log_file} (debug={'ON' if debug else 'OFF'})")

    return logger

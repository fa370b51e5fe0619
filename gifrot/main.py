import typer
from pathlib import Path
from typing import Optional

from gifrot.config.loader import load_config, load_account_token
from gifrot.config.models import AppConfig, PublishTarget, ResumeMode
from gifrot.domain.errors import ConfigError
from gifrot.infrastructure.logging import setup_logging
from gifrot.infrastructure.event_bus import EventBus
from gifrot.infrastructure.file_scanner import FileScanner
from gifrot.infrastructure.ffprobe import FFprobeAdapter
from gifrot.infrastructure.ffmpeg import FFmpegAdapter
from gifrot.infrastructure.account_client import HttpAccountClient
from gifrot.pipeline.orchestrator import Orchestrator
from gifrot.ui.reporter import ConsoleReporter

app = typer.Typer(help="gifrot - cycle a video library through your profile picture as GIF segments")

def _fail(message: str):
    typer.secho(f"Error: {message}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)

@app.command()
def run(
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to YAML config (defaults are used when omitted)"),
    videos_dir: Optional[Path] = typer.Option(None, "--videos-dir", help="Directory scanned recursively for videos"),
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", help="Root directory for GIF segments"),
    segment_duration: Optional[int] = typer.Option(None, "--segment-duration", min=1, help="Segment length in seconds"),
    target: Optional[PublishTarget] = typer.Option(None, "--target", help="Publish to the avatar or the banner"),
    display_name: Optional[bool] = typer.Option(None, "--display-name/--no-display-name", help="Also set the display name to the segment name"),
    strict_resume: bool = typer.Option(False, "--strict-resume", help="Only skip videos whose every segment already exists"),
    env_file: Optional[Path] = typer.Option(None, "--env-file", help="Path to .env file holding the account token"),
    log_path: Optional[Path] = typer.Option(None, "--log-path", help="Path to log file (overrides config)"),
    debug: bool = typer.Option(False, "--debug/--no-debug", help="Enable verbose debug logging"),
):
    """Convert videos into GIF segments and publish them one at a time."""
    try:
        config = load_config(config_path) if config_path else AppConfig()
    except FileNotFoundError as exc:
        _fail(str(exc))
    except ValueError as exc:
        _fail(f"Invalid config: {exc}")

    # Apply CLI overrides
    if videos_dir is not None: config.general.videos_dir = str(videos_dir)
    if output_dir is not None: config.general.output_dir = str(output_dir)
    if segment_duration is not None: config.segment.duration = segment_duration
    if target is not None: config.publish.target = target
    if display_name is not None: config.publish.update_display_name = display_name
    if strict_resume: config.resume.mode = ResumeMode.STRICT
    if log_path is not None: config.general.log_path = str(log_path)
    if debug: config.general.debug = True

    videos_root = Path(config.general.videos_dir)
    if not videos_root.exists():
        _fail(f"Videos directory {videos_root} does not exist.")
    if not videos_root.is_dir():
        _fail(f"Videos path {videos_root} is not a directory.")

    output_root = Path(config.general.output_dir)
    try:
        log_path_value = Path(config.general.log_path) if config.general.log_path else None
        logger = setup_logging(output_root, debug=config.general.debug, log_path=log_path_value)
    except OSError as exc:
        _fail(f"Cannot create output directory {output_root}: {exc}")

    try:
        token = load_account_token(config.account, env_file=env_file)
    except ConfigError as exc:
        _fail(str(exc))

    logger.info(f"gifrot started: videos_dir={videos_root}, output_dir={output_root}")
    logger.info(
        f"Config: segment={config.segment.duration}s {config.segment.width}x{config.segment.height}@{config.segment.fps}fps, "
        f"target={config.publish.target.value}, display_name={config.publish.update_display_name}, "
        f"resume={config.resume.mode.value}"
    )

    bus = EventBus()
    reporter = ConsoleReporter(bus)

    scanner = FileScanner(extensions=config.general.extensions, exclude_dirs=[output_root])
    ffprobe = FFprobeAdapter(config.encoder.ffprobe_path, timeout_seconds=config.encoder.timeout_seconds)
    ffmpeg = FFmpegAdapter(config.encoder.ffmpeg_path, timeout_seconds=config.encoder.timeout_seconds)
    client = HttpAccountClient(
        token=token,
        api_base=config.account.api_base,
        rate_limit_markers=config.publish.rate_limit_markers,
        timeout_seconds=config.account.timeout_seconds,
    )

    orchestrator = Orchestrator(
        config=config,
        event_bus=bus,
        file_scanner=scanner,
        ffprobe_adapter=ffprobe,
        ffmpeg_adapter=ffmpeg,
        account_client=client,
    )

    try:
        orchestrator.run()
    except KeyboardInterrupt:
        typer.secho("\nStopped by user (Ctrl+C)", fg=typer.colors.YELLOW)
        raise typer.Exit(code=130)
    except Exception as e:
        logger.exception("Fatal error")
        typer.secho(f"Fatal Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    if reporter.videos_found == 0:
        typer.secho(f"No video files found in {videos_root}.", fg=typer.colors.YELLOW)

if __name__ == "__main__":
    app()

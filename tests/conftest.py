import pytest
import yaml
from pathlib import Path
from unittest.mock import MagicMock
from gifrot.config.models import AppConfig
from gifrot.infrastructure.event_bus import EventBus
from gifrot.domain.models import SegmentJob, VideoEntry

# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def sample_config(tmp_path):
    """Returns an AppConfig rooted in tmp_path with the default segment length."""
    return AppConfig(
        general={
            "videos_dir": str(tmp_path / "video"),
            "output_dir": str(tmp_path / "gifs"),
            "extensions": [".mp4", ".mkv"],
        },
        segment={"duration": 220, "width": 60, "height": 60, "fps": 5},
        publish={
            "target": "avatar",
            "update_display_name": True,
            "max_attempts": 3,
            "backoff_delay_seconds": 60,
            "post_job_delay_seconds": 1.0,
        },
    )

@pytest.fixture
def config_yaml_path(tmp_path):
    """Creates a temporary YAML config file."""
    conf_dir = tmp_path / "conf"
    conf_dir.mkdir()
    conf_file = conf_dir / "gifrot.yaml"

    content = {
        'general': {
            'videos_dir': 'clips',
            'output_dir': 'out',
            'extensions': ['mp4', 'MKV'],
        },
        'segment': {
            'duration': 120,
            'fps': 8,
        },
        'publish': {
            'target': 'banner',
            'update_display_name': False,
        },
        'resume': {
            'mode': 'strict',
        },
    }

    with open(conf_file, 'w') as f:
        yaml.dump(content, f)

    return conf_file

# ============================================================================
# EventBus Fixtures
# ============================================================================

@pytest.fixture
def event_bus():
    """Returns a fresh EventBus instance."""
    return EventBus()

# ============================================================================
# Domain Fixtures
# ============================================================================

@pytest.fixture
def make_job(tmp_path):
    """Factory for SegmentJob values writing under tmp_path/gifs."""
    def _make(name="clip", index=0, total=2, duration=220):
        video = VideoEntry(path=tmp_path / "video" / f"{name}.mp4")
        return SegmentJob(
            video=video,
            output_dir=tmp_path / "gifs" / name,
            segment_index=index,
            total_segments=total,
            segment_duration=duration,
        )
    return _make

# ============================================================================
# Collaborator fakes
# ============================================================================

@pytest.fixture
def fake_ffmpeg():
    """FFmpegAdapter stand-in that writes a small GIF and records calls."""
    ffmpeg = MagicMock()

    def _encode(source, start_offset, duration, output_path, spec):
        output_path.write_bytes(b"GIF89a")
        return output_path

    ffmpeg.encode.side_effect = _encode
    return ffmpeg

@pytest.fixture
def video_tree(tmp_path):
    """Creates the videos root with two dummy files and returns it."""
    root = tmp_path / "video"
    root.mkdir()
    (root / "a.mp4").write_bytes(b"a" * 10)
    (root / "b.mp4").write_bytes(b"b" * 10)
    return root


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )

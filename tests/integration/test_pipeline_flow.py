"""End-to-end drain tests with fake encoder, probe and account client."""
import pytest
from pathlib import Path
from unittest.mock import MagicMock
from gifrot.config.models import AppConfig, ResumeMode
from gifrot.domain.errors import EncodeError, ProbeError, RateLimitedError
from gifrot.domain.events import DiscoveryFinished, JobCompleted, ProcessingFinished, VideoSkipped
from gifrot.infrastructure.file_scanner import FileScanner
from gifrot.pipeline.orchestrator import Orchestrator

pytestmark = pytest.mark.integration


def _config(tmp_path, **publish):
    publish_cfg = {"update_display_name": True, "post_job_delay_seconds": 1.0}
    publish_cfg.update(publish)
    return AppConfig(
        general={"videos_dir": str(tmp_path / "video"), "output_dir": str(tmp_path / "gifs")},
        segment={"duration": 220},
        publish=publish_cfg,
    )


def _probe(durations):
    ffprobe = MagicMock()

    def get_duration(path):
        value = durations[Path(path).name]
        if isinstance(value, Exception):
            raise value
        return value

    ffprobe.get_duration.side_effect = get_duration
    return ffprobe


def _orchestrator(config, event_bus, ffprobe, ffmpeg, client, sleep=None):
    return Orchestrator(
        config=config,
        event_bus=event_bus,
        file_scanner=FileScanner(extensions=config.general.extensions),
        ffprobe_adapter=ffprobe,
        ffmpeg_adapter=ffmpeg,
        account_client=client,
        sleep=sleep or MagicMock(),
    )


def _encoded(ffmpeg):
    return [Path(c.args[3]).name for c in ffmpeg.encode.call_args_list]


def test_segments_of_one_video_run_contiguously(tmp_path, video_tree, fake_ffmpeg, event_bus):
    config = _config(tmp_path)
    client = MagicMock()
    order = []
    event_bus.subscribe(JobCompleted, lambda e: order.append(e.job.label))

    jobs = _orchestrator(config, event_bus, _probe({"a.mp4": 200, "b.mp4": 300}), fake_ffmpeg, client).run()

    assert jobs == 3
    assert order == ["a#0", "b#0", "b#1"]
    assert _encoded(fake_ffmpeg) == ["a_part1.gif", "b_part1.gif", "b_part2.gif"]
    assert [c.args[0] for c in client.set_display_name.call_args_list] == ["a_part1", "b_part1", "b_part2"]
    assert (tmp_path / "gifs" / "b" / "b_part2.gif").exists()


def test_successor_runs_before_later_videos(tmp_path, fake_ffmpeg, event_bus):
    root = tmp_path / "video"
    root.mkdir()
    for name in ("a.mp4", "b.mp4", "c.mp4"):
        (root / name).write_bytes(b"x")
    order = []
    event_bus.subscribe(JobCompleted, lambda e: order.append(e.job.label))

    _orchestrator(
        _config(tmp_path), event_bus,
        _probe({"a.mp4": 500, "b.mp4": 100, "c.mp4": 300}),
        fake_ffmpeg, MagicMock(),
    ).run()

    assert order == ["a#0", "a#1", "a#2", "b#0", "c#0", "c#1"]


def test_partially_done_video_is_skipped_by_coarse_resume(tmp_path, fake_ffmpeg, event_bus):
    root = tmp_path / "video"
    root.mkdir()
    (root / "a.mp4").write_bytes(b"x")
    done = tmp_path / "gifs" / "a"
    done.mkdir(parents=True)
    (done / "a_part1.gif").write_bytes(b"GIF89a")
    skipped = []
    event_bus.subscribe(VideoSkipped, skipped.append)

    jobs = _orchestrator(_config(tmp_path), event_bus, _probe({"a.mp4": 300}), fake_ffmpeg, MagicMock()).run()

    assert jobs == 0
    fake_ffmpeg.encode.assert_not_called()
    assert not (done / "a_part2.gif").exists()
    assert [s.reason for s in skipped] == ["already_complete"]


def test_strict_resume_only_encodes_missing_parts(tmp_path, fake_ffmpeg, event_bus):
    root = tmp_path / "video"
    root.mkdir()
    (root / "a.mp4").write_bytes(b"x")
    done = tmp_path / "gifs" / "a"
    done.mkdir(parents=True)
    (done / "a_part1.gif").write_bytes(b"GIF89a")
    config = _config(tmp_path)
    config.resume.mode = ResumeMode.STRICT
    client = MagicMock()

    jobs = _orchestrator(config, event_bus, _probe({"a.mp4": 300}), fake_ffmpeg, client).run()

    assert jobs == 2
    assert _encoded(fake_ffmpeg) == ["a_part2.gif"]
    client.set_avatar.assert_called_once()


def test_probe_failure_skips_only_that_video(tmp_path, video_tree, fake_ffmpeg, event_bus):
    discovery = []
    event_bus.subscribe(DiscoveryFinished, discovery.append)

    _orchestrator(
        _config(tmp_path), event_bus,
        _probe({"a.mp4": ProbeError("corrupt"), "b.mp4": 100}),
        fake_ffmpeg, MagicMock(),
    ).run()

    assert _encoded(fake_ffmpeg) == ["b_part1.gif"]
    assert discovery[0].videos_found == 2
    assert discovery[0].probe_failed == 1
    assert discovery[0].videos_queued == 1


def test_encode_failure_advances_to_next_segment(tmp_path, event_bus):
    root = tmp_path / "video"
    root.mkdir()
    (root / "a.mp4").write_bytes(b"x")
    ffmpeg = MagicMock()

    def encode(source, start, duration, output_path, spec):
        if start == 0:
            raise EncodeError("ffmpeg exited with code 1")
        output_path.write_bytes(b"GIF89a")
        return output_path

    ffmpeg.encode.side_effect = encode
    client = MagicMock()

    jobs = _orchestrator(_config(tmp_path), event_bus, _probe({"a.mp4": 440}), ffmpeg, client).run()

    assert jobs == 2
    assert ffmpeg.encode.call_count == 2
    # only the second segment reached the account
    client.set_avatar.assert_called_once()
    client.set_display_name.assert_called_once_with("a_part2")


def test_rate_limit_exhaustion_still_advances(tmp_path, event_bus, fake_ffmpeg):
    root = tmp_path / "video"
    root.mkdir()
    (root / "a.mp4").write_bytes(b"x")
    client = MagicMock()
    client.set_avatar.side_effect = RateLimitedError("You are changing your avatar too fast")
    sleep = MagicMock()
    config = _config(tmp_path, update_display_name=False)
    order = []
    event_bus.subscribe(JobCompleted, lambda e: order.append(e.job.label))

    _orchestrator(config, event_bus, _probe({"a.mp4": 300}), fake_ffmpeg, client, sleep=sleep).run()

    assert order == ["a#0", "a#1"]
    assert client.set_avatar.call_count == 6
    backoffs = [c for c in sleep.call_args_list if c.args[0] == 60]
    assert len(backoffs) == 4


def test_pacing_hold_and_post_job_delay(tmp_path, fake_ffmpeg, event_bus):
    root = tmp_path / "video"
    root.mkdir()
    (root / "a.mp4").write_bytes(b"x")
    sleep = MagicMock()

    _orchestrator(_config(tmp_path), event_bus, _probe({"a.mp4": 100}), fake_ffmpeg, MagicMock(), sleep=sleep).run()

    assert [c.args[0] for c in sleep.call_args_list] == [220, 1.0]


def test_empty_library_finishes_immediately(tmp_path, fake_ffmpeg, event_bus):
    (tmp_path / "video").mkdir()
    finished = []
    event_bus.subscribe(ProcessingFinished, finished.append)

    jobs = _orchestrator(_config(tmp_path), event_bus, _probe({}), fake_ffmpeg, MagicMock()).run()

    assert jobs == 0
    assert [f.jobs_run for f in finished] == [0]


def test_stale_tmp_files_are_removed_before_planning(tmp_path, fake_ffmpeg, event_bus):
    root = tmp_path / "video"
    root.mkdir()
    (root / "a.mp4").write_bytes(b"x")
    out = tmp_path / "gifs" / "a"
    out.mkdir(parents=True)
    (out / "a_part1.tmp").write_bytes(b"partial")

    jobs = _orchestrator(_config(tmp_path), event_bus, _probe({"a.mp4": 100}), fake_ffmpeg, MagicMock()).run()

    assert jobs == 1
    assert not (out / "a_part1.tmp").exists()
    assert (out / "a_part1.gif").exists()

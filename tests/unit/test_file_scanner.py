import os
import pytest
from pathlib import Path
from gifrot.infrastructure.file_scanner import FileScanner

def test_file_scanner_basic(tmp_path):
    (tmp_path / "video1.mp4").write_text("dummy")
    (tmp_path / "video2.MKV").write_text("dummy content")
    (tmp_path / "subdir").mkdir()
    (tmp_path / "subdir" / "video3.mkv").write_text("dummy mkv")
    (tmp_path / "clip.mov").write_text("not in allow-list")
    (tmp_path / "ignored.txt").write_text("ignore me")

    scanner = FileScanner(extensions=[".mp4", ".mkv"])
    files = list(scanner.scan(tmp_path))

    names = [f.path.name for f in files]
    assert sorted(names) == ["video1.mp4", "video2.MKV", "video3.mkv"]
    assert all(f.path.is_absolute() for f in files)

def test_file_scanner_names_strip_extension(tmp_path):
    (tmp_path / "holiday.mp4").write_text("x")
    files = list(FileScanner(extensions=["mp4"]).scan(tmp_path))
    assert [f.name for f in files] == ["holiday"]

def test_file_scanner_deterministic_order(tmp_path):
    (tmp_path / "b").mkdir()
    (tmp_path / "a").mkdir()
    (tmp_path / "b" / "2.mp4").write_text("x")
    (tmp_path / "a" / "1.mp4").write_text("x")
    (tmp_path / "z.mp4").write_text("x")
    (tmp_path / "c.mp4").write_text("x")

    scanner = FileScanner(extensions=[".mp4"])
    first = [f.path for f in scanner.scan(tmp_path)]
    second = [f.path for f in scanner.scan(tmp_path)]

    assert first == second
    assert [p.relative_to(tmp_path.absolute()).as_posix() for p in first] == ["c.mp4", "z.mp4", "a/1.mp4", "b/2.mp4"]

def test_file_scanner_missing_root_is_empty(tmp_path):
    scanner = FileScanner(extensions=[".mp4"])
    assert list(scanner.scan(tmp_path / "missing")) == []

def test_file_scanner_excludes_output_dir(tmp_path):
    (tmp_path / "video.mp4").write_text("data")
    out_dir = tmp_path / "gifs"
    out_dir.mkdir()
    (out_dir / "stray.mp4").write_text("data")

    scanner = FileScanner(extensions=[".mp4"], exclude_dirs=[out_dir])
    names = {f.path.name for f in scanner.scan(tmp_path)}

    assert names == {"video.mp4"}

@pytest.mark.skipif(os.name == "nt" or os.geteuid() == 0, reason="permission bits not enforced")
def test_file_scanner_skips_unreadable_subdir(tmp_path):
    (tmp_path / "ok.mp4").write_text("x")
    locked = tmp_path / "locked"
    locked.mkdir()
    (locked / "hidden.mp4").write_text("x")
    locked.chmod(0)
    try:
        names = {f.path.name for f in FileScanner(extensions=[".mp4"]).scan(tmp_path)}
    finally:
        locked.chmod(0o755)
    assert names == {"ok.mp4"}

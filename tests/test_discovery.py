import logging
import os
import time
from datetime import datetime

import static_ingest.discovery as discovery
from static_ingest.discovery import PathResolver, expand, has_wildcard


def touch(path, age=0.0, content="x"):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    t = time.time() - age
    os.utime(path, (t, t))
    return str(path)


def test_has_wildcard():
    assert has_wildcard("/logs/*.csv")
    assert has_wildcard("/logs/file?.csv")
    assert not has_wildcard("/logs/file.csv")


def test_expand_fills_time_placeholders(tmp_path):
    now = datetime(2026, 1, 2, 3, 4, 5)
    touch(tmp_path / "events_20260102.csv")
    assert expand(str(tmp_path / "events_%Y%m%d.csv"), now) == [str(tmp_path / "events_20260102.csv")]
    assert expand(str(tmp_path / "*_%Y%m%d.csv"), now) == [str(tmp_path / "events_20260102.csv")]


def test_limit_oldly_modified_skips_files_still_being_written(tmp_path):
    fresh = touch(tmp_path / "a.csv", age=1)
    settled = touch(tmp_path / "b.csv", age=1000)
    found = PathResolver([str(tmp_path / "*.csv")], limit_oldly_modified=5).resolve()
    assert fresh not in found
    assert settled in found


def test_limit_recently_modified_skips_dormant_files(tmp_path):
    recent = touch(tmp_path / "a.csv", age=10)
    dormant = touch(tmp_path / "b.csv", age=5000)
    found = PathResolver(
        [str(tmp_path / "*.csv")], limit_recently_modified=3600, limit_oldly_modified=None
    ).resolve()
    assert list(found) == [recent]
    assert dormant not in found


def test_exclude_wins_over_include(tmp_path):
    keep = touch(tmp_path / "keep.csv", age=100)
    drop = touch(tmp_path / "drop.csv", age=100)
    resolver = PathResolver(
        [str(tmp_path / "*.csv"), drop],
        exclude_path=[str(tmp_path / "dr*.csv")],
    )
    assert list(resolver.resolve()) == [keep]


def test_directories_are_not_files(tmp_path):
    (tmp_path / "dir.csv").mkdir()
    f = touch(tmp_path / "f.csv", age=100)
    assert list(PathResolver([str(tmp_path / "*.csv")]).resolve()) == [f]
    # literal pattern naming a directory
    assert PathResolver([str(tmp_path / "dir.csv")]).resolve() == {}


def test_literal_path_is_not_age_filtered(tmp_path):
    f = touch(tmp_path / "now.csv", age=0)
    assert f in PathResolver([f], limit_oldly_modified=5).resolve()


def test_missing_literal_path_is_skipped(tmp_path):
    assert PathResolver([str(tmp_path / "nope.csv")]).resolve() == {}


def test_recursive_glob(tmp_path):
    deep = touch(tmp_path / "a" / "b" / "deep.csv", age=100)
    assert deep in PathResolver([str(tmp_path / "**" / "*.csv")]).resolve()


def test_identity_fields_come_from_stat(tmp_path):
    f = touch(tmp_path / "f.csv", age=100)
    st = os.stat(f)
    info = PathResolver([f]).resolve()[f]
    assert info.ino == st.st_ino
    assert info.mtime_s * 1_000_000_000 + info.mtime_ns == st.st_mtime_ns


def test_follow_inodes_keys_by_inode(tmp_path):
    f = touch(tmp_path / "f.csv", age=100)
    found = PathResolver([str(tmp_path / "*.csv")], follow_inodes=True).resolve()
    assert list(found) == [os.stat(f).st_ino]
    assert found[os.stat(f).st_ino].path == f


def test_unreadable_file_warns_once_when_ignored(tmp_path, monkeypatch, caplog):
    f = touch(tmp_path / "secret.csv", age=100)
    ok = touch(tmp_path / "ok.csv", age=100)
    real_access = os.access
    monkeypatch.setattr(discovery, "have_read_capability", lambda: False)
    monkeypatch.setattr(discovery.os, "access", lambda p, mode: False if p == f else real_access(p, mode))

    resolver = PathResolver([str(tmp_path / "*.csv")], ignore_repeated_permission_error=True)
    with caplog.at_level(logging.WARNING, logger="static_ingest"):
        assert list(resolver.resolve()) == [ok]
        assert list(resolver.resolve()) == [ok]
    warnings = [r for r in caplog.records if "unreadable" in r.getMessage()]
    assert len(warnings) == 1
    assert f in resolver.ignore_list


def test_unreadable_file_warns_every_time_by_default(tmp_path, monkeypatch, caplog):
    f = touch(tmp_path / "secret.csv", age=100)
    monkeypatch.setattr(discovery, "have_read_capability", lambda: False)
    monkeypatch.setattr(discovery.os, "access", lambda p, mode: False)

    resolver = PathResolver([str(tmp_path / "*.csv")])
    with caplog.at_level(logging.WARNING, logger="static_ingest"):
        resolver.resolve()
        resolver.resolve()
    assert len([r for r in caplog.records if f in r.getMessage()]) == 2


def test_stat_race_is_logged_and_skipped(tmp_path, monkeypatch, caplog):
    gone = str(tmp_path / "gone.csv")
    monkeypatch.setattr(discovery.os.path, "exists", lambda p: True)
    with caplog.at_level(logging.WARNING, logger="static_ingest"):
        assert PathResolver([gone]).resolve() == {}
    assert any("FileNotFoundError" in r.getMessage() for r in caplog.records)

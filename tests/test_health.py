import health
from static_ingest.identity import FileIdentity


def test_ledger_summary(tmp_path):
    present = tmp_path / "a.csv"
    present.write_text("x")
    pos = tmp_path / "events.pos"
    pos.write_bytes(
        FileIdentity(str(present), 1, 100, 0).to_entry()
        + FileIdentity(str(present), 1, 200, 0).to_entry()
        + FileIdentity("/gone.csv", 2, 100, 0).to_entry()
        + b"junk\n"
    )
    assert health.ledger_summary(pos) == {
        "lines": 4, "entries": 3, "malformed": 1, "duplicates": 1, "present": 1,
    }
    assert health.ledger_summary(tmp_path / "missing.pos") is None


def test_tail(tmp_path):
    log = tmp_path / "ingest.log"
    log.write_text("".join(f"line {i}\n" for i in range(100)))
    assert health.tail(log, lines=3) == ["line 97", "line 98", "line 99"]
    assert health.tail(tmp_path / "nope.log") == ["<log file not found>"]


def test_report(tmp_path, capsys):
    pos = tmp_path / "state" / "events.pos"
    pos.parent.mkdir()
    pos.write_bytes(FileIdentity("/gone.csv", 2, 100, 0).to_entry())
    (tmp_path / "archive").mkdir()
    (tmp_path / "archive" / "old.csv").write_text("x")
    cfg = tmp_path / "config.yaml"
    cfg.write_text(
        "sources:\n"
        "  - tag: events\n"
        "    path: /in/*.csv\n"
        f"    pos_file: {pos}\n"
        f"    archive_to: {tmp_path / 'archive'}/%s\n"
        "    parse: {type: csv}\n"
    )
    assert health.main(cfg, tmp_path / "ingest.log") == 0
    out = capsys.readouterr().out
    assert "Source: events" in out
    assert "tracked entries: 1" in out
    assert "archived files in" in out and ": 1" in out


def test_report_bad_config(tmp_path, capsys):
    assert health.main(tmp_path / "missing.yaml", tmp_path / "ingest.log") == 1

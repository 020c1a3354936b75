"""Tests for EventLogger."""

import json
import time

import pytest

from code_xref.logging.logger import EventLogger


def _last_entry(tmp_config):
    log_files = list(tmp_config.log_dir.glob("*.jsonl"))
    assert len(log_files) == 1
    return json.loads(log_files[0].read_text().splitlines()[-1])


class TestEventLogger:
    def test_log_writes_valid_jsonl(self, event_logger, tmp_config):
        """Log entry produces valid JSONL in a code-xref-dated log file."""
        event_logger.log("test.event", {"key": "value"})
        log_files = list(tmp_config.log_dir.glob("code-xref-*.jsonl"))
        assert len(log_files) == 1
        lines = log_files[0].read_text().splitlines()
        assert len(lines) == 1
        entry = json.loads(lines[0])
        assert entry["event_type"] == "test.event"
        assert entry["data"]["key"] == "value"

    def test_log_writes_to_sqlite(self, event_logger, db_conn):
        """Log entry also writes to the event_log table."""
        event_logger.log("test.sqlite", {"msg": "hello"}, node_count=7)
        rows = db_conn.execute(
            "SELECT data, node_count FROM event_log WHERE event_type = ?", ("test.sqlite",)
        ).fetchall()
        assert len(rows) == 1
        assert json.loads(rows[0][0]) == {"msg": "hello"}
        assert rows[0][1] == 7

    def test_sqlite_failure_does_not_raise(self, tmp_config, db_conn, capsys):
        """A closed connection only produces a warning on stderr."""
        db_conn.close()
        broken = EventLogger(tmp_config.log_dir, db_conn)
        broken.log("test.broken", {})
        assert "WARNING" in capsys.readouterr().err
        assert _last_entry(tmp_config)["event_type"] == "test.broken"

    def test_timed_captures_duration(self, event_logger, tmp_config):
        """timed() context manager records duration_ms."""
        with event_logger.timed("test.timed"):
            time.sleep(0.05)  # 50ms
        entry = _last_entry(tmp_config)
        assert entry["duration_ms"] >= 40  # Allow some tolerance
        assert entry["data"]["status"] == "success"

    def test_timed_captures_error_status(self, event_logger, tmp_config):
        """timed() records error status on exception."""
        with pytest.raises(ValueError, match="test error"), event_logger.timed("test.error"):
            raise ValueError("test error")  # noqa: EM101
        entry = _last_entry(tmp_config)
        assert entry["data"]["status"] == "error"
        assert "test error" in entry["data"]["error"]

    def test_timed_moves_node_count_out_of_data(self, event_logger, tmp_config):
        """node_count set on the yielded context becomes a top-level field."""
        with event_logger.timed("test.count", target="AuthService") as ctx:
            ctx["node_count"] = 4
        entry = _last_entry(tmp_config)
        assert entry["node_count"] == 4
        assert "node_count" not in entry["data"]
        assert entry["data"]["target"] == "AuthService"

    def test_file_only_mode(self, tmp_config):
        """Logger works without DB connection (file-only mode)."""
        file_logger = EventLogger(tmp_config.log_dir, db_conn=None)
        file_logger.log("test.fileonly", {"standalone": True})
        assert _last_entry(tmp_config)["event_type"] == "test.fileonly"

    def test_last_event_returns_newest_match(self, event_logger):
        event_logger.log("xref.build", {"source": "chunks"}, node_count=3)
        event_logger.log("xref.trace", {"method": "login"})
        event_logger.log("xref.build", {"source": "snapshot"}, node_count=9)
        entry = event_logger.last_event("xref.build")
        assert entry["data"]["source"] == "snapshot"
        assert entry["node_count"] == 9

    def test_last_event_missing(self, event_logger):
        assert event_logger.last_event("xref.build") is None

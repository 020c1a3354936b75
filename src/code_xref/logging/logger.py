"""Event log for analysis runs: daily JSONL files plus the SQLite event_log table."""

import json
import sqlite3
import sys
import time
import uuid
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path


class EventLogger:
    """Records one event per build or query.

    The JSONL file is authoritative and its write errors propagate. The
    SQLite row is best-effort and only warns on stderr.
    """

    def __init__(self, log_dir: Path, db_conn: sqlite3.Connection | None = None) -> None:
        self.log_dir = log_dir
        self.db_conn = db_conn
        self.log_dir.mkdir(parents=True, exist_ok=True)

    @property
    def _log_file(self) -> Path:
        today = datetime.now(UTC).strftime("%Y-%m-%d")
        return self.log_dir / f"code-xref-{today}.jsonl"

    def log(
        self,
        event_type: str,
        data: dict,
        *,
        duration_ms: int | None = None,
        node_count: int | None = None,
    ) -> None:
        """Append one event. ``node_count`` is the size of the built or returned graph."""
        with self._log_file.open("a") as f:
            f.write(
                json.dumps(
                    {
                        "event_type": event_type,
                        "data": data,
                        "duration_ms": duration_ms,
                        "node_count": node_count,
                        "timestamp": datetime.now(UTC).isoformat(),
                    }
                )
                + "\n"
            )

        if self.db_conn is None:
            return
        try:
            self.db_conn.execute(
                "INSERT INTO event_log (id, event_type, data, duration_ms, node_count)"
                " VALUES (?, ?, ?, ?, ?)",
                (str(uuid.uuid4()), event_type, json.dumps(data), duration_ms, node_count),
            )
        except sqlite3.Error:
            print(f"WARNING: Failed to write event {event_type} to SQLite", file=sys.stderr)

    @contextmanager
    def timed(self, event_type: str, **data):
        """Log ``event_type`` with its duration when the block exits.

        The yielded dict becomes the event's data. A ``node_count`` key set on
        it is lifted to the top-level field. ``status`` ends up ``success`` or
        ``error`` (with the message under ``error``).
        """
        context = {"status": "started", **data}
        start = time.monotonic()
        try:
            yield context
            context["status"] = "success"
        except Exception as e:
            context["status"] = "error"
            context["error"] = str(e)
            raise
        finally:
            duration_ms = int((time.monotonic() - start) * 1000)
            node_count = context.pop("node_count", None)
            self.log(event_type, context, duration_ms=duration_ms, node_count=node_count)

    def last_event(self, event_type: str) -> dict | None:
        """Most recent JSONL entry of ``event_type``, newest log file first."""
        for path in sorted(self.log_dir.glob("code-xref-*.jsonl"), reverse=True):
            for line in reversed(path.read_text().splitlines()):
                if not line.strip():
                    continue
                entry = json.loads(line)
                if entry.get("event_type") == event_type:
                    return entry
        return None

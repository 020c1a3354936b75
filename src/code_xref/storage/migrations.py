"""Schema for the chunk store and event log, versioned by PRAGMA user_version."""

import sqlite3

# (version, sql) pairs. Append only.
MIGRATIONS: list[tuple[int, str]] = [
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS chunks (
            id TEXT PRIMARY KEY,
            kind TEXT NOT NULL,
            name TEXT NOT NULL,
            content TEXT NOT NULL DEFAULT '',
            file_path TEXT NOT NULL,
            language TEXT NOT NULL DEFAULT '',
            start_line INTEGER NOT NULL DEFAULT 0,
            end_line INTEGER NOT NULL DEFAULT 0,
            start_column INTEGER NOT NULL DEFAULT 0,
            end_column INTEGER NOT NULL DEFAULT 0,
            signature TEXT,
            documentation TEXT,
            dependencies TEXT NOT NULL DEFAULT '[]',
            metadata TEXT,
            timestamp REAL NOT NULL DEFAULT 0
        );

        CREATE INDEX IF NOT EXISTS idx_chunks_file ON chunks(file_path);
        CREATE INDEX IF NOT EXISTS idx_chunks_language ON chunks(language);
        CREATE INDEX IF NOT EXISTS idx_chunks_kind ON chunks(kind);
        CREATE INDEX IF NOT EXISTS idx_chunks_name ON chunks(name)
        """,
    ),
    (
        2,
        """
        CREATE TABLE IF NOT EXISTS event_log (
            id TEXT PRIMARY KEY,
            event_type TEXT NOT NULL,
            data TEXT NOT NULL DEFAULT '{}' CHECK(json_valid(data)),
            duration_ms INTEGER,
            node_count INTEGER,
            created_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        CREATE INDEX IF NOT EXISTS idx_event_log_type ON event_log(event_type)
        """,
    ),
]

LATEST_VERSION = MIGRATIONS[-1][0]


def get_version(conn: sqlite3.Connection) -> int:
    row = conn.execute("PRAGMA user_version").fetchone()
    return int(row[0]) if row else 0


def migrate(conn: sqlite3.Connection) -> int:
    """Bring the chunk database up to LATEST_VERSION. Returns the number applied.

    Each step runs under BEGIN EXCLUSIVE and re-reads user_version inside the
    lock, so two processes opening the same store apply every step once.
    """
    applied = 0
    for version, sql in MIGRATIONS:
        if version <= get_version(conn):
            continue
        conn.execute("BEGIN EXCLUSIVE")
        try:
            if version > get_version(conn):
                for statement in filter(None, (s.strip() for s in sql.split(";"))):
                    conn.execute(statement)
                conn.execute(f"PRAGMA user_version = {version}")
                applied += 1
            conn.execute("COMMIT")
        except Exception:
            conn.execute("ROLLBACK")
            raise
    return applied

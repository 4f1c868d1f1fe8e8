"""
Persisted key/value settings shared with the presentation layer (for example
the selected network), stored in a small SQLite database under the
application-data directory.
"""
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Union
import json
import logging

import aiosqlite


class SettingsStore:
    """
    A key/value store over a single SQLite connection. Values are stored as
    JSON text, so anything `json.dumps` accepts can be saved.
    """

    def __init__(self, conn: aiosqlite.Connection):
        self.conn = conn

    async def _create_schema(self):
        await self.conn.execute(
            """
            CREATE TABLE IF NOT EXISTS settings (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
        """
        )
        await self.conn.commit()

    async def get(self, key: str, default: Any = None) -> Any:
        async with self.conn.execute("SELECT value FROM settings WHERE key = ?", (key,)) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return default
        try:
            return json.loads(row[0])
        except json.JSONDecodeError as e:
            logging.warning(f"Ignoring unreadable setting {key!r}: {e}")
            return default

    async def set(self, key: str, value: Any):
        await self.conn.execute(
            "INSERT OR REPLACE INTO settings (key, value) VALUES (?, ?)",
            (key, json.dumps(value)),
        )
        await self.conn.commit()


@asynccontextmanager
async def open_settings(db_path: Union[str, Path]) -> AsyncIterator[SettingsStore]:
    """Opens (creating if needed) the settings database at `db_path`."""
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = await aiosqlite.connect(str(db_path))
    try:
        store = SettingsStore(conn)
        await store._create_schema()
        yield store
    finally:
        await conn.close()

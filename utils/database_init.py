import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import aiosqlite


class AsyncDatabaseInitializer:
    """
    Manage the async SQLite database that backs the asset record store.

    - The database file is located at: <database_dir>/app.db
    - Attachment files live under: <database_dir>/attachments/
    - On the first call to `ensure_database()` for a given instance the
      directories are created and the ASSET, ASSET_META and ATTACHMENT
      tables are created if missing. Existing data is kept.
    - Subsequent calls to `ensure_database()` on the same instance are no-ops,
      so it is safe for `connection()` to call it.
    """

    def __init__(self, database_dir: Path | str) -> None:
        db_dir = Path(database_dir).expanduser()

        if db_dir.exists() and not db_dir.is_dir():
            raise RuntimeError(
                f"Database directory {db_dir} points to a file, not a directory."
            )

        try:
            db_dir.mkdir(parents=True, exist_ok=True)
        except Exception as exc:
            raise RuntimeError(
                f"Failed to create or access database directory at {db_dir}"
            ) from exc

        self.db_dir = db_dir
        self.db_path = self.db_dir / "app.db"
        self.attachments_dir = self.db_dir / "attachments"

        self._initialized = False

    async def ensure_database(self) -> None:
        """
        Ensure the SQLite schema exists at `self.db_path`.

        Subsequent calls on the same instance are no-ops.
        """
        if self._initialized:
            return

        self.attachments_dir.mkdir(parents=True, exist_ok=True)

        max_attempts = 3
        for attempt in range(1, max_attempts + 1):
            try:
                async with aiosqlite.connect(self.db_path) as db:
                    await db.execute(
                        """
                        CREATE TABLE IF NOT EXISTS ASSET (
                            id INTEGER PRIMARY KEY AUTOINCREMENT,
                            record_type TEXT NOT NULL,
                            title TEXT NOT NULL DEFAULT '',
                            body TEXT NOT NULL DEFAULT '',
                            excerpt TEXT NOT NULL DEFAULT '',
                            primary_attachment_id INTEGER,
                            created_at INTEGER NOT NULL
                        )
                        """
                    )
                    await db.execute(
                        """
                        CREATE TABLE IF NOT EXISTS ASSET_META (
                            record_id INTEGER NOT NULL REFERENCES ASSET(id) ON DELETE CASCADE,
                            meta_key TEXT NOT NULL,
                            meta_value TEXT,
                            PRIMARY KEY (record_id, meta_key)
                        )
                        """
                    )
                    await db.execute(
                        """
                        CREATE TABLE IF NOT EXISTS ATTACHMENT (
                            id INTEGER PRIMARY KEY AUTOINCREMENT,
                            record_id INTEGER NOT NULL REFERENCES ASSET(id) ON DELETE CASCADE,
                            filename TEXT NOT NULL,
                            mime_type TEXT NOT NULL,
                            path TEXT,
                            thumbnail_path TEXT,
                            created_at INTEGER NOT NULL
                        )
                        """
                    )
                    await db.execute(
                        "CREATE INDEX IF NOT EXISTS idx_asset_type_created ON ASSET(record_type, created_at)"
                    )
                    await db.execute(
                        "CREATE INDEX IF NOT EXISTS idx_asset_meta_key ON ASSET_META(meta_key, meta_value)"
                    )
                    await db.commit()
                break
            except FileNotFoundError:
                # On some platforms a transient missing file error may occur; retry a few times.
                if attempt >= max_attempts:
                    raise
                await asyncio.sleep(0.1 * attempt)

        self._initialized = True

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Async context manager yielding an `aiosqlite.Connection` with
        foreign keys enabled.

        The schema is created on first use via `ensure_database()`.
        """
        await self.ensure_database()
        conn = await aiosqlite.connect(self.db_path)
        try:
            await conn.execute("PRAGMA foreign_keys=ON;")
            yield conn
        finally:
            await conn.close()

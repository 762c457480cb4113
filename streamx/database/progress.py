import math
import aiosqlite
from typing import Dict, List
from datetime import datetime
from .models import WatchProgress
from ..config import DB_PATH
from ..utils.logger import get_logger

logger = get_logger(__name__)

class ProgressStore:
    """
    Per-unit completion percent (0-100) keyed by movie or episode id.

    The store never raises to its callers: when the database cannot be opened
    or written, reads return 0 and writes are dropped with a warning.
    """

    def __init__(self, db_path: str = str(DB_PATH)):
        self.db_path = db_path
        logger.debug(f"ProgressStore initialized with path: {self.db_path}")

    async def initialize(self) -> bool:
        logger.info("Initializing watch progress table...")
        try:
            async with aiosqlite.connect(self.db_path) as db:
                await db.execute("""
                    CREATE TABLE IF NOT EXISTS watch_progress (
                        content_id TEXT PRIMARY KEY,
                        percent INTEGER NOT NULL DEFAULT 0,
                        last_watched TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                """)
                await db.commit()
            return True
        except (aiosqlite.Error, OSError) as e:
            logger.warning(f"Progress storage unavailable, tracking disabled: {e}")
            return False

    async def get(self, content_id: str) -> int:
        try:
            async with aiosqlite.connect(self.db_path) as db:
                async with db.execute(
                    "SELECT percent FROM watch_progress WHERE content_id = ?", (content_id,)
                ) as cursor:
                    row = await cursor.fetchone()
                    return int(row[0]) if row else 0
        except (aiosqlite.Error, OSError) as e:
            logger.warning(f"Could not read progress for {content_id}: {e}")
            return 0

    async def set(self, content_id: str, percent: int):
        try:
            value = float(percent)
        except (TypeError, ValueError):
            value = math.nan
        if not math.isfinite(value):
            logger.warning(f"Ignoring invalid progress {percent!r} for {content_id}")
            return
        percent = max(0, min(100, int(value)))
        try:
            async with aiosqlite.connect(self.db_path) as db:
                await db.execute(
                    """INSERT INTO watch_progress (content_id, percent, last_watched)
                       VALUES (?, ?, ?)
                       ON CONFLICT(content_id) DO UPDATE SET
                       percent = excluded.percent,
                       last_watched = excluded.last_watched""",
                    (content_id, percent, datetime.now().isoformat(" "))
                )
                await db.commit()
            logger.debug(f"Progress for {content_id} set to {percent}%")
        except (aiosqlite.Error, OSError) as e:
            logger.warning(f"Could not save progress for {content_id}: {e}")

    async def all(self) -> Dict[str, int]:
        try:
            async with aiosqlite.connect(self.db_path) as db:
                async with db.execute("SELECT content_id, percent FROM watch_progress") as cursor:
                    rows = await cursor.fetchall()
                    return {row[0]: int(row[1]) for row in rows}
        except (aiosqlite.Error, OSError) as e:
            logger.warning(f"Could not read progress map: {e}")
            return {}

    async def in_progress(self) -> List[WatchProgress]:
        """Continue-watching entries, most recently touched first."""
        try:
            async with aiosqlite.connect(self.db_path) as db:
                db.row_factory = aiosqlite.Row
                async with db.execute(
                    """SELECT * FROM watch_progress
                       WHERE percent > 0 AND percent < 100
                       ORDER BY last_watched DESC"""
                ) as cursor:
                    rows = await cursor.fetchall()
                    return [WatchProgress(
                        content_id=row['content_id'],
                        percent=row['percent'],
                        last_watched=datetime.fromisoformat(row['last_watched']) if isinstance(row['last_watched'], str) else row['last_watched']
                    ) for row in rows]
        except (aiosqlite.Error, OSError) as e:
            logger.warning(f"Could not read continue-watching list: {e}")
            return []

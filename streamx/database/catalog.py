import json
import aiosqlite
from dataclasses import replace
from typing import List, Optional, Protocol
from datetime import datetime
from .models import (
    ContentUnit, Movie, Series, content_unit_from_dict, season_to_dict
)
from ..config import DB_PATH
from ..utils.logger import get_logger

logger = get_logger(__name__)

class MediaCatalogProvider(Protocol):
    async def get_content_unit(self, content_id: str) -> Optional[ContentUnit]: ...

class CatalogManager:
    """aiosqlite-backed catalog; seasons are stored as a JSON column."""

    def __init__(self, db_path: str = str(DB_PATH)):
        self.db_path = db_path
        logger.debug(f"CatalogManager initialized with path: {self.db_path}")

    async def initialize(self):
        logger.info("Initializing catalog...")
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute("""
                CREATE TABLE IF NOT EXISTS media (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    type TEXT NOT NULL,
                    thumbnail_url TEXT,
                    backdrop_url TEXT,
                    video_url TEXT,
                    seasons TEXT,
                    description TEXT,
                    year INTEGER,
                    genre TEXT,
                    rating REAL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            await db.commit()

    async def add_content_unit(self, unit: ContentUnit):
        logger.debug(f"Adding {unit.type}: {unit.title} (id: {unit.id})")
        video_url = unit.video_url if isinstance(unit, Movie) else None
        seasons = json.dumps([season_to_dict(s) for s in unit.seasons]) if isinstance(unit, Series) else "[]"
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """INSERT INTO media
                   (id, title, type, thumbnail_url, backdrop_url, video_url, seasons, description, year, genre, rating, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                   ON CONFLICT(id) DO UPDATE SET
                   title = excluded.title,
                   type = excluded.type,
                   thumbnail_url = excluded.thumbnail_url,
                   backdrop_url = excluded.backdrop_url,
                   video_url = excluded.video_url,
                   seasons = excluded.seasons,
                   description = excluded.description,
                   year = excluded.year,
                   genre = excluded.genre,
                   rating = excluded.rating""",
                (unit.id, unit.title, unit.type, unit.thumbnail_url, unit.backdrop_url, video_url, seasons,
                 unit.description, unit.year, unit.genre, unit.rating, unit.created_at.isoformat(" "))
            )
            await db.commit()

    async def get_content_unit(self, content_id: str) -> Optional[ContentUnit]:
        try:
            async with aiosqlite.connect(self.db_path) as db:
                db.row_factory = aiosqlite.Row
                async with db.execute("SELECT * FROM media WHERE id = ?", (content_id,)) as cursor:
                    row = await cursor.fetchone()
        except (aiosqlite.Error, OSError) as e:
            logger.warning(f"Catalog lookup failed for {content_id}: {e}")
            return None
        if row is None:
            return None
        try:
            return self._row_to_unit(row)
        except (ValueError, KeyError, TypeError) as e:
            # seasons JSON or the type tag is unreadable
            logger.warning(f"Catalog entry {content_id} is corrupt: {e}")
            return None

    async def get_all(self) -> List[ContentUnit]:
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute("SELECT * FROM media ORDER BY created_at DESC") as cursor:
                rows = await cursor.fetchall()
        logger.debug(f"Fetched {len(rows)} catalog entries")
        units = []
        for row in rows:
            try:
                units.append(self._row_to_unit(row))
            except (ValueError, KeyError, TypeError) as e:
                logger.warning(f"Skipping corrupt catalog entry {row['id']}: {e}")
        return units

    async def delete_content_unit(self, content_id: str) -> bool:
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute("DELETE FROM media WHERE id = ?", (content_id,))
            await db.commit()
            return cursor.rowcount > 0

    @staticmethod
    def _row_to_unit(row) -> ContentUnit:
        unit = content_unit_from_dict({
            "id": row['id'],
            "title": row['title'],
            "type": row['type'],
            "thumbnail_url": row['thumbnail_url'],
            "backdrop_url": row['backdrop_url'],
            "video_url": row['video_url'],
            "seasons": json.loads(row['seasons']) if row['seasons'] else [],
            "description": row['description'],
            "year": row['year'],
            "genre": row['genre'],
            "rating": row['rating'],
        })
        created_at = row['created_at']
        if isinstance(created_at, str):
            # frozen dataclass
            unit = replace(unit, created_at=datetime.fromisoformat(created_at))
        return unit

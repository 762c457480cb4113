from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, List, Union, Dict, Any

@dataclass(frozen=True)
class Episode:
    id: str
    title: str
    video_url: str
    order: int = 1
    duration: Optional[str] = None  # display label, e.g. "45m"
    description: Optional[str] = None

@dataclass(frozen=True)
class Season:
    id: str
    season_number: int
    episodes: List[Episode] = field(default_factory=list)

@dataclass(frozen=True)
class Movie:
    id: str
    title: str
    video_url: str
    thumbnail_url: Optional[str] = None
    backdrop_url: Optional[str] = None
    description: str = ""
    year: Optional[int] = None
    genre: str = ""
    rating: float = 0.0
    created_at: datetime = field(default_factory=datetime.now)

    type = "movie"

@dataclass(frozen=True)
class Series:
    id: str
    title: str
    seasons: List[Season] = field(default_factory=list)
    thumbnail_url: Optional[str] = None
    backdrop_url: Optional[str] = None
    description: str = ""
    year: Optional[int] = None
    genre: str = ""
    rating: float = 0.0
    created_at: datetime = field(default_factory=datetime.now)

    type = "series"

ContentUnit = Union[Movie, Series]

class Badge(Enum):
    NONE = "none"
    IN_PROGRESS = "in_progress"
    WATCHED = "watched"

def progress_badge(percent: int) -> Badge:
    """Which indicator a catalog card shows for a completion percent."""
    if percent >= 100:
        return Badge.WATCHED
    if percent > 0:
        return Badge.IN_PROGRESS
    return Badge.NONE

@dataclass
class WatchProgress:
    content_id: str
    percent: int = 0
    last_watched: datetime = field(default_factory=datetime.now)

# Serialization, shared by the catalog table and the JSON importer

def episode_from_dict(data: Dict[str, Any]) -> Episode:
    return Episode(
        id=str(data["id"]),
        title=data.get("title", ""),
        video_url=data.get("videoUrl") or data.get("video_url") or "",
        order=int(data.get("order", 1)),
        duration=data.get("duration"),
        description=data.get("description"),
    )

def season_from_dict(data: Dict[str, Any]) -> Season:
    return Season(
        id=str(data["id"]),
        season_number=int(data.get("seasonNumber", data.get("season_number", 1))),
        episodes=[episode_from_dict(e) for e in data.get("episodes") or []],
    )

def content_unit_from_dict(data: Dict[str, Any]) -> ContentUnit:
    """Builds the right variant from the `type` tag. Unknown tags raise ValueError."""
    kind = data.get("type")
    common = dict(
        id=str(data["id"]),
        title=data.get("title", ""),
        thumbnail_url=data.get("thumbnailUrl") or data.get("thumbnail_url"),
        backdrop_url=data.get("backdropUrl") or data.get("backdrop_url"),
        description=data.get("description") or "",
        year=data.get("year"),
        genre=data.get("genre") or "",
        rating=float(data.get("rating") or 0.0),
    )
    if kind == "movie":
        return Movie(video_url=data.get("videoUrl") or data.get("video_url") or "", **common)
    if kind == "series":
        seasons = [season_from_dict(s) for s in data.get("seasons") or []]
        return Series(seasons=sorted(seasons, key=lambda s: s.season_number), **common)
    raise ValueError(f"Unknown content type: {kind!r}")

def episode_to_dict(episode: Episode) -> Dict[str, Any]:
    return {
        "id": episode.id,
        "title": episode.title,
        "videoUrl": episode.video_url,
        "order": episode.order,
        "duration": episode.duration,
        "description": episode.description,
    }

def season_to_dict(season: Season) -> Dict[str, Any]:
    return {
        "id": season.id,
        "seasonNumber": season.season_number,
        "episodes": [episode_to_dict(e) for e in season.episodes],
    }

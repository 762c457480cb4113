from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..database.models import Episode, Season, Series
from ..utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Cursor:
    season: Optional[Season]
    episode: Optional[Episode]


def _index_of(items, item_id: str) -> int:
    for i, item in enumerate(items):
        if item.id == item_id:
            return i
    return -1


def compute_next(current_season_id: str, current_episode_id: str,
                 seasons: List[Season]) -> Optional[Tuple[Season, Episode]]:
    """
    Next playable (season, episode) after the given one, by array position.

    Crosses into the following season when the current one is exhausted,
    skipping seasons that have no episodes. None means the end of the series.
    """
    season_idx = _index_of(seasons, current_season_id)
    if season_idx == -1:
        return None

    season = seasons[season_idx]
    episode_idx = _index_of(season.episodes, current_episode_id)
    if episode_idx == -1:
        return None
    if episode_idx + 1 < len(season.episodes):
        return season, season.episodes[episode_idx + 1]

    for later in seasons[season_idx + 1:]:
        if later.episodes:
            return later, later.episodes[0]
        logger.debug(f"Skipping empty season {later.season_number}")
    return None


class EpisodeNavigator:
    """Season/episode cursor for one series session."""

    def __init__(self, series: Series, initial_episode_id: Optional[str] = None):
        self.series = series
        self._season: Optional[Season] = None
        self._episode: Optional[Episode] = None

        if initial_episode_id and self.select_episode(initial_episode_id):
            return
        if initial_episode_id:
            logger.warning(f"Episode {initial_episode_id} not in {series.title}, starting from the top")
        if series.seasons:
            self._set_season(series.seasons[0])

    @property
    def seasons(self) -> List[Season]:
        return self.series.seasons

    @property
    def current_season(self) -> Optional[Season]:
        return self._season

    @property
    def current_episode(self) -> Optional[Episode]:
        return self._episode

    @property
    def cursor(self) -> Cursor:
        return Cursor(self._season, self._episode)

    @property
    def next_up(self) -> Optional[Episode]:
        """The "next" affordance target, None when there is nothing after."""
        if self._season is None or self._episode is None:
            return None
        nxt = compute_next(self._season.id, self._episode.id, self.seasons)
        return nxt[1] if nxt else None

    def _set_season(self, season: Season):
        self._season = season
        self._episode = season.episodes[0] if season.episodes else None

    def select_season(self, season_id: str) -> Cursor:
        idx = _index_of(self.seasons, season_id)
        if idx == -1:
            logger.warning(f"Unknown season {season_id}")
            return self.cursor
        self._set_season(self.seasons[idx])
        logger.debug(f"Season {self._season.season_number} selected")
        return self.cursor

    def select_episode(self, episode_id: str) -> Optional[Cursor]:
        for season in self.seasons:
            idx = _index_of(season.episodes, episode_id)
            if idx != -1:
                self._season = season
                self._episode = season.episodes[idx]
                return self.cursor
        return None

    def advance(self) -> Optional[Cursor]:
        if self._season is None or self._episode is None:
            return None
        nxt = compute_next(self._season.id, self._episode.id, self.seasons)
        if nxt is None:
            return None
        self._season, self._episode = nxt
        return self.cursor

import asyncio
from typing import Callable, List, Optional, Set

from .controls import ControlSurface
from .engine import PlaybackEngine, PlaybackState
from .navigator import EpisodeNavigator
from .primitive import FullscreenHost, MediaPrimitive
from .scheduler import AsyncioScheduler, Scheduler
from ..database.catalog import MediaCatalogProvider
from ..database.models import ContentUnit, Episode, Movie, Series
from ..database.progress import ProgressStore
from ..config import PROGRESS_MODE, COMPLETE_THRESHOLD, AUTO_PLAY_NEXT
from ..utils.logger import get_logger

logger = get_logger(__name__)

ON_NAVIGATE = "on_navigate"
ELAPSED = "elapsed"


class WatchHandle:
    def __init__(self, session: "WatchSession"):
        self.session = session

    async def unmount(self):
        await self.session.unmount()


class WatchSession:
    """
    One viewing session of one content unit: wires the engine, the control
    surface, the episode navigator and the progress store together.
    """

    def __init__(self, catalog: MediaCatalogProvider, progress: ProgressStore,
                 primitive: MediaPrimitive, fullscreen_host: Optional[FullscreenHost] = None,
                 scheduler: Optional[Scheduler] = None, progress_mode: str = PROGRESS_MODE,
                 auto_play_next: bool = AUTO_PLAY_NEXT):
        if progress_mode not in (ON_NAVIGATE, ELAPSED):
            raise ValueError(f"Unknown progress mode: {progress_mode}")
        self._catalog = catalog
        self._progress = progress
        self._primitive = primitive
        self._fullscreen_host = fullscreen_host
        self._scheduler = scheduler or AsyncioScheduler()
        self.progress_mode = progress_mode
        self.auto_play_next = auto_play_next

        self.content: Optional[ContentUnit] = None
        self.engine: Optional[PlaybackEngine] = None
        self.controls: Optional[ControlSurface] = None
        self.navigator: Optional[EpisodeNavigator] = None

        self._navigate_away_callbacks: List[Callable[[], None]] = []
        self._change_callbacks: List[Callable[[], None]] = []
        self._pending: Set[asyncio.Future] = set()
        self._last_saved_percent: Optional[int] = None
        self._mounted = False

    # Host hooks

    def on_navigate_away(self, callback: Callable[[], None]):
        self._navigate_away_callbacks.append(callback)

    def subscribe(self, callback: Callable[[], None]):
        """Fired when the current season/episode changes."""
        self._change_callbacks.append(callback)

    def request_navigate_away(self):
        logger.info("Leaving watch session")
        for callback in list(self._navigate_away_callbacks):
            callback()

    # Lifecycle

    async def mount(self, content_id: str, initial_episode_id: Optional[str] = None) -> Optional[WatchHandle]:
        unit = await self._catalog.get_content_unit(content_id)
        if unit is None:
            logger.warning(f"Content {content_id} not found")
            self.request_navigate_away()
            return None

        logger.info(f"Mounting watch session: {unit.title} ({unit.type})")
        self.content = unit
        self.engine = PlaybackEngine(self._primitive, self._fullscreen_host)
        self.controls = ControlSurface(self.engine, self._scheduler)
        self.engine.subscribe(self._on_playback_change)
        self.engine.add_ended_listener(self._on_ended)
        if isinstance(unit, Series):
            self.navigator = EpisodeNavigator(unit, initial_episode_id)
        self._mounted = True

        await self._play_current()
        return WatchHandle(self)

    async def unmount(self):
        if not self._mounted:
            return
        logger.info(f"Unmounting watch session: {self.content.title}")
        self._mounted = False
        self.controls.dispose()
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        self.engine.release()
        self._change_callbacks.clear()

    @property
    def mounted(self) -> bool:
        return self._mounted

    # Current unit

    @property
    def current_episode(self) -> Optional[Episode]:
        return self.navigator.current_episode if self.navigator else None

    @property
    def current_unit_id(self) -> Optional[str]:
        if isinstance(self.content, Movie):
            return self.content.id
        episode = self.current_episode
        return episode.id if episode else None

    @property
    def source_url(self) -> str:
        if isinstance(self.content, Movie):
            return self.content.video_url
        episode = self.current_episode
        return episode.video_url if episode else ""

    @property
    def title(self) -> str:
        if self.content is None:
            return ""
        episode = self.current_episode
        if isinstance(self.content, Series) and episode:
            return f"{self.content.title}: {episode.title}"
        return self.content.title

    @property
    def next_up(self) -> Optional[Episode]:
        return self.navigator.next_up if self.navigator else None

    # Navigation

    async def next_episode(self) -> bool:
        if not self._mounted or self.navigator is None:
            return False
        cursor = self.navigator.advance()
        if cursor is None:
            logger.info("End of series reached.")
            return False
        logger.info(f"Advancing to: {cursor.episode.title}")
        await self._play_current()
        return True

    async def select_season(self, season_id: str):
        if not self._mounted or self.navigator is None:
            return
        self.navigator.select_season(season_id)
        await self._play_current()

    async def select_episode(self, episode_id: str) -> bool:
        if not self._mounted or self.navigator is None:
            return False
        if self.navigator.select_episode(episode_id) is None:
            logger.warning(f"Episode {episode_id} not in this series")
            return False
        await self._play_current()
        return True

    async def _play_current(self):
        if not self._mounted:
            return
        self._last_saved_percent = None
        self.engine.load(self.source_url, autoplay=True)

        unit_id = self.current_unit_id
        if unit_id and self.progress_mode == ON_NAVIGATE:
            await self._progress.set(unit_id, 100)

        for callback in list(self._change_callbacks):
            callback()

    # Progress sampling

    def _on_playback_change(self, state: PlaybackState):
        if self.progress_mode != ELAPSED or not state.duration_known:
            return
        unit_id = self.current_unit_id
        if not unit_id:
            return
        fraction = state.position / state.duration
        percent = 100 if fraction >= COMPLETE_THRESHOLD else int(fraction * 100)
        if percent > 0 and percent != self._last_saved_percent:
            self._last_saved_percent = percent
            self._spawn(self._progress.set(unit_id, percent))

    def _on_ended(self):
        unit_id = self.current_unit_id
        if self.progress_mode == ELAPSED and unit_id and self._last_saved_percent != 100:
            self._last_saved_percent = 100
            self._spawn(self._progress.set(unit_id, 100))
        if self.auto_play_next and self.next_up is not None:
            self._spawn(self.next_episode())

    def _spawn(self, coro):
        task = asyncio.ensure_future(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self):
        """Waits for progress writes and navigation scheduled from callbacks."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, List, Optional

from .primitive import FullscreenHost, MediaPrimitive
from ..config import DEFAULT_VOLUME, DEFAULT_RATE, DEFAULT_QUALITY, PLAYBACK_RATES, QUALITY_LABELS
from ..utils.logger import get_logger

logger = get_logger(__name__)


class SourceStatus(Enum):
    NO_SOURCE = "no_source"  # nothing bound, or an empty url
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"  # native decode/open failure; persists until the next load()


@dataclass
class PlaybackState:
    position: float = 0.0
    duration: float = math.nan
    playing: bool = False  # event-sourced from the primitive
    play_requested: bool = False  # optimistic, what the transport button shows
    volume: float = DEFAULT_VOLUME
    muted: bool = False
    rate: float = DEFAULT_RATE
    quality: str = DEFAULT_QUALITY
    fullscreen: bool = False
    source: Optional[str] = None
    status: SourceStatus = SourceStatus.NO_SOURCE

    @property
    def duration_known(self) -> bool:
        return not math.isnan(self.duration) and self.duration > 0


class PlaybackEngine:
    """
    Owns the PlaybackState of one session and is the only writer of it.

    Commands update the state synchronously and then forward to the media
    primitive. The `playing` flag is the exception: it only changes when the
    primitive reports play/pause, so a rejected play request cannot leave the
    UI claiming playback.
    """

    def __init__(self, primitive: MediaPrimitive, fullscreen_host: Optional[FullscreenHost] = None,
                 volume: float = DEFAULT_VOLUME):
        self._primitive = primitive
        self._fullscreen_host = fullscreen_host
        self._state = PlaybackState(volume=volume)
        self._muted_by_zero_volume = False
        self._listeners: List[Callable[[PlaybackState], None]] = []
        self._ended_listeners: List[Callable[[], None]] = []

        events = primitive.events
        events.on_loaded_metadata = self._on_loaded_metadata
        events.on_time_update = self._on_time_update
        events.on_play = self._on_play
        events.on_pause = self._on_pause
        events.on_ended = self._on_ended
        events.on_error = self._on_error

        primitive.set_volume(volume)
        primitive.set_muted(False)
        primitive.set_rate(self._state.rate)

    @property
    def state(self) -> PlaybackState:
        """A snapshot; mutate through the engine's commands only."""
        return replace(self._state)

    def subscribe(self, listener: Callable[[PlaybackState], None]):
        self._listeners.append(listener)

    def unsubscribe(self, listener: Callable[[PlaybackState], None]):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def add_ended_listener(self, listener: Callable[[], None]):
        self._ended_listeners.append(listener)

    def _notify(self):
        snapshot = self.state
        for listener in list(self._listeners):
            listener(snapshot)

    # Source

    def load(self, url: Optional[str], autoplay: bool = False):
        s = self._state
        s.position = 0.0
        s.duration = math.nan
        s.playing = False
        s.play_requested = False

        if not url:
            logger.warning("No playable source for this unit")
            s.source = None
            s.status = SourceStatus.NO_SOURCE
            self._primitive.stop()
            self._notify()
            return

        logger.info(f"Loading source: {url}")
        s.source = url
        s.status = SourceStatus.LOADING
        self._primitive.load(url)
        self._notify()
        if autoplay:
            self.play()

    # Transport

    def play(self):
        if self._state.status in (SourceStatus.NO_SOURCE, SourceStatus.ERROR):
            return
        self._state.play_requested = True
        self._notify()
        try:
            accepted = self._primitive.play()
        except Exception as e:
            logger.warning(f"Play request failed: {e}")
            accepted = False
        if not accepted:
            logger.warning("Play request rejected by the media backend")
            self._state.play_requested = self._state.playing
            self._notify()

    def pause(self):
        if self._state.status in (SourceStatus.NO_SOURCE, SourceStatus.ERROR):
            return
        self._state.play_requested = False
        self._notify()
        self._primitive.pause()

    def toggle_play(self):
        # The primitive decides; our `playing` may lag one event behind it.
        if self._primitive.paused:
            self.play()
        else:
            self.pause()

    # Seeking

    def seek_relative(self, delta_seconds: float):
        s = self._state
        if not s.duration_known:
            return
        target = max(0.0, min(s.duration, s.position + delta_seconds))
        self._seek_to(target)

    def seek_absolute(self, fraction: float):
        s = self._state
        if not s.duration_known or math.isnan(fraction):
            return
        fraction = max(0.0, min(1.0, fraction))
        self._seek_to(fraction * s.duration)

    def _seek_to(self, position: float):
        self._state.position = position
        self._notify()
        self._primitive.seek(position)

    # Audio

    def set_volume(self, volume: float):
        s = self._state
        volume = max(0.0, min(1.0, float(volume)))
        s.volume = volume
        self._primitive.set_volume(volume)
        if volume == 0:
            s.muted = True
            self._muted_by_zero_volume = True
            self._primitive.set_muted(True)
        elif s.muted and self._muted_by_zero_volume:
            s.muted = False
            self._muted_by_zero_volume = False
            self._primitive.set_muted(False)
        self._notify()

    def toggle_mute(self):
        s = self._state
        s.muted = not s.muted
        # the stored volume is left alone, even at 0
        self._muted_by_zero_volume = False
        self._primitive.set_muted(s.muted)
        self._notify()

    # Rate / quality

    def set_rate(self, rate: float):
        if rate not in PLAYBACK_RATES:
            raise ValueError(f"Unsupported playback rate: {rate}")
        self._state.rate = rate
        self._primitive.set_rate(rate)
        self._notify()

    def set_quality(self, label: str):
        if label not in QUALITY_LABELS:
            raise ValueError(f"Unknown quality: {label}")
        self._state.quality = label
        self._notify()

    # Fullscreen

    @property
    def is_fullscreen(self) -> bool:
        return bool(self._fullscreen_host and self._fullscreen_host.is_fullscreen)

    async def request_fullscreen(self):
        if self._fullscreen_host is None or self.is_fullscreen:
            return
        try:
            await self._fullscreen_host.request_fullscreen()
        except Exception as e:
            logger.warning(f"Fullscreen request rejected: {e}")
        self._sync_fullscreen()

    async def exit_fullscreen(self):
        if not self.is_fullscreen:
            return
        try:
            await self._fullscreen_host.exit_fullscreen()
        except Exception as e:
            logger.warning(f"Fullscreen exit rejected: {e}")
        self._sync_fullscreen()

    async def toggle_fullscreen(self):
        if self.is_fullscreen:
            await self.exit_fullscreen()
        else:
            await self.request_fullscreen()

    def _sync_fullscreen(self):
        if self._state.fullscreen != self.is_fullscreen:
            self._state.fullscreen = self.is_fullscreen
            self._notify()

    # Teardown

    def release(self):
        logger.debug("Releasing media source")
        self._listeners.clear()
        self._ended_listeners.clear()
        self._primitive.release()
        self._state.source = None
        self._state.status = SourceStatus.NO_SOURCE
        self._state.playing = False
        self._state.play_requested = False

    # Primitive events

    def _on_loaded_metadata(self, duration: float):
        s = self._state
        s.duration = duration if duration and duration > 0 else math.nan
        if s.status == SourceStatus.LOADING:
            s.status = SourceStatus.READY
        self._notify()

    def _on_time_update(self, position: float):
        self._state.position = max(0.0, position)
        self._notify()

    def _on_play(self):
        self._state.playing = True
        self._state.play_requested = True
        self._notify()

    def _on_pause(self):
        self._state.playing = False
        self._state.play_requested = False
        self._notify()

    def _on_ended(self):
        s = self._state
        s.playing = False
        s.play_requested = False
        if s.duration_known:
            s.position = s.duration
        self._notify()
        for listener in list(self._ended_listeners):
            listener()

    def _on_error(self, message: str):
        logger.warning(f"Media error on {self._state.source}: {message}")
        s = self._state
        s.status = SourceStatus.ERROR
        s.playing = False
        s.play_requested = False
        self._notify()

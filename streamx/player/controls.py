import asyncio
from enum import Enum
from typing import Callable, List, Optional, Set

from .engine import PlaybackEngine, PlaybackState
from .scheduler import Scheduler, TimerHandle
from ..config import CONTROLS_HIDE_DELAY, SEEK_STEP, PLAYBACK_RATES, QUALITY_LABELS
from ..utils.format_utils import format_time, format_rate, progress_percent
from ..utils.logger import get_logger

logger = get_logger(__name__)


class Visibility(Enum):
    VISIBLE = "visible"
    HIDDEN = "hidden"


class SettingsMenu(Enum):
    CLOSED = "closed"
    ROOT = "root"
    SPEED = "speed"
    QUALITY = "quality"


class Key:
    SPACE = " "
    K = "k"
    F = "f"
    M = "m"
    LEFT = "ArrowLeft"
    RIGHT = "ArrowRight"
    ESCAPE = "Escape"


class ControlSurface:
    """
    Interactive overlay state: auto-hide visibility, the settings menu and the
    keyboard contract. Rendering is left to the view, which subscribes for
    changes and forwards pointer, touch and key input here.
    """

    def __init__(self, engine: PlaybackEngine, scheduler: Scheduler,
                 hide_delay: float = CONTROLS_HIDE_DELAY, seek_step: float = SEEK_STEP):
        self._engine = engine
        self._scheduler = scheduler
        self.hide_delay = hide_delay
        self.seek_step = seek_step

        self.visibility = Visibility.VISIBLE
        self.menu = SettingsMenu.CLOSED
        self._hide_timer: Optional[TimerHandle] = None
        self._listeners: List[Callable[[], None]] = []
        self._tasks: Set[asyncio.Future] = set()
        self._was_playing = engine.state.playing
        self._disposed = False

        engine.subscribe(self._on_engine_change)

    def subscribe(self, listener: Callable[[], None]):
        self._listeners.append(listener)

    def _notify(self):
        for listener in list(self._listeners):
            listener()

    @property
    def state(self) -> PlaybackState:
        return self._engine.state

    # Visibility

    def on_pointer_activity(self):
        """Pointer movement, touch start or key press."""
        if self._disposed:
            return
        changed = self.visibility != Visibility.VISIBLE
        self.visibility = Visibility.VISIBLE
        self._arm_hide_timer()
        if changed:
            self._notify()

    def _arm_hide_timer(self):
        if self._hide_timer is not None:
            self._hide_timer.cancel()
        self._hide_timer = self._scheduler.call_later(self.hide_delay, self._on_hide_timeout)

    def _on_hide_timeout(self):
        self._hide_timer = None
        if self._disposed:
            return
        if self._engine.state.playing and self.menu == SettingsMenu.CLOSED:
            logger.debug("Hiding controls after inactivity")
            self.visibility = Visibility.HIDDEN
            self._notify()

    def _on_engine_change(self, state: PlaybackState):
        if state.playing and not self._was_playing:
            # start the inactivity window when playback begins
            self._arm_hide_timer()
        self._was_playing = state.playing
        self._notify()

    # Keyboard

    def handle_key(self, key: str) -> bool:
        """
        Returns True when the key was consumed and the host must suppress its
        default action (space must not scroll the page).
        """
        if self._disposed:
            return False
        self.on_pointer_activity()
        if len(key) == 1:
            key = key.lower()

        if self.menu != SettingsMenu.CLOSED:
            if key == Key.ESCAPE:
                self.close_settings()
                return True
            return False

        if key in (Key.SPACE, Key.K):
            self._engine.toggle_play()
        elif key == Key.F:
            self.toggle_fullscreen()
        elif key == Key.M:
            self._engine.toggle_mute()
        elif key == Key.LEFT:
            self._engine.seek_relative(-self.seek_step)
        elif key == Key.RIGHT:
            self._engine.seek_relative(self.seek_step)
        elif key == Key.ESCAPE and self._engine.is_fullscreen:
            self._spawn(self._engine.exit_fullscreen())
        else:
            return False
        return True

    # Transport affordances

    def toggle_play(self):
        self._engine.toggle_play()

    def skip_back(self):
        self._engine.seek_relative(-self.seek_step)

    def skip_forward(self):
        self._engine.seek_relative(self.seek_step)

    def click_surface(self):
        self._engine.toggle_play()

    def double_click_surface(self):
        self.toggle_fullscreen()

    def toggle_fullscreen(self):
        self._spawn(self._engine.toggle_fullscreen())

    def toggle_mute(self):
        self._engine.toggle_mute()

    def set_volume(self, volume: float):
        self._engine.set_volume(volume)

    def scrub(self, fraction: float):
        self._engine.seek_absolute(fraction)

    def scrub_at(self, x: float, width: float):
        if width <= 0:
            return
        self.scrub(x / width)

    # Settings menu

    def toggle_settings(self):
        if self.menu == SettingsMenu.CLOSED:
            self.menu = SettingsMenu.ROOT
        else:
            self.menu = SettingsMenu.CLOSED
        self._notify()

    def open_speed_menu(self):
        if self.menu == SettingsMenu.ROOT:
            self.menu = SettingsMenu.SPEED
            self._notify()

    def open_quality_menu(self):
        if self.menu == SettingsMenu.ROOT:
            self.menu = SettingsMenu.QUALITY
            self._notify()

    def back(self):
        if self.menu in (SettingsMenu.SPEED, SettingsMenu.QUALITY):
            self.menu = SettingsMenu.ROOT
            self._notify()

    def select_rate(self, rate: float):
        if self.menu == SettingsMenu.CLOSED:
            return
        self._engine.set_rate(rate)
        self.menu = SettingsMenu.ROOT
        self._notify()

    def select_quality(self, label: str):
        if self.menu == SettingsMenu.CLOSED:
            return
        self._engine.set_quality(label)
        self.menu = SettingsMenu.ROOT
        self._notify()

    def close_settings(self):
        if self.menu != SettingsMenu.CLOSED:
            self.menu = SettingsMenu.CLOSED
            self._notify()

    @property
    def rate_options(self):
        return PLAYBACK_RATES

    @property
    def quality_options(self):
        return QUALITY_LABELS

    # Read-outs for the view

    @property
    def progress_percent(self) -> float:
        s = self._engine.state
        return progress_percent(s.position, s.duration)

    @property
    def current_time_text(self) -> str:
        return format_time(self._engine.state.position)

    @property
    def duration_text(self) -> str:
        return format_time(self._engine.state.duration)

    @property
    def rate_text(self) -> str:
        return format_rate(self._engine.state.rate)

    @property
    def slider_volume(self) -> float:
        s = self._engine.state
        return 0.0 if s.muted else s.volume

    @property
    def volume_level(self) -> str:
        s = self._engine.state
        if s.muted or s.volume == 0:
            return "muted"
        if s.volume < 0.5:
            return "low"
        return "high"

    # Teardown

    def _spawn(self, coro):
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def dispose(self):
        self._disposed = True
        if self._hide_timer is not None:
            self._hide_timer.cancel()
            self._hide_timer = None
        self._engine.unsubscribe(self._on_engine_change)
        self._listeners.clear()
        for task in list(self._tasks):
            task.cancel()

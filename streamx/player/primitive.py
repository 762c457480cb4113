from __future__ import annotations
from typing import Callable, Optional, Protocol


class PrimitiveEvents:
    """Callbacks a media primitive fires. All of them run on the event loop thread."""

    def __init__(self):
        self.on_loaded_metadata: Optional[Callable[[float], None]] = None  # duration, seconds
        self.on_time_update: Optional[Callable[[float], None]] = None  # position, seconds
        self.on_play: Optional[Callable[[], None]] = None
        self.on_pause: Optional[Callable[[], None]] = None
        self.on_ended: Optional[Callable[[], None]] = None
        self.on_error: Optional[Callable[[str], None]] = None

    def emit(self, name: str, *args) -> None:
        callback = getattr(self, name)
        if callback is not None:
            callback(*args)


class MediaPrimitive(Protocol):
    events: PrimitiveEvents

    # lifecycle
    def attach(self, win_id: int) -> None: ...
    def release(self) -> None: ...
    def stop(self) -> None: ...

    # load
    def load(self, url: str) -> None: ...

    # transport
    def play(self) -> bool: ...
    def pause(self) -> None: ...
    @property
    def paused(self) -> bool: ...

    # seek/volume/rate
    def seek(self, seconds: float) -> None: ...
    def set_volume(self, volume: float) -> None: ...
    def set_muted(self, muted: bool) -> None: ...
    def set_rate(self, rate: float) -> None: ...


class FullscreenHost(Protocol):
    """Host window capability; both calls may raise when the host refuses."""

    @property
    def is_fullscreen(self) -> bool: ...
    async def request_fullscreen(self) -> None: ...
    async def exit_fullscreen(self) -> None: ...


def create_primitive(kind: str, loop=None) -> MediaPrimitive:
    """Builds the native backend named by PREFERRED_PLAYER. Imported lazily, they need libVLC/libmpv."""
    if kind == "mpv":
        from .mpv_backend import MpvPrimitive
        return MpvPrimitive(loop)
    if kind == "embedded_vlc":
        from .vlc_backend import VlcPrimitive
        return VlcPrimitive(loop)
    raise ValueError(f"Unknown player backend: {kind}")

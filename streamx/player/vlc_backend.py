import asyncio
import sys
import vlc
from ..utils.logger import get_logger
from .primitive import PrimitiveEvents

logger = get_logger(__name__)

class VlcPrimitive:
    """libVLC media player rendered into a native window handle."""

    def __init__(self, loop: asyncio.AbstractEventLoop = None):
        self.events = PrimitiveEvents()
        self._loop = loop or asyncio.get_event_loop()

        # Stability flags for Windows/AMD
        args = [
            "--no-video-title-show",
            "--quiet",
            "--no-stats"
        ]
        self.instance = vlc.Instance(*args)
        self.player = self.instance.media_player_new()
        self._setup_events()

    def _setup_events(self):
        # libVLC fires these on its own thread; hop onto the loop before touching state
        em = self.player.event_manager()
        em.event_attach(vlc.EventType.MediaPlayerPlaying, lambda e: self._post("on_play"))
        em.event_attach(vlc.EventType.MediaPlayerPaused, lambda e: self._post("on_pause"))
        em.event_attach(vlc.EventType.MediaPlayerStopped, lambda e: self._post("on_pause"))
        em.event_attach(vlc.EventType.MediaPlayerTimeChanged,
                        lambda e: self._post("on_time_update", e.u.new_time / 1000.0))
        em.event_attach(vlc.EventType.MediaPlayerLengthChanged,
                        lambda e: self._post("on_loaded_metadata", e.u.new_length / 1000.0))
        em.event_attach(vlc.EventType.MediaPlayerEndReached, lambda e: self._post("on_ended"))
        em.event_attach(vlc.EventType.MediaPlayerEncounteredError,
                        lambda e: self._post("on_error", "libVLC could not open the source"))

    def _post(self, name, *args):
        if self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self.events.emit, name, *args)

    def attach(self, win_id: int):
        if sys.platform.startswith("win"):
            self.player.set_hwnd(win_id)
        elif sys.platform == "darwin":
            self.player.set_nsobject(win_id)
        else:
            self.player.set_xwindow(win_id)

    def release(self):
        # Detach from the window handle before it's destroyed, VLC deadlocks on Windows otherwise
        if sys.platform.startswith("win"):
            self.player.set_hwnd(0)
        elif sys.platform != "darwin":
            self.player.set_xwindow(0)
        self.player.stop()
        self.player.release()
        self.instance.release()

    def stop(self):
        self.player.stop()

    def load(self, url: str):
        media = self.instance.media_new(url)
        self.player.set_media(media)

    def play(self) -> bool:
        return self.player.play() == 0

    def pause(self):
        self.player.set_pause(1)

    @property
    def paused(self) -> bool:
        return not self.player.is_playing()

    def seek(self, seconds: float):
        if not self.player.is_seekable():
            logger.debug("Source is not seekable")
            return
        self.player.set_time(int(seconds * 1000))

    def set_volume(self, volume: float):
        self.player.audio_set_volume(int(round(volume * 100)))

    def set_muted(self, muted: bool):
        self.player.audio_set_mute(muted)

    def set_rate(self, rate: float):
        self.player.set_rate(rate)

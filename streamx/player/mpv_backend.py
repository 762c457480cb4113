import asyncio
import mpv
from ..utils.logger import get_logger
from .primitive import PrimitiveEvents

logger = get_logger(__name__)

class MpvPrimitive:
    """
    libmpv player embedded through `wid`.

    The MPV handle can only be created once the window id is known, so
    settings made before attach() are kept and applied on creation.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop = None):
        self.events = PrimitiveEvents()
        self._loop = loop or asyncio.get_event_loop()
        self._player = None
        self._pending_url = None
        self._volume = 50
        self._muted = False
        self._rate = 1.0

    def attach(self, win_id: int):
        if self._player is not None:
            logger.warning("mpv already attached, ignoring")
            return
        logger.debug(f"Creating mpv on wid {win_id}")
        self._player = mpv.MPV(
            wid=str(int(win_id)),
            ytdl=False,
            input_default_bindings=False,
            input_vo_keyboard=False,
            osc=False,
            keep_open="yes",
        )
        self._player.volume = self._volume
        self._player.mute = self._muted
        self._player.speed = self._rate
        self._player.observe_property("duration", self._on_duration)
        self._player.observe_property("time-pos", self._on_time_pos)
        self._player.observe_property("pause", self._on_pause_change)
        self._player.observe_property("eof-reached", self._on_eof)
        self._player.event_callback("end-file")(self._on_end_file)

        if self._pending_url:
            self._player.loadfile(self._pending_url, "replace", pause="yes")
            self._pending_url = None

    def _post(self, name, *args):
        if self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self.events.emit, name, *args)

    # mpv property observers run on the mpv event thread

    def _on_duration(self, _name, value):
        if value:
            self._post("on_loaded_metadata", float(value))

    def _on_time_pos(self, _name, value):
        if value is not None:
            self._post("on_time_update", float(value))

    def _on_pause_change(self, _name, value):
        self._post("on_pause" if value else "on_play")

    def _on_eof(self, _name, value):
        if value:
            self._post("on_ended")

    def _on_end_file(self, event):
        data = getattr(event, "data", None)
        if data is not None and data.reason == mpv.MpvEventEndFile.ERROR:
            self._post("on_error", f"mpv: end-file error {data.error}")

    def release(self):
        if self._player is None:
            return
        player = self._player
        self._player = None
        try:
            player.command("stop")
        except mpv.ShutdownError:
            pass
        player.terminate()

    def stop(self):
        self._pending_url = None
        if self._player is not None:
            self._player.command("stop")

    def load(self, url: str):
        if self._player is None:
            self._pending_url = url
            return
        # keep paused until the engine asks for playback
        self._player.loadfile(url, "replace", pause="yes")

    def play(self) -> bool:
        if self._player is None:
            return False
        self._player.pause = False
        return True

    def pause(self):
        if self._player is not None:
            self._player.pause = True

    @property
    def paused(self) -> bool:
        if self._player is None:
            return True
        return bool(self._player.pause)

    def seek(self, seconds: float):
        if self._player is not None:
            self._player.seek(seconds, "absolute")

    def set_volume(self, volume: float):
        self._volume = int(round(volume * 100))
        if self._player is not None:
            self._player.volume = self._volume

    def set_muted(self, muted: bool):
        self._muted = muted
        if self._player is not None:
            self._player.mute = muted

    def set_rate(self, rate: float):
        self._rate = rate
        if self._player is not None:
            self._player.speed = rate

import sys
import asyncio
from PyQt6.QtWidgets import QApplication
import qdarktheme
from qasync import QEventLoop
from streamx.utils.logger import get_logger, setup_logging
from streamx.config import PREFERRED_PLAYER
from streamx.database.catalog import CatalogManager
from streamx.database.progress import ProgressStore
from streamx.player.primitive import create_primitive
from streamx.player.session import WatchSession
from streamx.ui.player_window import PlayerWindow, QtFullscreenHost

# Initialize logging
setup_logging()
logger = get_logger("StreamX")

USAGE = "Usage: streamx <content_id> [episode_id]"

def main():
    args = sys.argv[1:]
    if not args:
        print(USAGE)
        return 1
    content_id = args[0]
    episode_id = args[1] if len(args) > 1 else None

    app = QApplication(sys.argv)

    # Apply Dark Theme
    qdarktheme.setup_theme("dark", corner_shape="rounded")

    loop = QEventLoop(app)
    asyncio.set_event_loop(loop)

    catalog = CatalogManager()
    progress = ProgressStore()

    async def setup():
        await catalog.initialize()
        await progress.initialize()

        primitive = create_primitive(PREFERRED_PLAYER, loop)
        window = PlayerWindow(primitive, progress)
        session = WatchSession(catalog, progress, primitive, fullscreen_host=QtFullscreenHost(window))

        async def shutdown():
            await session.unmount()
            app.quit()

        window.window_closed.connect(lambda: asyncio.ensure_future(shutdown()))
        session.on_navigate_away(window.close)

        window.show()
        window.attach_video()
        # Ensure window is kept alive
        app._window = window

        handle = await session.mount(content_id, episode_id)
        if handle is None:
            logger.error(f"Nothing to play for '{content_id}'")
            return
        window.bind(session)

    # Schedule the initial setup
    asyncio.ensure_future(setup())

    with loop:
        loop.run_forever()
    return 0

if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        pass

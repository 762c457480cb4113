import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Base Paths
BASE_DIR = Path(__file__).parent.parent
DB_PATH = Path(os.getenv("STREAMX_DB_PATH", str(BASE_DIR / "streamx.db")))

# Player Backend
PREFERRED_PLAYER = os.getenv("PREFERRED_PLAYER", "embedded_vlc")  # "embedded_vlc" or "mpv"

# Control Surface
CONTROLS_HIDE_DELAY = 3.0  # seconds of inactivity before the controls hide
SEEK_STEP = 10  # seconds, arrow keys and skip buttons

# Playback Settings
PLAYBACK_RATES = (0.5, 0.75, 1.0, 1.25, 1.5, 2.0)
DEFAULT_RATE = 1.0
QUALITY_LABELS = ("4K Ultra", "Full HD", "720p", "Auto")
DEFAULT_QUALITY = "Auto"
DEFAULT_VOLUME = 0.5

# Watch Progress
PROGRESS_MODE = os.getenv("PROGRESS_MODE", "on_navigate")  # "on_navigate" or "elapsed"
COMPLETE_THRESHOLD = 0.9  # 90% watched counts as completed in elapsed mode
AUTO_PLAY_NEXT = os.getenv("AUTO_PLAY_NEXT", "1").lower() not in ("0", "false", "no")

# Logging
LOG_LEVEL = os.getenv("STREAMX_LOG_LEVEL", "INFO").upper()
LOG_FILE = Path(os.getenv("STREAMX_LOG_FILE", str(BASE_DIR / "streamx.log")))

import asyncio
from PyQt6.QtWidgets import (QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QPushButton, QLabel, QSlider, QFrame,
                             QStyle, QStyleOptionSlider)
from PyQt6.QtCore import Qt, pyqtSignal
from ..database.progress import ProgressStore
from ..player.controls import ControlSurface, Key, SettingsMenu, Visibility
from ..player.engine import SourceStatus
from ..player.primitive import MediaPrimitive
from ..player.session import WatchSession
from .episode_panel import EpisodePanel
from ..utils.format_utils import format_rate
from ..utils.logger import get_logger

logger = get_logger(__name__)

QT_KEYS = {
    Qt.Key.Key_Space: Key.SPACE,
    Qt.Key.Key_K: Key.K,
    Qt.Key.Key_F: Key.F,
    Qt.Key.Key_M: Key.M,
    Qt.Key.Key_Left: Key.LEFT,
    Qt.Key.Key_Right: Key.RIGHT,
    Qt.Key.Key_Escape: Key.ESCAPE,
}

VOLUME_ICONS = {
    "muted": "🔇",
    "low": "🔉",
    "high": "🔊",
}

class QtFullscreenHost:
    """Fullscreen capability backed by the top-level window."""

    def __init__(self, window: QMainWindow):
        self.window = window

    @property
    def is_fullscreen(self) -> bool:
        return self.window.isFullScreen()

    async def request_fullscreen(self):
        self.window.showFullScreen()

    async def exit_fullscreen(self):
        self.window.showNormal()

class PlayerWindow(QMainWindow):
    window_closed = pyqtSignal()

    def __init__(self, primitive: MediaPrimitive, progress: ProgressStore, parent=None):
        super().__init__(parent)
        self.setWindowTitle("StreamX")
        self.resize(1280, 720)

        self.primitive = primitive
        self.progress = progress
        self.session: WatchSession = None
        self.controls: ControlSurface = None
        self._closing = False
        self._settings_key = None

        self.setup_ui()

    def setup_ui(self):
        self.central_widget = QWidget()
        self.setCentralWidget(self.central_widget)
        self.root_layout = QHBoxLayout(self.central_widget)
        self.root_layout.setContentsMargins(0, 0, 0, 0)
        self.root_layout.setSpacing(0)

        self.player_area = QWidget()
        self.layout = QVBoxLayout(self.player_area)
        self.layout.setContentsMargins(0, 0, 0, 0)
        self.layout.setSpacing(0)

        # Top bar: back + title
        self.top_bar = QFrame()
        self.top_bar.setFixedHeight(48)
        self.top_bar.setStyleSheet("background-color: #1a1a1a;")
        top_layout = QHBoxLayout(self.top_bar)
        top_layout.setContentsMargins(10, 5, 10, 5)
        self.back_btn = QPushButton("← Back")
        self.back_btn.clicked.connect(self._on_back_clicked)
        self.title_label = QLabel("")
        self.title_label.setStyleSheet("font-weight: bold; font-size: 15px;")
        top_layout.addWidget(self.back_btn)
        top_layout.addWidget(self.title_label, 1)

        # Video Surface
        self.video_container = QWidget()
        self.video_container.setStyleSheet("background-color: black;")
        self.video_container.setAttribute(Qt.WidgetAttribute.WA_NativeWindow)

        # Status overlay for "no source" / error, child of video_container
        self.status_label = QLabel(self.video_container)
        self.status_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.status_label.hide()
        self.status_label.setStyleSheet("""
            QLabel {
                color: white;
                background-color: rgba(0, 0, 0, 0.6);
                border-radius: 20px;
                font-size: 22px;
                padding: 20px 40px;
            }
        """)

        # Settings panel, floats over the video
        self.settings_panel = QFrame(self.video_container)
        self.settings_panel.setStyleSheet("""
            QFrame {
                background-color: rgba(20, 20, 20, 0.95);
                border-radius: 8px;
            }
        """)
        self.settings_layout = QVBoxLayout(self.settings_panel)
        self.settings_layout.setContentsMargins(8, 8, 8, 8)
        self.settings_panel.hide()

        # Controls Overlay (Bottom)
        self.controls_bar = QFrame()
        self.controls_bar.setFixedHeight(100)
        self.controls_bar.setStyleSheet("background-color: #1a1a1a;")
        self.controls_layout = QVBoxLayout(self.controls_bar)
        self.controls_layout.setContentsMargins(15, 10, 15, 10)
        self.controls_layout.setSpacing(5)

        # Seek Bar
        self.seek_slider = QSlider(Qt.Orientation.Horizontal)
        self.seek_slider.setRange(0, 1000)
        self.seek_slider.sliderReleased.connect(self._on_seek_released)

        self.btns_layout = QHBoxLayout()
        self.btns_layout.setSpacing(10)

        self.play_pause_btn = QPushButton("▶️")
        self.play_pause_btn.setMinimumSize(40, 40)

        self.skip_back_btn = QPushButton("⏪")
        self.skip_back_btn.setToolTip("Skip Back 10s")
        self.skip_back_btn.setMinimumSize(40, 40)

        self.skip_fwd_btn = QPushButton("⏩")
        self.skip_fwd_btn.setToolTip("Skip Forward 10s")
        self.skip_fwd_btn.setMinimumSize(40, 40)

        self.next_episode_btn = QPushButton("⏭")
        self.next_episode_btn.setToolTip("Next Episode")
        self.next_episode_btn.setMinimumSize(40, 40)
        self.next_episode_btn.hide()

        self.volume_btn = QPushButton("🔊")
        self.volume_btn.setMinimumSize(40, 40)

        self.volume_slider = QSlider(Qt.Orientation.Horizontal)
        self.volume_slider.setRange(0, 100)
        self.volume_slider.setFixedWidth(100)

        self.time_label = QLabel("00:00 / 00:00")
        self.time_label.setStyleSheet("font-family: 'Consolas';")

        self.settings_btn = QPushButton("⚙️")
        self.settings_btn.setMinimumSize(40, 40)

        self.fullscreen_btn = QPushButton("⛶")
        self.fullscreen_btn.setMinimumSize(40, 40)

        self.btns_layout.addWidget(self.play_pause_btn)
        self.btns_layout.addWidget(self.skip_back_btn)
        self.btns_layout.addWidget(self.skip_fwd_btn)
        self.btns_layout.addWidget(self.next_episode_btn)
        self.btns_layout.addSpacing(15)
        self.btns_layout.addWidget(self.volume_btn)
        self.btns_layout.addWidget(self.volume_slider)
        self.btns_layout.addSpacing(10)
        self.btns_layout.addWidget(self.time_label)
        self.btns_layout.addStretch()
        self.btns_layout.addWidget(self.settings_btn)
        self.btns_layout.addWidget(self.fullscreen_btn)

        self.controls_layout.addWidget(self.seek_slider)
        self.controls_layout.addLayout(self.btns_layout)

        self.layout.addWidget(self.top_bar)
        self.layout.addWidget(self.video_container, 1)
        self.layout.addWidget(self.controls_bar)

        self.episode_panel = EpisodePanel()
        self.episode_panel.hide()

        self.root_layout.addWidget(self.player_area, 1)
        self.root_layout.addWidget(self.episode_panel)

        # Enable mouse tracking for the auto-hide controls
        self.setMouseTracking(True)
        self.central_widget.setMouseTracking(True)
        self.player_area.setMouseTracking(True)
        self.video_container.setMouseTracking(True)

        for w in (self.back_btn, self.play_pause_btn, self.skip_back_btn, self.skip_fwd_btn,
                  self.next_episode_btn, self.volume_btn, self.settings_btn, self.fullscreen_btn,
                  self.seek_slider, self.volume_slider):
            self._route_input(w)
        for w in (self.episode_panel.season_combo, self.episode_panel.episode_list):
            w.installEventFilter(self)

    def _route_input(self, widget):
        # Controls never hold focus, shortcut keys reach the window instead
        widget.setFocusPolicy(Qt.FocusPolicy.NoFocus)
        widget.installEventFilter(self)

    def attach_video(self):
        """Hand the native surface to the media backend, once the window is shown."""
        win_id = int(self.video_container.winId())
        logger.debug(f"Attaching video surface {win_id}")
        self.primitive.attach(win_id)

    def bind(self, session: WatchSession):
        """Wire the widgets to a mounted session."""
        self.session = session
        self.controls = session.controls
        c = self.controls

        self.play_pause_btn.clicked.connect(c.toggle_play)
        self.skip_back_btn.clicked.connect(c.skip_back)
        self.skip_fwd_btn.clicked.connect(c.skip_forward)
        self.volume_btn.clicked.connect(c.toggle_mute)
        self.volume_slider.valueChanged.connect(lambda v: c.set_volume(v / 100.0))
        self.settings_btn.clicked.connect(c.toggle_settings)
        self.fullscreen_btn.clicked.connect(c.toggle_fullscreen)
        self.next_episode_btn.clicked.connect(self._on_next_clicked)

        self.episode_panel.season_selected.connect(
            lambda sid: asyncio.ensure_future(self.session.select_season(sid)))
        self.episode_panel.episode_selected.connect(
            lambda eid: asyncio.ensure_future(self.session.select_episode(eid)))
        self.episode_panel.next_clicked.connect(self._on_next_clicked)
        self.episode_panel.setVisible(session.navigator is not None)

        c.subscribe(self._render)
        session.subscribe(self._on_unit_changed)
        self._on_unit_changed()
        self._render()
        c.on_pointer_activity()

    # Rendering

    def _render(self):
        c = self.controls
        if c is None:
            return
        s = c.state

        self.play_pause_btn.setText("⏸️" if s.play_requested else "▶️")
        if not self.seek_slider.isSliderDown():
            self.seek_slider.setValue(int(c.progress_percent * 10))
        self.seek_slider.setEnabled(s.duration_known)
        self.time_label.setText(f"{c.current_time_text} / {c.duration_text}")

        self.volume_btn.setText(VOLUME_ICONS[c.volume_level])
        self.volume_slider.blockSignals(True)
        self.volume_slider.setValue(int(round(c.slider_volume * 100)))
        self.volume_slider.blockSignals(False)

        self.fullscreen_btn.setText("🗗" if s.fullscreen else "⛶")

        if s.status == SourceStatus.NO_SOURCE:
            self._show_status("No playable source for this title")
        elif s.status == SourceStatus.ERROR:
            self._show_status("Playback error: the video could not be loaded")
        else:
            self.status_label.hide()

        visible = c.visibility == Visibility.VISIBLE
        self.controls_bar.setVisible(visible)
        self.top_bar.setVisible(visible)
        if self.session and self.session.navigator is not None:
            self.episode_panel.setVisible(not s.fullscreen)
        self.setCursor(Qt.CursorShape.ArrowCursor if visible else Qt.CursorShape.BlankCursor)

        self._render_settings()

    def _render_settings(self):
        c = self.controls
        s = c.state
        key = (c.menu, s.rate, s.quality)
        if key == self._settings_key:
            return
        self._settings_key = key

        while self.settings_layout.count():
            item = self.settings_layout.takeAt(0)
            if item.widget():
                item.widget().deleteLater()

        if c.menu == SettingsMenu.CLOSED:
            self.settings_panel.hide()
            return

        if c.menu == SettingsMenu.ROOT:
            self._add_menu_button(f"Speed: {c.rate_text}", c.open_speed_menu)
            self._add_menu_button(f"Quality: {s.quality}", c.open_quality_menu)
        elif c.menu == SettingsMenu.SPEED:
            self._add_menu_button("← Speed", c.back)
            for rate in c.rate_options:
                mark = "✓ " if rate == s.rate else ""
                self._add_menu_button(f"{mark}{format_rate(rate)}", lambda r=rate: c.select_rate(r))
        elif c.menu == SettingsMenu.QUALITY:
            self._add_menu_button("← Quality", c.back)
            for label in c.quality_options:
                mark = "✓ " if label == s.quality else ""
                self._add_menu_button(f"{mark}{label}", lambda q=label: c.select_quality(q))

        self.settings_panel.adjustSize()
        x = self.video_container.width() - self.settings_panel.width() - 15
        y = self.video_container.height() - self.settings_panel.height() - 15
        self.settings_panel.move(max(0, x), max(0, y))
        self.settings_panel.show()
        self.settings_panel.raise_()

    def _add_menu_button(self, text, slot):
        btn = QPushButton(text)
        btn.setFlat(True)
        self._route_input(btn)
        btn.clicked.connect(slot)
        self.settings_layout.addWidget(btn)

    def _show_status(self, text):
        self.status_label.setText(text)
        self.status_label.adjustSize()
        x = (self.video_container.width() - self.status_label.width()) // 2
        y = (self.video_container.height() - self.status_label.height()) // 2
        self.status_label.move(x, y)
        self.status_label.show()
        self.status_label.raise_()

    def _on_unit_changed(self):
        session = self.session
        self.title_label.setText(session.title)
        self.setWindowTitle(f"StreamX - {session.title}")
        self.next_episode_btn.setVisible(session.next_up is not None)
        if session.navigator is not None:
            asyncio.ensure_future(self._refresh_episode_panel())

    async def _refresh_episode_panel(self):
        progress_map = await self.progress.all()
        if self.session and self.session.navigator is not None:
            self.episode_panel.refresh(self.session.navigator, progress_map)

    def _on_next_clicked(self):
        if self.session:
            asyncio.ensure_future(self.session.next_episode())

    def _on_back_clicked(self):
        if self.session:
            self.session.request_navigate_away()
        else:
            self.close()

    def _on_seek_released(self):
        if self.controls:
            self.controls.scrub(self.seek_slider.value() / 1000.0)

    # Input

    def resizeEvent(self, event):
        super().resizeEvent(event)
        if self.controls:
            self._render()

    def mouseMoveEvent(self, event):
        if self.controls:
            self.controls.on_pointer_activity()
        super().mouseMoveEvent(event)

    def mousePressEvent(self, event):
        if self.controls and self.video_container.underMouse() and event.button() == Qt.MouseButton.LeftButton:
            self.controls.click_surface()
        super().mousePressEvent(event)

    def mouseDoubleClickEvent(self, event):
        if self.controls and self.video_container.underMouse():
            self.controls.double_click_surface()
        super().mouseDoubleClickEvent(event)

    def keyPressEvent(self, event):
        key = QT_KEYS.get(event.key())
        if self.controls and key is not None and self.controls.handle_key(key):
            event.accept()
            return
        super().keyPressEvent(event)

    def eventFilter(self, obj, event):
        """Route shortcut keys from focused children, so space never activates a button."""
        if event.type() == event.Type.KeyPress and event.key() in QT_KEYS:
            self.keyPressEvent(event)
            return True
        if event.type() == event.Type.KeyRelease and event.key() in QT_KEYS:
            return True
        if event.type() == event.Type.MouseMove and self.controls:
            self.controls.on_pointer_activity()
        if (obj is self.seek_slider and event.type() == event.Type.MouseButtonPress
                and event.button() == Qt.MouseButton.LeftButton and self._seek_to_click(event)):
            return True
        return super().eventFilter(obj, event)

    def _seek_to_click(self, event) -> bool:
        """Jump to a click on the groove. Presses on the handle still start a drag."""
        slider = self.seek_slider
        if self.controls is None or not slider.isEnabled():
            return False
        opt = QStyleOptionSlider()
        slider.initStyleOption(opt)
        handle = slider.style().subControlRect(
            QStyle.ComplexControl.CC_Slider, opt, QStyle.SubControl.SC_SliderHandle, slider)
        pos = event.position().toPoint()
        if handle.contains(pos):
            return False
        self.controls.on_pointer_activity()
        self.controls.scrub_at(pos.x(), slider.width())
        return True

    def closeEvent(self, event):
        if not self._closing:
            self._closing = True
            self.window_closed.emit()
        event.accept()

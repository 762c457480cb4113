from PyQt6.QtWidgets import QWidget, QVBoxLayout, QListWidget, QListWidgetItem, QLabel, QComboBox, QPushButton
from PyQt6.QtCore import pyqtSignal, Qt
from ..database.models import Badge, progress_badge
from ..player.navigator import EpisodeNavigator

BADGE_ICONS = {
    Badge.WATCHED: "✅",
    Badge.IN_PROGRESS: "◐",
    Badge.NONE: "",
}

class EpisodePanel(QWidget):
    season_selected = pyqtSignal(str)
    episode_selected = pyqtSignal(str)
    next_clicked = pyqtSignal()

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setFixedWidth(320)
        self.layout = QVBoxLayout(self)
        self.layout.setContentsMargins(10, 10, 10, 10)
        self.layout.setSpacing(8)

        self.header = QLabel("Episodes")
        self.header.setStyleSheet("""
            font-size: 18px;
            font-weight: bold;
            color: rgba(255, 255, 255, 0.9);
        """)
        self.layout.addWidget(self.header)

        self.season_combo = QComboBox()
        self.season_combo.activated.connect(self._on_season_activated)
        self.layout.addWidget(self.season_combo)

        self.episode_list = QListWidget()
        self.episode_list.setStyleSheet("""
            QListWidget {
                background-color: transparent;
                border: none;
            }
            QListWidget::item {
                padding: 8px;
                border-radius: 6px;
            }
            QListWidget::item:selected {
                background-color: rgba(0, 200, 83, 0.25);
            }
        """)
        self.episode_list.itemClicked.connect(self._on_item_clicked)
        self.layout.addWidget(self.episode_list, 1)

        self.next_btn = QPushButton("Next Episode ⏭")
        self.next_btn.setMinimumHeight(36)
        self.next_btn.clicked.connect(self.next_clicked.emit)
        self.layout.addWidget(self.next_btn)

    def refresh(self, navigator: EpisodeNavigator, progress_map: dict = None):
        progress_map = progress_map or {}
        current_season = navigator.current_season
        current_episode = navigator.current_episode

        self.season_combo.blockSignals(True)
        self.season_combo.clear()
        for season in navigator.seasons:
            self.season_combo.addItem(f"Season {season.season_number}", season.id)
            if current_season and season.id == current_season.id:
                self.season_combo.setCurrentIndex(self.season_combo.count() - 1)
        self.season_combo.blockSignals(False)

        self.episode_list.clear()
        episodes = current_season.episodes if current_season else []
        for i, ep in enumerate(episodes, 1):
            badge = BADGE_ICONS[progress_badge(progress_map.get(ep.id, 0))]
            text = f"{i}. {ep.title}"
            if ep.duration:
                text += f"  •  {ep.duration}"
            if badge:
                text = f"{badge} {text}"
            item = QListWidgetItem(text)
            item.setData(Qt.ItemDataRole.UserRole, ep.id)
            self.episode_list.addItem(item)
            if current_episode and ep.id == current_episode.id:
                item.setSelected(True)
                self.episode_list.setCurrentItem(item)

        next_up = navigator.next_up
        # hidden at the end of the series
        self.next_btn.setVisible(next_up is not None)
        if next_up is not None:
            self.next_btn.setToolTip(f"Up next: {next_up.title}")

    def _on_season_activated(self, index):
        season_id = self.season_combo.itemData(index)
        if season_id is not None:
            self.season_selected.emit(season_id)

    def _on_item_clicked(self, item):
        ep_id = item.data(Qt.ItemDataRole.UserRole)
        if ep_id is not None:
            self.episode_selected.emit(ep_id)

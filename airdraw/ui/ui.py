from typing import Dict, List, Optional, Sequence, Tuple

import cv2
import numpy as np
from PySide6.QtCore import QPointF, QRectF, Qt, Signal
from PySide6.QtGui import QBrush, QCloseEvent, QColor, QImage, QPainter, QPaintEvent, QPen, QPixmap
from PySide6.QtWidgets import (
    QDialog, QDialogButtonBox, QFileDialog, QFrame, QHBoxLayout, QLabel,
    QMainWindow, QPushButton, QSizePolicy, QStatusBar, QVBoxLayout, QWidget
)

from airdraw.canvas.surface import DrawingSurface
from airdraw.core.hit_test import ACTION_ANALYZE, ACTION_CLEAR
from airdraw.core.init_state import InitState
from airdraw.enhance.orchestrator import RequestState
from airdraw.ui.hit_test_service import set_markers
from airdraw.vision.frame_data import CursorGlyph, Point

VIDEO_OPACITY = 0.4
RESULT_BASENAME = "airdraw-enhanced"

# Save-dialog extension and filter per returned image type
_IMAGE_FORMATS = {
    "image/png": ("png", "PNG Image (*.png)"),
    "image/jpeg": ("jpg", "JPEG Image (*.jpg *.jpeg)"),
    "image/webp": ("webp", "WebP Image (*.webp)"),
}


# --- CURSOR OVERLAY ---
class CursorOverlayWidget(QWidget):
    """
    Cursor layer above everything on the stage.

    Transparent for mouse events, so hit-testing looks straight through it.
    `resize(width, height)` is QWidget's own.
    """

    def __init__(self, radius: int = 6, parent=None):
        super().__init__(parent)
        self.setAttribute(Qt.WA_TransparentForMouseEvents)
        self.setAttribute(Qt.WA_NoSystemBackground)
        self._radius = radius
        self._cursor: Optional[Tuple[Point, CursorGlyph, str]] = None

    @property
    def cursor(self) -> Optional[Tuple[Point, CursorGlyph, str]]:
        return self._cursor

    def clear(self):
        if self._cursor is not None:
            self._cursor = None
            self.update()

    def draw_cursor(self, point: Point, glyph: CursorGlyph, color: str):
        self._cursor = (point, glyph, color)
        self.update()

    def paintEvent(self, event: QPaintEvent):
        if self._cursor is None:
            return
        point, glyph, color = self._cursor
        center = QPointF(point.x, point.y)

        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing)
        if glyph is CursorGlyph.ACTIVE:
            r = self._radius * 1.5
            painter.setPen(QPen(QColor("#FFFFFF"), 2))
            painter.setBrush(QBrush(QColor(color)))
            painter.drawEllipse(center, r, r)
        else:
            painter.setPen(QPen(QColor("#FFFFFF"), 2))
            painter.setBrush(Qt.NoBrush)
            painter.drawEllipse(center, self._radius, self._radius)
            painter.setPen(Qt.NoPen)
            painter.setBrush(QBrush(QColor(color)))
            painter.drawEllipse(center, 2, 2)
        painter.end()


# --- STATUS / INIT OVERLAYS ---
class StatusBadge(QLabel):
    def __init__(self, parent=None):
        super().__init__(parent)
        self.setAttribute(Qt.WA_TransparentForMouseEvents)
        self.setAlignment(Qt.AlignCenter)
        self.setFixedHeight(32)
        self.set_active(False)

    def set_active(self, active: bool):
        if active:
            self.setText("ACTIVE")
            self.setStyleSheet(
                "background: rgba(34, 211, 238, 0.9); color: #09090B; padding: 4px 14px;"
                " border-radius: 16px; font-weight: bold;"
            )
        else:
            self.setText("PINCH TO DRAW")
            self.setStyleSheet(
                "background: rgba(24, 24, 27, 0.8); color: #A1A1AA; padding: 4px 14px;"
                " border-radius: 16px; font-weight: 600;"
            )
        self.adjustSize()


class InitOverlay(QFrame):
    start_requested = Signal()

    _MESSAGES = {
        InitState.LOADING: "Initializing Vision Models...",
        InitState.ACQUIRING_CAMERA: "Initializing Vision Models...",
        InitState.LOAD_FAILED: "Hand tracking unavailable",
        InitState.PERMISSION_DENIED: "Camera Access Denied",
        InitState.CAMERA_READY: "Pinch thumb and index finger to draw.\nPinch a toolbar button to use it.",
    }

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setStyleSheet("InitOverlay { background: rgba(9, 9, 11, 0.92); }")

        layout = QVBoxLayout(self)
        layout.setAlignment(Qt.AlignCenter)
        layout.setSpacing(20)

        self.message_label = QLabel()
        self.message_label.setAlignment(Qt.AlignCenter)
        self.message_label.setWordWrap(True)
        self.message_label.setStyleSheet("color: #E4E4E7; font-size: 18px; font-weight: 600;")
        layout.addWidget(self.message_label)

        self.error_label = QLabel()
        self.error_label.setAlignment(Qt.AlignCenter)
        self.error_label.setWordWrap(True)
        self.error_label.setStyleSheet("color: #F87171; font-size: 12px;")
        layout.addWidget(self.error_label)

        self.start_button = QPushButton("Start Hand Detection")
        self.start_button.setFixedSize(220, 52)
        self.start_button.setStyleSheet("""
            QPushButton {
                background-color: #22D3EE; color: #09090B; border: none;
                border-radius: 26px; font-size: 15px; font-weight: bold;
            }
            QPushButton:hover { background-color: #67E8F9; }
        """)
        self.start_button.clicked.connect(self.start_requested.emit)
        layout.addWidget(self.start_button, alignment=Qt.AlignCenter)
        self.hide()

    def show_state(self, state: InitState, error: Optional[BaseException] = None):
        message = self._MESSAGES.get(state)
        if message is None:
            self.hide()
            return
        self.message_label.setText(message)
        self.error_label.setText(str(error) if error is not None else "")
        self.error_label.setVisible(error is not None)
        self.start_button.setVisible(state is InitState.CAMERA_READY)
        self.show()
        self.raise_()


# --- TOOLBAR ---
class ToolButton(QPushButton):
    def __init__(self, tooltip: str, icon_text: str, parent=None, size: int = 48, font_px: int = 16):
        super().__init__(parent)
        self.setText(icon_text)
        self.setToolTip(tooltip)
        self.setFixedSize(size, size)
        self.setFocusPolicy(Qt.NoFocus)
        self._size = size
        self._font_px = font_px
        self._is_active = False
        self._init_style()

    def set_active(self, active: bool):
        self._is_active = active
        self._init_style()

    def _init_style(self):
        if self._is_active:
            bg, bg_hover, border, text = "#22D3EE", "#67E8F9", "#FFFFFF", "#09090B"
        else:
            bg, bg_hover, border, text = "#27272A", "#3F3F46", "#3F3F46", "#E4E4E7"
        self.setStyleSheet(f"""
            QPushButton {{
                background-color: {bg}; color: {text}; border: 2px solid {border};
                border-radius: {self._size // 2}px; font-size: {self._font_px}px; font-weight: bold;
            }}
            QPushButton:hover {{ background-color: {bg_hover}; }}
        """)


class ColorSwatchButton(ToolButton):
    def __init__(self, color_hex: str, tooltip: str = "", size: int = 40, parent=None):
        self._color_hex = color_hex
        self._is_selected = False
        super().__init__(tooltip=tooltip or color_hex, icon_text="", parent=parent, size=size)
        set_markers(self, color=color_hex)

    @property
    def color_hex(self) -> str:
        return self._color_hex

    def set_selected(self, selected: bool):
        self._is_selected = selected
        self._init_style()

    def _init_style(self):
        border = "3px solid #FFFFFF" if self._is_selected else "2px solid #3F3F46"
        self.setStyleSheet(f"""
            QPushButton {{
                background-color: {self._color_hex};
                border: {border};
                border-radius: {self._size // 2}px;
            }}
            QPushButton:hover {{ border: 3px solid #A1A1AA; }}
        """)


class EnhanceButton(QPushButton):
    def __init__(self, parent=None):
        super().__init__(parent)
        self.setFixedSize(116, 56)
        self.setFocusPolicy(Qt.NoFocus)
        self.setStyleSheet("""
            QPushButton {
                background: qlineargradient(x1:0, y1:0, x2:1, y2:1, stop:0 #A855F7, stop:1 #22D3EE);
                color: white; border: none; border-radius: 14px; font-size: 11px; font-weight: bold;
            }
            QPushButton:disabled { background: #27272A; color: #71717A; }
        """)
        set_markers(self, action=ACTION_ANALYZE)
        self.set_state(RequestState.IDLE)

    def set_state(self, state: RequestState, remaining_ms: int = 0):
        if state is RequestState.IN_FLIGHT:
            self.setText("ENHANCING...")
        elif state is RequestState.COOLDOWN:
            self.setText(f"WAIT {max(1, -(-remaining_ms // 1000))}s")
        else:
            self.setText("ENHANCE DRAWING")
        self.setEnabled(state is RequestState.IDLE)


class Toolbar(QFrame):
    color_chosen = Signal(str)
    size_chosen = Signal(int)
    clear_requested = Signal()
    enhance_requested = Signal()

    def __init__(self, palette: Sequence[Tuple[str, str]], sizes: Sequence[int], parent=None):
        super().__init__(parent)
        self.setFixedWidth(140)
        self.setStyleSheet("Toolbar { background: rgba(24, 24, 27, 0.85); border-radius: 20px; }")

        self._swatches: List[ColorSwatchButton] = []
        self._size_buttons: Dict[int, ToolButton] = {}

        l = QVBoxLayout(self)
        l.setContentsMargins(12, 16, 12, 16)
        l.setSpacing(10)
        l.setAlignment(Qt.AlignHCenter)

        title = QLabel("AirDraw")
        title.setAlignment(Qt.AlignCenter)
        title.setStyleSheet("color: #E4E4E7; font-size: 16px; font-weight: 800; letter-spacing: 1px;")
        l.addWidget(title)

        grid = QWidget()
        grid_layout = QVBoxLayout(grid)
        grid_layout.setContentsMargins(0, 0, 0, 0)
        grid_layout.setSpacing(8)
        for i in range(0, len(palette), 2):
            row = QHBoxLayout()
            row.setSpacing(8)
            for name, color in palette[i:i + 2]:
                btn = ColorSwatchButton(color, name)
                btn.clicked.connect(lambda ch=False, c=color: self.color_chosen.emit(c))
                row.addWidget(btn)
                self._swatches.append(btn)
            grid_layout.addLayout(row)
        l.addWidget(grid)

        l.addSpacing(6)
        for size in sizes:
            btn = ToolButton(f"Brush {size}px", f"{size}", size=40, font_px=13)
            set_markers(btn, size=size)
            btn.clicked.connect(lambda ch=False, s=size: self.size_chosen.emit(s))
            l.addWidget(btn, alignment=Qt.AlignHCenter)
            self._size_buttons[size] = btn

        l.addStretch()

        self.enhance_button = EnhanceButton()
        self.enhance_button.clicked.connect(self.enhance_requested.emit)
        l.addWidget(self.enhance_button, alignment=Qt.AlignHCenter)

        self.clear_button = ToolButton("Clear", "🗑", size=48, font_px=20)
        set_markers(self.clear_button, action=ACTION_CLEAR)
        self.clear_button.clicked.connect(self.clear_requested.emit)
        l.addWidget(self.clear_button, alignment=Qt.AlignHCenter)

    def set_selected_color(self, color: str):
        for b in self._swatches:
            b.set_selected(b.color_hex.lower() == color.lower())

    def set_selected_size(self, size: int):
        for s, b in self._size_buttons.items():
            b.set_active(s == size)

    def swatch(self, color: str) -> Optional[ColorSwatchButton]:
        for b in self._swatches:
            if b.color_hex.lower() == color.lower():
                return b
        return None

    def size_button(self, size: int) -> Optional[ToolButton]:
        return self._size_buttons.get(size)


# --- STAGE ---
class StageWidget(QWidget):
    """Mirrored camera feed, the drawing surface on top, and the overlays."""

    def __init__(self, surface: DrawingSurface, cursor_radius: int = 6, parent=None):
        super().__init__(parent)
        self._surface = surface
        self._video: Optional[QImage] = None
        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)
        self.setAttribute(Qt.WA_OpaquePaintEvent)

        self.cursor_overlay = CursorOverlayWidget(cursor_radius, self)
        self.badge = StatusBadge(self)
        self.init_overlay = InitOverlay(self)

    def raise_overlays(self):
        self.cursor_overlay.raise_()
        self.badge.raise_()
        self.init_overlay.raise_()

    def set_pinch_active(self, active: bool):
        self.badge.set_active(active)
        self._place_badge()

    def viewport(self) -> Tuple[int, int]:
        return self.width(), self.height()

    def set_video_frame(self, frame: np.ndarray):
        display = cv2.flip(frame, 1)
        rgb = cv2.cvtColor(display, cv2.COLOR_BGR2RGB)
        h, w, ch = rgb.shape
        self._video = QImage(rgb.data, w, h, ch * w, QImage.Format_RGB888).copy()

    def resizeEvent(self, event):
        super().resizeEvent(event)
        self.cursor_overlay.setGeometry(self.rect())
        self.init_overlay.setGeometry(self.rect())
        self._place_badge()

    def _place_badge(self):
        self.badge.adjustSize()
        self.badge.move((self.width() - self.badge.width()) // 2, self.height() - self.badge.height() - 24)

    def paintEvent(self, event: QPaintEvent):
        painter = QPainter(self)
        painter.fillRect(self.rect(), QColor("#09090B"))

        if self._video is not None:
            painter.setOpacity(VIDEO_OPACITY)
            painter.drawImage(self._cover_rect(self._video.width(), self._video.height()), self._video)
            painter.setOpacity(1.0)

        image = self._surface.image
        if image.size:
            h, w = image.shape[:2]
            # Anti-aliased edges are blended against transparent black
            layer = QImage(image.data, w, h, 4 * w, QImage.Format_ARGB32_Premultiplied)
            painter.drawImage(0, 0, layer)
        painter.end()

    def _cover_rect(self, src_w: int, src_h: int) -> QRectF:
        scale = max(self.width() / src_w, self.height() / src_h)
        w, h = src_w * scale, src_h * scale
        return QRectF((self.width() - w) / 2, (self.height() - h) / 2, w, h)


# --- RESULT DIALOG ---
class ResultDialog(QDialog):
    status_message = Signal(str)

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Enhanced Drawing")
        self.setStyleSheet("QDialog { background: #18181B; } QLabel { color: #E4E4E7; }")
        self._image_bytes: Optional[bytes] = None
        self._mime_type = "image/png"

        layout = QVBoxLayout(self)
        self.image_label = QLabel()
        self.image_label.setAlignment(Qt.AlignCenter)
        self.image_label.setMinimumSize(480, 360)
        layout.addWidget(self.image_label, stretch=1)

        buttons = QDialogButtonBox()
        self.save_button = buttons.addButton("Save Image", QDialogButtonBox.AcceptRole)
        self.close_button = buttons.addButton("Close", QDialogButtonBox.RejectRole)
        self.save_button.clicked.connect(self._on_save)
        self.close_button.clicked.connect(self.hide)
        layout.addWidget(buttons)

    @property
    def image_bytes(self) -> Optional[bytes]:
        return self._image_bytes

    @property
    def mime_type(self) -> str:
        return self._mime_type

    def suggested_filename(self) -> str:
        ext, _ = _IMAGE_FORMATS.get(self._mime_type, _IMAGE_FORMATS["image/png"])
        return f"{RESULT_BASENAME}.{ext}"

    def set_image(self, image_bytes: bytes, mime_type: str = "image/png") -> bool:
        pixmap = QPixmap()
        if not pixmap.loadFromData(image_bytes):
            return False
        self._image_bytes = image_bytes
        self._mime_type = mime_type
        self.image_label.setPixmap(
            pixmap.scaled(960, 720, Qt.KeepAspectRatio, Qt.SmoothTransformation)
        )
        return True

    def save_to(self, path: str) -> bool:
        if self._image_bytes is None:
            return False
        try:
            with open(path, "wb") as f:
                f.write(self._image_bytes)
        except OSError as e:
            self.status_message.emit(f"Save failed: {e}")
            return False
        self.status_message.emit(f"Saved to: {path}")
        return True

    def _on_save(self):
        _, file_filter = _IMAGE_FORMATS.get(self._mime_type, _IMAGE_FORMATS["image/png"])
        path, _ = QFileDialog.getSaveFileName(self, "Save Image", self.suggested_filename(), file_filter)
        if path:
            self.save_to(path)


# --- MAIN WINDOW ---
class MainWindow(QMainWindow):
    closing = Signal()

    def __init__(
        self,
        surface: DrawingSurface,
        palette: Sequence[Tuple[str, str]],
        sizes: Sequence[int],
        cursor_radius: int = 6,
    ):
        super().__init__()
        self.setWindowTitle("AirDraw")
        self.resize(1280, 800)
        self.setStyleSheet("QMainWindow { background-color: #09090B; }")

        self.stage = StageWidget(surface, cursor_radius)
        self.setCentralWidget(self.stage)

        stage_layout = QHBoxLayout(self.stage)
        stage_layout.setContentsMargins(16, 16, 16, 16)
        stage_layout.addStretch(1)
        self.toolbar = Toolbar(palette, sizes)
        stage_layout.addWidget(self.toolbar)
        self.stage.raise_overlays()

        self.result_dialog = ResultDialog(self)

        self.status_bar = QStatusBar()
        self.status_bar.setStyleSheet("QStatusBar { background: #18181B; color: #A1A1AA; }")
        self.fps_label = QLabel()
        self.status_bar.addPermanentWidget(self.fps_label)
        self.setStatusBar(self.status_bar)
        self.result_dialog.status_message.connect(self.show_message)

    @property
    def cursor_overlay(self) -> CursorOverlayWidget:
        return self.stage.cursor_overlay

    @property
    def init_overlay(self) -> InitOverlay:
        return self.stage.init_overlay

    def show_init_state(self, state: InitState, error: Optional[BaseException] = None):
        self.stage.init_overlay.show_state(state, error)

    def set_pinch_active(self, active: bool):
        self.stage.set_pinch_active(active)

    def set_enhance_state(self, state: RequestState, remaining_ms: int = 0):
        self.toolbar.enhance_button.set_state(state, remaining_ms)

    def set_fps(self, fps: float):
        self.fps_label.setText(f"{fps:.0f} FPS")

    def show_message(self, text: str, timeout_ms: int = 5000):
        self.status_bar.showMessage(text, timeout_ms)

    def show_result(self, image_bytes: bytes, mime_type: str = "image/png"):
        if not self.result_dialog.set_image(image_bytes, mime_type):
            self.show_message("Enhanced image could not be decoded")
            return
        self.result_dialog.show()
        self.result_dialog.raise_()

    def hide_result(self):
        self.result_dialog.hide()

    def closeEvent(self, event: QCloseEvent):
        self.closing.emit()
        super().closeEvent(event)

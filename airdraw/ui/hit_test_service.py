from typing import Optional

from PySide6.QtCore import QPoint
from PySide6.QtWidgets import QWidget

from airdraw.core.hit_test import ElementMarkers
from airdraw.vision.frame_data import Point

# Dynamic Qt properties carrying the semantic markers of a control
MARKER_COLOR = "airdraw_color"
MARKER_SIZE = "airdraw_size"
MARKER_ACTION = "airdraw_action"


def set_markers(widget: QWidget, color: str = None, size: int = None, action: str = None):
    if color is not None:
        widget.setProperty(MARKER_COLOR, color)
    if size is not None:
        widget.setProperty(MARKER_SIZE, int(size))
    if action is not None:
        widget.setProperty(MARKER_ACTION, action)


def read_markers(widget: QWidget) -> Optional[ElementMarkers]:
    color = widget.property(MARKER_COLOR)
    size = widget.property(MARKER_SIZE)
    action = widget.property(MARKER_ACTION)
    if color is None and size is None and action is None:
        return None
    return ElementMarkers(
        color=str(color) if color is not None else None,
        size=int(size) if size is not None else None,
        action=str(action) if action is not None else None,
        disabled=not widget.isEnabled(),
    )


class WidgetHitTestService:
    """
    Finds the control under a stage point.

    `QWidget.childAt` skips widgets with WA_TransparentForMouseEvents, so
    the cursor overlay drawn above the toolbar never hides it.
    """

    def __init__(self, root: QWidget):
        self._root = root

    def element_at(self, point: Point) -> Optional[ElementMarkers]:
        widget = self._root.childAt(QPoint(int(round(point.x)), int(round(point.y))))
        while widget is not None and widget is not self._root:
            markers = read_markers(widget)
            if markers is not None:
                return markers
            widget = widget.parentWidget()
        return None

from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from airdraw.core.logger import get_logger
from airdraw.vision.frame_data import Point

logger = get_logger("HitTest")

ACTION_CLEAR = "clear"
ACTION_ANALYZE = "analyze"


@dataclass(frozen=True)
class ElementMarkers:
    """Semantic markers of the interactive element under a point."""
    color: Optional[str] = None
    size: Optional[int] = None
    action: Optional[str] = None
    disabled: bool = False

    @property
    def is_empty(self) -> bool:
        return self.color is None and self.size is None and self.action is None


class HitTestService(Protocol):
    def element_at(self, point: Point) -> Optional[ElementMarkers]:
        ...


@dataclass
class RouterActions:
    select_color: Callable[[str], None]
    select_size: Callable[[int], None]
    clear: Callable[[], None]
    trigger_enhance: Callable[[], object]


class HitTestRouter:
    """
    Routes a pinching cursor to whatever control lies beneath it.

    Called on every pinching frame. The enhancement trigger relies on the
    element's disabled flag and on the orchestrator's own guard; the other
    actions fire every frame unless `repeat_actions` is off, in which case
    each element fires once per held pinch.
    """

    def __init__(self, service: HitTestService, actions: RouterActions, repeat_actions: bool = True):
        self._service = service
        self._actions = actions
        self.repeat_actions = repeat_actions
        self._fired: Optional[ElementMarkers] = None

    def route(self, point: Point) -> Optional[ElementMarkers]:
        markers = self._service.element_at(point)
        if markers is None or markers.is_empty:
            self._fired = None
            return None

        if not self.repeat_actions and markers == self._fired:
            self._maybe_trigger(markers)
            return markers
        self._fired = markers

        if markers.color is not None:
            self._actions.select_color(markers.color)
        if markers.size is not None:
            self._actions.select_size(markers.size)
        if markers.action == ACTION_CLEAR:
            self._actions.clear()
        elif markers.action not in (None, ACTION_ANALYZE):
            logger.debug("Ignoring unknown action marker %r", markers.action)
        self._maybe_trigger(markers)
        return markers

    def release(self):
        """Pinch released or hand lost."""
        self._fired = None

    def _maybe_trigger(self, markers: ElementMarkers):
        if markers.action != ACTION_ANALYZE:
            return
        if markers.disabled:
            return
        self._actions.trigger_enhance()

from dataclasses import dataclass, field
from typing import List, Optional

from airdraw.core.logger import get_logger
from airdraw.vision.frame_data import Point

from .surface import DrawingSurface

logger = get_logger("StrokeTracker")


@dataclass
class Stroke:
    """One maximal run of pinching frames with a detected hand."""
    points: List[Point] = field(default_factory=list)
    color: str = "#FFFFFF"
    thickness: float = 8.0

    @property
    def segment_count(self) -> int:
        return max(0, len(self.points) - 1)


@dataclass(frozen=True)
class Segment:
    start: Point
    end: Point
    color: str
    thickness: float


class StrokeTracker:
    def __init__(self, surface: DrawingSurface, history_limit: int = 256):
        self.surface = surface
        self.last_point: Optional[Point] = None
        self.current_stroke: Optional[Stroke] = None
        # Finished strokes, newest last; kept short, the raster is the truth
        self.strokes: List[Stroke] = []
        self._history_limit = history_limit

    @property
    def in_stroke(self) -> bool:
        return self.last_point is not None

    def extend(self, point: Point, color: str, thickness: float) -> Optional[Segment]:
        """Continue the stroke to `point`. Returns the drawn segment, if any."""
        segment = None
        if self.last_point is None:
            self.current_stroke = Stroke(color=color, thickness=thickness)
        else:
            self.surface.draw_segment(self.last_point, point, color, thickness)
            segment = Segment(self.last_point, point, color, thickness)

        self.current_stroke.points.append(point)
        self.last_point = point
        return segment

    def break_stroke(self):
        if self.current_stroke is not None:
            self.strokes.append(self.current_stroke)
            if len(self.strokes) > self._history_limit:
                self.strokes.pop(0)
            logger.debug("Stroke finished: %d segments", self.current_stroke.segment_count)
        self.current_stroke = None
        self.last_point = None

    def clear_surface(self, reset_stroke: bool = True):
        self.surface.clear()
        self.strokes.clear()
        if reset_stroke:
            self.current_stroke = None
            self.last_point = None

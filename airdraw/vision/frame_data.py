from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence, Tuple

# Fixed indices inside the 21-point hand model
THUMB_TIP = 4
INDEX_FINGER_TIP = 8
NUM_LANDMARKS = 21


@dataclass(frozen=True)
class Point:
    """Screen-space coordinate (pixels of the stage)."""
    x: float
    y: float


@dataclass(frozen=True)
class Landmark:
    """Normalized keypoint: x, y in [0, 1], z is relative depth."""
    x: float
    y: float
    z: float = 0.0


# Ordered 21 landmarks of one detected hand
LandmarkSet = Sequence[Landmark]


class PinchState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"


class CursorGlyph(str, Enum):
    HOVER = "hover"
    ACTIVE = "active"


@dataclass
class CursorState:
    smoothed: Point = Point(0.0, 0.0)
    pinching: bool = False
    # False when no hand was detected in the last frame
    visible: bool = False


@dataclass
class BrushState:
    color: str = "#22D3EE"
    size: int = 8


@dataclass
class FrameState:
    # Owned by the frame loop, one record for the whole session
    cursor: CursorState = field(default_factory=CursorState)
    viewport: Tuple[int, int] = (0, 0)
    hand_present: bool = False
    last_timestamp_ms: int = 0
    frame_count: int = 0
    skipped_frames: int = 0
    fps: float = 0.0

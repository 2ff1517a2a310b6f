import time
from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Tuple

import numpy as np

from airdraw.canvas.stroke import StrokeTracker
from airdraw.core.hit_test import HitTestRouter
from airdraw.core.logger import get_logger
from airdraw.core.scheduler import LoopHandle, Scheduler
from airdraw.vision.frame_data import (
    BrushState,
    CursorGlyph,
    FrameState,
    LandmarkSet,
    Point,
)
from airdraw.vision.gesture_detector import PinchClassifier
from airdraw.vision.metrics import MetricsCollector
from airdraw.vision.smoother import ExponentialSmoother

logger = get_logger("FrameLoop")


class FrameSource(Protocol):
    def current_frame(self) -> Optional[np.ndarray]:
        ...


class LandmarkDetector(Protocol):
    def detect(self, frame: np.ndarray, timestamp_ms: int) -> Optional[LandmarkSet]:
        ...


class CursorOverlay(Protocol):
    def clear(self) -> None:
        ...

    def draw_cursor(self, point: Point, glyph: CursorGlyph, color: str) -> None:
        ...

    def resize(self, width: int, height: int) -> None:
        ...


@dataclass
class FrameCallbacks:
    on_video_frame: Optional[Callable[[np.ndarray], None]] = None
    on_pinch_changed: Optional[Callable[[bool], None]] = None
    on_frame_done: Optional[Callable[[FrameState], None]] = None


class FrameLoop:
    """
    One iteration per display refresh:
    frame -> detector -> pinch -> smoothing -> hit-test / stroke -> cursor.

    Everything runs on the caller's thread; an iteration always completes
    (detector included) before the next one is scheduled.
    """

    def __init__(
        self,
        frame_source: FrameSource,
        detector: LandmarkDetector,
        tracker: StrokeTracker,
        router: HitTestRouter,
        overlay: CursorOverlay,
        brush: BrushState,
        viewport: Callable[[], Tuple[int, int]],
        scheduler: Scheduler,
        classifier: Optional[PinchClassifier] = None,
        smoother: Optional[ExponentialSmoother] = None,
        callbacks: Optional[FrameCallbacks] = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self._source = frame_source
        self._detector = detector
        self._tracker = tracker
        self._router = router
        self._overlay = overlay
        self._brush = brush
        self._viewport = viewport
        self._scheduler = scheduler
        self._classifier = classifier or PinchClassifier()
        self._smoother = smoother or ExponentialSmoother()
        self._callbacks = callbacks or FrameCallbacks()
        self._clock = clock
        self._metrics = MetricsCollector(clock=clock)
        self._handle: Optional[LoopHandle] = None

        self.state = FrameState()

    @property
    def running(self) -> bool:
        return self._handle is not None and self._handle.running

    def start(self):
        if self._handle is not None:
            raise RuntimeError("frame loop can only be started once")
        logger.info("Frame loop started")
        self._handle = LoopHandle(self._scheduler, self.tick)
        self._handle.start()

    def stop(self) -> bool:
        if self._handle is None:
            return False
        stopped = self._handle.stop()
        if stopped:
            logger.info("Frame loop stopped after %d frames", self.state.frame_count)
        return stopped

    def tick(self):
        state = self.state
        frame = self._source.current_frame()
        if frame is None or frame.ndim < 2 or frame.shape[0] == 0 or frame.shape[1] == 0:
            state.skipped_frames += 1
            logger.debug("Video frame not ready, skipping")
            return

        if self._callbacks.on_video_frame:
            self._callbacks.on_video_frame(frame)

        width, height = self._viewport()
        if width <= 0 or height <= 0:
            state.skipped_frames += 1
            return
        if (width, height) != state.viewport:
            logger.debug("Viewport %s -> %s", state.viewport, (width, height))
            self._tracker.surface.resize(width, height)
            self._overlay.resize(width, height)
            state.viewport = (width, height)

        landmarks = self._detector.detect(frame, self._next_timestamp())

        self._overlay.clear()
        was_pinching = state.cursor.pinching

        if landmarks:
            self._process_hand(landmarks, width, height)
        else:
            state.hand_present = False
            state.cursor.pinching = False
            state.cursor.visible = False
            self._tracker.break_stroke()
            self._router.release()

        if state.cursor.pinching != was_pinching and self._callbacks.on_pinch_changed:
            self._callbacks.on_pinch_changed(state.cursor.pinching)

        state.frame_count += 1
        state.fps = self._metrics.update()
        if self._callbacks.on_frame_done:
            self._callbacks.on_frame_done(state)

    def _process_hand(self, landmarks: LandmarkSet, width: int, height: int):
        state = self.state
        gesture = self._classifier.classify(landmarks)

        # Mirror x: the camera faces the user
        target = Point((1.0 - gesture.index_tip.x) * width, gesture.index_tip.y * height)
        point = self._smoother.update(target)

        state.hand_present = True
        state.cursor.smoothed = point
        state.cursor.pinching = gesture.is_pinching
        state.cursor.visible = True

        brush = self._brush
        if gesture.is_pinching:
            self._router.route(point)
            self._overlay.draw_cursor(point, CursorGlyph.ACTIVE, brush.color)
            self._tracker.extend(point, brush.color, brush.size)
        else:
            self._overlay.draw_cursor(point, CursorGlyph.HOVER, brush.color)
            self._tracker.break_stroke()
            self._router.release()

    def _next_timestamp(self) -> int:
        # The detector rejects timestamps that do not increase
        now_ms = int(self._clock() * 1000)
        ts = max(now_ms, self.state.last_timestamp_ms + 1)
        self.state.last_timestamp_ms = ts
        return ts

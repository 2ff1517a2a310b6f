from dataclasses import dataclass

import numpy as np

from .frame_data import (
    INDEX_FINGER_TIP,
    NUM_LANDMARKS,
    THUMB_TIP,
    Landmark,
    LandmarkSet,
    PinchState,
)


@dataclass(frozen=True)
class GestureResult:
    state: PinchState
    distance: float
    index_tip: Landmark
    thumb_tip: Landmark

    @property
    def is_pinching(self) -> bool:
        return self.state is PinchState.ACTIVE


class PinchClassifier:
    def __init__(self, threshold: float = 0.12):
        # Normalized image units; 0.08 proved too strict on webcams
        if threshold <= 0:
            raise ValueError(f"threshold must be positive, got {threshold}")
        self.threshold = threshold

    def classify(self, landmarks: LandmarkSet) -> GestureResult:
        if len(landmarks) != NUM_LANDMARKS:
            raise ValueError(f"expected {NUM_LANDMARKS} landmarks, got {len(landmarks)}")

        index_tip = landmarks[INDEX_FINGER_TIP]
        thumb_tip = landmarks[THUMB_TIP]
        distance = self._dist(index_tip, thumb_tip)

        state = PinchState.ACTIVE if distance < self.threshold else PinchState.IDLE
        return GestureResult(state=state, distance=distance, index_tip=index_tip, thumb_tip=thumb_tip)

    def _dist(self, p1, p2) -> float:
        # 2D only, depth is too noisy for a pinch decision
        return float(np.hypot(p1.x - p2.x, p1.y - p2.y))

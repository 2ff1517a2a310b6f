from typing import Optional

from .frame_data import Point


class ExponentialSmoother:
    def __init__(self, gain: float = 0.2, initial: Optional[Point] = None):
        """
        gain: share of the new target taken every frame (0..1].
              0.2 gives a calm cursor that still follows quick strokes.
        initial: starting value; the cursor glides in from the origin otherwise.
        """
        if not 0.0 < gain <= 1.0:
            raise ValueError(f"gain must be in (0, 1], got {gain}")
        self.gain = gain
        self._initial = initial or Point(0.0, 0.0)
        self.value = self._initial

    def update(self, target: Point) -> Point:
        """next = previous * (1 - k) + target * k, independently per axis."""
        k = self.gain
        prev = self.value
        self.value = Point(
            prev.x * (1.0 - k) + target.x * k,
            prev.y * (1.0 - k) + target.y * k,
        )
        return self.value

    def reset(self):
        self.value = self._initial

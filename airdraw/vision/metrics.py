import time
from collections import deque
from typing import Callable


class MetricsCollector:
    def __init__(self, window: int = 30, clock: Callable[[], float] = time.perf_counter):
        self._clock = clock
        self.frame_times = deque(maxlen=window)

    def update(self) -> float:
        """Called once per processed frame. Returns the current FPS."""
        self.frame_times.append(self._clock())

        if len(self.frame_times) < 2:
            return 0.0

        # FPS = (frames - 1) / time between first and last
        elapsed = self.frame_times[-1] - self.frame_times[0]
        if elapsed <= 0:
            return 0.0
        return (len(self.frame_times) - 1) / elapsed

    def reset(self):
        self.frame_times.clear()

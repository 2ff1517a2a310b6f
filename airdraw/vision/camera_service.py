import time
from typing import Optional, Tuple

import cv2
import numpy as np

from airdraw.core.logger import get_logger

logger = get_logger("CameraService")


class CameraError(Exception):
    """Camera could not be opened or never produced a frame."""
    pass


class CameraService:
    def __init__(self, camera_index: int = 0, resolution: Tuple[int, int] = (1920, 1080)):
        self.camera_index = camera_index
        self.resolution = resolution
        self.cap: Optional[cv2.VideoCapture] = None
        self._ready = False
        self.frame_count = 0
        self.last_frame_shape: Tuple[int, int] = (0, 0)

    @property
    def is_ready(self) -> bool:
        """True once the stream delivered a decodable, non-empty frame."""
        return self._ready

    def open(self, ready_timeout_s: float = 5.0, poll_interval_s: float = 0.05) -> "CameraService":
        """
        Open the device and wait for the first real frame.

        Blocking; run it off the GUI thread.

        Raises:
            CameraError: device missing, access denied or no frame in time.
        """
        self.cap = cv2.VideoCapture(self.camera_index)
        if not self.cap.isOpened():
            self.release()
            raise CameraError(f"Could not open camera {self.camera_index}")

        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.resolution[0])
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.resolution[1])

        deadline = time.monotonic() + ready_timeout_s
        while time.monotonic() < deadline:
            if self.current_frame() is not None:
                h, w = self.last_frame_shape
                logger.info("Camera %d ready (%dx%d)", self.camera_index, w, h)
                return self
            time.sleep(poll_interval_s)

        self.release()
        raise CameraError(f"Camera {self.camera_index} produced no frames within {ready_timeout_s:.1f}s")

    def current_frame(self) -> Optional[np.ndarray]:
        """Latest BGR frame, or None when the stream has nothing decodable yet."""
        if self.cap is None:
            return None
        ret, frame = self.cap.read()
        if not ret or frame is None or frame.size == 0:
            return None
        if frame.shape[0] == 0 or frame.shape[1] == 0:
            return None

        self._ready = True
        self.frame_count += 1
        self.last_frame_shape = frame.shape[:2]
        return frame

    def release(self):
        if self.cap is not None and self.cap.isOpened():
            self.cap.release()
        self.cap = None
        self._ready = False

    def __del__(self):
        self.release()

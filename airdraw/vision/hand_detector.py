"""
Hand landmark detection with the MediaPipe Tasks HandLandmarker.

The model file is downloaded once and cached; construction is blocking
(network + model load) and is run off the GUI thread by the app core.
"""

from pathlib import Path
from typing import Optional

import cv2
import mediapipe as mp
import numpy as np
import requests
from mediapipe.tasks import python as mp_python
from mediapipe.tasks.python import vision as mp_vision

from airdraw.core.config import DetectorConfig
from airdraw.core.logger import get_logger

from .frame_data import NUM_LANDMARKS, Landmark, LandmarkSet

logger = get_logger("HandDetector")

DOWNLOAD_CHUNK_SIZE = 64 * 1024


class DetectorError(Exception):
    """Hand detector could not be constructed."""
    pass


def ensure_model(config: DetectorConfig) -> Path:
    """
    Return the local path of the hand landmarker model, downloading it if needed.

    Raises:
        DetectorError: if the download fails.
    """
    cache_dir = Path(config.cache_dir).expanduser()
    cache_dir.mkdir(parents=True, exist_ok=True)
    model_path = cache_dir / Path(config.model_url).name

    if model_path.exists() and model_path.stat().st_size > 0:
        logger.debug("Using cached model: %s", model_path)
        return model_path

    logger.info("Downloading hand landmarker model from %s", config.model_url)
    temp_path = model_path.with_suffix(".tmp")
    try:
        with requests.get(config.model_url, stream=True, timeout=config.download_timeout_s) as response:
            response.raise_for_status()
            with open(temp_path, "wb") as f:
                for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                    f.write(chunk)
        temp_path.replace(model_path)
    except (requests.RequestException, OSError) as e:
        if temp_path.exists():
            temp_path.unlink()
        raise DetectorError(f"Failed to download hand landmarker model: {e}") from e

    logger.info("Model saved to %s", model_path)
    return model_path


class HandDetector:
    def __init__(self, landmarker):
        self._landmarker = landmarker

    @classmethod
    def create(cls, config: DetectorConfig) -> "HandDetector":
        """
        Build the detector in VIDEO running mode.

        Raises:
            DetectorError: model download or landmarker construction failed.
        """
        model_path = ensure_model(config)
        try:
            options = mp_vision.HandLandmarkerOptions(
                base_options=mp_python.BaseOptions(model_asset_path=str(model_path)),
                running_mode=mp_vision.RunningMode.VIDEO,
                num_hands=config.num_hands,
                min_hand_detection_confidence=config.min_detection_confidence,
                min_hand_presence_confidence=config.min_detection_confidence,
                min_tracking_confidence=config.min_tracking_confidence,
            )
            landmarker = mp_vision.HandLandmarker.create_from_options(options)
        except (RuntimeError, ValueError) as e:
            raise DetectorError(f"Could not create HandLandmarker: {e}") from e

        logger.info("HandLandmarker ready (VIDEO mode, %d hand)", config.num_hands)
        return cls(landmarker)

    def detect(self, frame: np.ndarray, timestamp_ms: int) -> Optional[LandmarkSet]:
        """
        Landmarks of the first detected hand in a BGR frame, or None.

        `timestamp_ms` must increase strictly between calls.
        """
        rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=np.ascontiguousarray(rgb))
        result = self._landmarker.detect_for_video(mp_image, timestamp_ms)

        if not result.hand_landmarks:
            return None
        hand = result.hand_landmarks[0]
        if len(hand) != NUM_LANDMARKS:
            logger.debug("Ignoring hand with %d landmarks", len(hand))
            return None
        return tuple(Landmark(lm.x, lm.y, lm.z) for lm in hand)

    def close(self):
        if self._landmarker is not None:
            self._landmarker.close()
            self._landmarker = None

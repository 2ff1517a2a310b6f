import base64
from typing import Tuple

import cv2
import numpy as np

from airdraw.vision.frame_data import Point


def hex_to_bgra(color: str) -> Tuple[int, int, int, int]:
    value = color.lstrip("#")
    if len(value) != 6:
        raise ValueError(f"expected #RRGGBB color, got {color!r}")
    r, g, b = (int(value[i:i + 2], 16) for i in (0, 2, 4))
    return b, g, r, 255


class DrawingSurface:
    """
    Persistent raster the strokes are drawn onto.

    Pixels are BGRA (uint8), transparent where nothing was drawn, so the
    buffer can be shown over the camera feed and exported as a PNG as is.
    """

    def __init__(self, width: int = 0, height: int = 0):
        self._image = np.zeros((height, width, 4), dtype=np.uint8)
        self.segment_count = 0

    @property
    def width(self) -> int:
        return self._image.shape[1]

    @property
    def height(self) -> int:
        return self._image.shape[0]

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def image(self) -> np.ndarray:
        return self._image

    def resize(self, width: int, height: int):
        # Destructive: the drawing is dropped together with the old buffer
        self._image = np.zeros((height, width, 4), dtype=np.uint8)

    def draw_segment(self, p1: Point, p2: Point, color: str, width: float):
        thickness = max(1, int(round(width)))
        cv2.line(
            self._image,
            (int(round(p1.x)), int(round(p1.y))),
            (int(round(p2.x)), int(round(p2.y))),
            hex_to_bgra(color),
            thickness,
            cv2.LINE_AA,
        )
        self.segment_count += 1

    def clear(self):
        self._image[:] = 0

    def is_blank(self) -> bool:
        return not self._image[:, :, 3].any()

    def snapshot(self) -> np.ndarray:
        return self._image.copy()


def encode_png(image: np.ndarray) -> bytes:
    if image.size == 0:
        raise ValueError("cannot encode an empty surface")
    ok, buf = cv2.imencode(".png", image)
    if not ok:
        raise ValueError("PNG encoding failed")
    return buf.tobytes()


def to_data_url(png_bytes: bytes, mime_type: str = "image/png") -> str:
    return f"data:{mime_type};base64,{base64.b64encode(png_bytes).decode('ascii')}"

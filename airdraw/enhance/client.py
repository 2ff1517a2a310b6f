"""
HTTP client for the drawing-enhancement endpoint.

The endpoint keeps the model credentials server side; this client only
posts the drawing as a PNG data URL and reads the enhanced image back.
"""

import base64
import binascii
import re
from dataclasses import dataclass
from typing import Optional, Tuple

import requests

from airdraw.core.logger import get_logger

logger = get_logger("EnhanceClient")

_DATA_URL_RE = re.compile(r"^data:(?P<mime>image/[\w.+-]+);base64,(?P<data>.*)$", re.DOTALL)


class EnhanceError(Exception):
    """Raised when the endpoint cannot produce an enhanced image."""
    pass


@dataclass(frozen=True)
class EnhanceResult:
    image: Optional[bytes] = None
    mime_type: str = "image/png"
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.image is not None


def decode_data_url(data_url: str) -> Tuple[str, bytes]:
    match = _DATA_URL_RE.match(data_url.strip())
    if not match:
        raise EnhanceError("response is not a base64 image data URL")
    try:
        payload = base64.b64decode(match.group("data"), validate=True)
    except (binascii.Error, ValueError) as e:
        raise EnhanceError(f"invalid base64 image payload: {e}") from e
    return match.group("mime"), payload


class EnhanceClient:
    def __init__(self, endpoint_url: str, timeout_s: float = 30.0, session: requests.Session = None):
        self.endpoint_url = endpoint_url
        self.timeout_s = timeout_s
        self._session = session or requests.Session()

    def enhance(self, image_data_url: str) -> EnhanceResult:
        """
        Send a drawing and return the enhanced image.

        Args:
            image_data_url: "data:image/png;base64,..." of the drawing.

        Raises:
            EnhanceError: on HTTP errors, bad JSON or a missing image.
            requests.RequestException: on network failures.
        """
        logger.info("Requesting enhancement (%d bytes payload)", len(image_data_url))
        response = self._session.post(
            self.endpoint_url,
            json={"imageData": image_data_url},
            timeout=self.timeout_s,
        )

        if response.status_code != 200:
            raise EnhanceError(f"HTTP error! status: {response.status_code} {_error_detail(response)}".rstrip())

        try:
            data = response.json()
        except ValueError as e:
            raise EnhanceError("endpoint returned invalid JSON") from e

        enhanced = data.get("enhancedImage") if isinstance(data, dict) else None
        if not enhanced:
            raise EnhanceError("no enhanced image returned")

        mime_type, image = decode_data_url(enhanced)
        logger.info("Enhancement received (%s, %d bytes)", mime_type, len(image))
        return EnhanceResult(image=image, mime_type=mime_type)

    def close(self):
        self._session.close()


def _error_detail(response) -> str:
    try:
        body = response.json()
    except ValueError:
        return ""
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or "")
    return ""

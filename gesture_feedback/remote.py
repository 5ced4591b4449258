"""
Landmark provider backed by the server's /detect-gesture endpoint.
"""
import base64
import logging
from typing import Optional

import cv2
import numpy as np
import requests

from .types import HandLandmarks

logger = logging.getLogger(__name__)


class LandmarkServiceError(RuntimeError):
    """Raised when the remote landmark service fails or answers nonsense."""


def encode_frame(frame_bgr: np.ndarray, jpeg_quality: int = 80) -> str:
    """Encode a BGR frame as a JPEG data URL."""
    ok, buffer = cv2.imencode(".jpg", frame_bgr, [int(cv2.IMWRITE_JPEG_QUALITY), jpeg_quality])
    if not ok:
        raise LandmarkServiceError("Failed to encode frame as JPEG")
    return "data:image/jpeg;base64," + base64.b64encode(buffer.tobytes()).decode("ascii")


class RemoteLandmarkProvider:
    """Sends frames to the server and returns the hand landmarks it found."""

    def __init__(self, base_url: str = "http://localhost:8000", timeout_s: float = 5.0,
                 jpeg_quality: int = 80):
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self.jpeg_quality = jpeg_quality

    def process(self, frame_bgr: np.ndarray) -> Optional[HandLandmarks]:
        """
        Detect a hand remotely.

        Args:
            frame_bgr: Input frame in BGR format

        Returns:
            HandLandmarks, or None if the server found no hand

        Raises:
            LandmarkServiceError: on transport errors or an unusable response
            InvalidLandmarksError: if the server returns a landmark set that is not 21 points
        """
        frame_data = encode_frame(frame_bgr, self.jpeg_quality)
        try:
            response = requests.post(
                f"{self.base_url}/detect-gesture",
                json={"frame_data": frame_data},
                timeout=self.timeout_s,
            )
        except requests.exceptions.RequestException as e:
            raise LandmarkServiceError(f"Landmark service unreachable: {e}") from e

        if not response.ok:
            raise LandmarkServiceError(f"HTTP error! status: {response.status_code}")

        try:
            result = response.json()
        except ValueError as e:
            raise LandmarkServiceError("Invalid response from server") from e

        if not isinstance(result, dict):
            raise LandmarkServiceError("Invalid response from server")

        if not result.get("hands_detected"):
            return None

        landmarks = result.get("landmarks")
        if landmarks is None:
            raise LandmarkServiceError("Server reported a hand but sent no landmarks")
        return HandLandmarks.from_points(landmarks)

"""
Hand landmark detection using MediaPipe, plus the landmark geometry helpers
shared by the gesture classifier.
"""
import logging
import math
from typing import List, Optional, Tuple

import cv2
import numpy as np

from .types import HandLandmarks, Landmark

logger = logging.getLogger(__name__)

# MediaPipe hand landmark indices
WRIST = 0
THUMB_CMC, THUMB_MCP, THUMB_IP, THUMB_TIP = 1, 2, 3, 4
INDEX_MCP, INDEX_TIP = 5, 8
MIDDLE_MCP, MIDDLE_TIP = 9, 12
RING_MCP, RING_TIP = 13, 16
PINKY_MCP, PINKY_TIP = 17, 20

# (tip, mcp) for index, middle, ring, pinky
FINGER_TIP_MCP: List[Tuple[int, int]] = [
    (INDEX_TIP, INDEX_MCP),
    (MIDDLE_TIP, MIDDLE_MCP),
    (RING_TIP, RING_MCP),
    (PINKY_TIP, PINKY_MCP),
]

HAND_CONNECTIONS: List[Tuple[int, int]] = [
    (0, 1), (1, 2), (2, 3), (3, 4),
    (0, 5), (5, 6), (6, 7), (7, 8),
    (5, 9), (9, 10), (10, 11), (11, 12),
    (9, 13), (13, 14), (14, 15), (15, 16),
    (13, 17), (17, 18), (18, 19), (19, 20),
    (0, 17),
]


def distance(a: Landmark, b: Landmark) -> float:
    """Planar Euclidean distance between two normalized points."""
    return math.hypot(a[0] - b[0], a[1] - b[1])


def finger_extension(hand: HandLandmarks, tip_idx: int, mcp_idx: int) -> float:
    """Distance from a fingertip to its own MCP joint."""
    return distance(hand[tip_idx], hand[mcp_idx])


def average_finger_tip(hand: HandLandmarks) -> Landmark:
    """
    Mean position of the index, middle, ring and pinky tips.

    Args:
        hand: 21-point landmark set

    Returns:
        (x, y) average in normalized coordinates
    """
    tips = [hand[tip] for tip, _ in FINGER_TIP_MCP]
    avg_x = sum(p[0] for p in tips) / len(tips)
    avg_y = sum(p[1] for p in tips) / len(tips)
    return (avg_x, avg_y)


class HandsTracker:
    """Single-hand landmark tracker using MediaPipe Hands."""

    def __init__(self, max_num_hands: int = 1, model_complexity: int = 1,
                 min_detection_conf: float = 0.5, min_tracking_conf: float = 0.5,
                 static_image_mode: bool = False):
        """
        Initialize the hands tracker.

        Args:
            max_num_hands: Maximum number of hands to detect (only the first is used)
            model_complexity: MediaPipe model complexity (0 or 1)
            min_detection_conf: Minimum confidence for hand detection
            min_tracking_conf: Minimum confidence for hand tracking
            static_image_mode: Treat every frame as an unrelated image (server use)
        """
        import mediapipe as mp  # type: ignore

        if not hasattr(mp, "solutions"):
            raise RuntimeError(
                "The installed mediapipe build does not provide `mp.solutions.hands`.\n"
                "Install a mediapipe release that ships the Hands solution."
            )

        self.mp_hands = mp.solutions.hands
        self.hands = self.mp_hands.Hands(
            static_image_mode=static_image_mode,
            max_num_hands=max_num_hands,
            model_complexity=model_complexity,
            min_detection_confidence=min_detection_conf,
            min_tracking_confidence=min_tracking_conf
        )
        logger.info(f"🖐️ MediaPipe Hands ready (max_num_hands={max_num_hands}, static={static_image_mode})")

    def process(self, frame_bgr: np.ndarray) -> Optional[HandLandmarks]:
        """
        Process a frame and return the first hand's landmarks.

        Args:
            frame_bgr: Input frame in BGR format

        Returns:
            HandLandmarks with 21 (x, y) points in [0..1], or None if no hand detected
        """
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        results = self.hands.process(frame_rgb)

        if not results.multi_hand_landmarks:
            return None

        hand_landmarks = results.multi_hand_landmarks[0]
        return HandLandmarks.from_points(
            [(landmark.x, landmark.y) for landmark in hand_landmarks.landmark]
        )

    def close(self) -> None:
        self.hands.close()

    def __enter__(self) -> "HandsTracker":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def draw_landmarks(frame: np.ndarray, hand: HandLandmarks) -> np.ndarray:
    """
    Draw the hand skeleton on the frame, with the thumb joints highlighted.

    Thumb tip is yellow, IP orange, MCP pink.

    Args:
        frame: Input frame (modified in place)
        hand: Landmarks in [0..1] range

    Returns:
        Frame with landmarks drawn
    """
    height, width = frame.shape[:2]
    pts = [(int(x * width), int(y * height)) for x, y in hand.points]

    for a, b in HAND_CONNECTIONS:
        cv2.line(frame, pts[a], pts[b], (0, 255, 0), 2, cv2.LINE_AA)
    for px, py in pts:
        cv2.circle(frame, (px, py), 3, (0, 0, 255), -1)

    cv2.circle(frame, pts[THUMB_TIP], 6, (0, 255, 255), -1)
    cv2.circle(frame, pts[THUMB_IP], 5, (0, 136, 255), -1)
    cv2.circle(frame, pts[THUMB_MCP], 5, (136, 0, 255), -1)

    return frame

"""
Gesture Feedback

Collects thumbs up / thumbs down feedback from a webcam. Hand landmarks come
from MediaPipe (locally or via the REST server), a geometric classifier
labels each frame, and a debouncer turns held poses into single feedback
events.
"""

__version__ = "0.1.0"

from .types import (
    GestureEvent, GestureLabel, HandLandmarks, ThumbDiagnostics,
    FrameResult, FeedbackSinkProto, InvalidLandmarksError,
)
from .config import load_config, Cfg
from .gestures import classify_thumb_gesture, GestureDebouncer, CooldownTimer
from .session import GestureSession
from .feedback_sink import FeedbackDispatcher, MockFeedbackSink
from .api_client import FeedbackClient, FeedbackSubmissionError

__all__ = [
    "GestureEvent",
    "GestureLabel",
    "HandLandmarks",
    "ThumbDiagnostics",
    "FrameResult",
    "FeedbackSinkProto",
    "InvalidLandmarksError",
    "load_config",
    "Cfg",
    "classify_thumb_gesture",
    "GestureDebouncer",
    "CooldownTimer",
    "GestureSession",
    "FeedbackDispatcher",
    "MockFeedbackSink",
    "FeedbackClient",
    "FeedbackSubmissionError",
]

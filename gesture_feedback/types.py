"""
Type definitions for the gesture feedback system.
"""
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Protocol, Sequence, Tuple, runtime_checkable


# (x, y) in normalized image space, y grows downward
Landmark = Tuple[float, float]

NUM_HAND_LANDMARKS = 21


class InvalidLandmarksError(ValueError):
    """Raised when a landmark set is not exactly 21 (x, y) points."""


class GestureLabel(str, Enum):
    """Classifier output for a single frame."""
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NONE = "none"


@dataclass(frozen=True)
class HandLandmarks:
    """The 21 landmarks of one detected hand, indexed by MediaPipe convention."""
    points: Tuple[Landmark, ...]

    def __post_init__(self):
        if len(self.points) != NUM_HAND_LANDMARKS:
            raise InvalidLandmarksError(
                f"Expected {NUM_HAND_LANDMARKS} landmarks, got {len(self.points)}"
            )
        for point in self.points:
            if (not isinstance(point, (tuple, list)) or len(point) != 2
                    or not all(isinstance(c, (int, float)) for c in point)):
                raise InvalidLandmarksError(f"Landmark must be an (x, y) pair, got {point!r}")

    @classmethod
    def from_points(cls, points: Sequence[Sequence[float]]) -> "HandLandmarks":
        """
        Build a landmark set from any sequence of (x, y) pairs.

        Extra coordinates (such as MediaPipe's z) are dropped.

        Raises:
            InvalidLandmarksError: if the input is not 21 points of at least two numbers
        """
        if points is None:
            raise InvalidLandmarksError("Landmark set is missing")
        try:
            converted = tuple((float(p[0]), float(p[1])) for p in points)
        except (TypeError, ValueError, IndexError) as e:
            raise InvalidLandmarksError(f"Malformed landmark point: {e}") from e
        return cls(points=converted)

    def __getitem__(self, idx: int) -> Landmark:
        return self.points[idx]

    def __len__(self) -> int:
        return len(self.points)

    def to_list(self):
        return [[x, y] for x, y in self.points]


@dataclass(frozen=True)
class ThumbDiagnostics:
    """Measurements computed alongside a classification, for display only."""
    thumb_extension: float
    thumb_ip_extension: float
    thumb_to_fingers_y: float
    thumb_to_wrist_y: float
    is_thumb_extended: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "thumb_extension": self.thumb_extension,
            "thumb_ip_extension": self.thumb_ip_extension,
            "thumb_to_fingers_y": self.thumb_to_fingers_y,
            "thumb_to_wrist_y": self.thumb_to_wrist_y,
            "is_thumb_extended": self.is_thumb_extended,
        }

    def summary(self) -> str:
        return (
            f"Ext: {self.thumb_extension:.3f} | IP: {self.thumb_ip_extension:.3f} | "
            f"RelY: {self.thumb_to_fingers_y:.3f} | WristY: {self.thumb_to_wrist_y:.3f} | "
            f"Extended: {'YES' if self.is_thumb_extended else 'NO'}"
        )


@dataclass(frozen=True)
class GestureEvent:
    """A debounced gesture, emitted at most once per cooldown window."""
    label: GestureLabel
    timestamp: float = field(default_factory=time.time)

    def __post_init__(self):
        if self.label == GestureLabel.NONE:
            raise ValueError("A gesture event needs a positive or negative label")


@dataclass
class FrameResult:
    """Outcome of one capture-session tick."""
    hands_detected: bool
    label: GestureLabel = GestureLabel.NONE
    diagnostics: Optional[ThumbDiagnostics] = None
    event: Optional[GestureEvent] = None
    skipped: bool = False  # busy flag rejected the tick


@runtime_checkable
class FeedbackSinkProto(Protocol):
    """Consumer of debounced gesture events."""

    async def handle(self, event: GestureEvent) -> None:
        """React to a positive or negative gesture event."""
        ...

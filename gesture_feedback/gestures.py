"""
Thumb gesture classification and debouncing.

The classifier turns one hand snapshot into a label; the debouncer turns the
noisy per-frame label stream into discrete gesture events.
"""
import logging
from typing import Optional, Sequence, Tuple, Union

from .landmarks import (
    FINGER_TIP_MCP, THUMB_IP, THUMB_MCP, THUMB_TIP, WRIST,
    average_finger_tip, distance, finger_extension,
)
from .types import GestureEvent, GestureLabel, HandLandmarks, ThumbDiagnostics

logger = logging.getLogger(__name__)

# Empirical thresholds, in normalized image units
THUMB_EXTENSION_MIN = 0.03
THUMB_IP_EXTENSION_MIN = 0.02
FINGER_EXTENDED_MIN = 0.08
THUMB_FINGERS_Y_MIN = 0.08
THUMB_WRIST_Y_MIN = 0.05
THUMB_FINGERS_X_MAX = 0.15

GESTURE_COOLDOWN_MS = 3000


def classify_thumb_gesture(
    hand: Union[HandLandmarks, Sequence[Sequence[float]]]
) -> Tuple[GestureLabel, ThumbDiagnostics]:
    """
    Classify a hand snapshot as thumbs up, thumbs down or neither.

    Lower y is higher on screen, so a thumbs up has the thumb tip above both
    the other fingertips and the wrist.

    Args:
        hand: 21-point landmark set (raw point lists are validated first)

    Returns:
        Tuple of (label, diagnostics). Diagnostics are always fully populated.

    Raises:
        InvalidLandmarksError: if the input is not exactly 21 points
    """
    if not isinstance(hand, HandLandmarks):
        hand = HandLandmarks.from_points(hand)

    thumb_tip = hand[THUMB_TIP]
    thumb_mcp = hand[THUMB_MCP]
    wrist = hand[WRIST]

    thumb_extension = distance(thumb_tip, thumb_mcp)
    thumb_ip_extension = distance(hand[THUMB_IP], thumb_mcp)
    is_thumb_extended = (thumb_extension > THUMB_EXTENSION_MIN
                         or thumb_ip_extension > THUMB_IP_EXTENSION_MIN)

    avg_tip_x, avg_tip_y = average_finger_tip(hand)
    thumb_to_fingers_y = thumb_tip[1] - avg_tip_y
    thumb_to_fingers_x = thumb_tip[0] - avg_tip_x
    thumb_to_wrist_y = thumb_tip[1] - wrist[1]

    diagnostics = ThumbDiagnostics(
        thumb_extension=thumb_extension,
        thumb_ip_extension=thumb_ip_extension,
        thumb_to_fingers_y=thumb_to_fingers_y,
        thumb_to_wrist_y=thumb_to_wrist_y,
        is_thumb_extended=is_thumb_extended,
    )

    if not is_thumb_extended:
        return GestureLabel.NONE, diagnostics

    # An open hand must not read as a thumb gesture
    other_fingers_extended = any(
        finger_extension(hand, tip, mcp) > FINGER_EXTENDED_MIN
        for tip, mcp in FINGER_TIP_MCP
    )
    if other_fingers_extended:
        return GestureLabel.NONE, diagnostics

    centered = abs(thumb_to_fingers_x) < THUMB_FINGERS_X_MAX

    if (thumb_to_fingers_y < -THUMB_FINGERS_Y_MIN
            and thumb_to_wrist_y < -THUMB_WRIST_Y_MIN and centered):
        return GestureLabel.POSITIVE, diagnostics
    if (thumb_to_fingers_y > THUMB_FINGERS_Y_MIN
            and thumb_to_wrist_y > THUMB_WRIST_Y_MIN and centered):
        return GestureLabel.NEGATIVE, diagnostics

    return GestureLabel.NONE, diagnostics


class CooldownTimer:
    """Cancellable wall-clock deadline owned by a debouncer."""

    def __init__(self, duration_ms: int):
        self.duration_ms = duration_ms
        self._deadline: Optional[float] = None

    @property
    def running(self) -> bool:
        return self._deadline is not None

    def start(self, t_now: float) -> None:
        self._deadline = t_now + self.duration_ms / 1000.0

    def cancel(self) -> None:
        self._deadline = None

    def expired(self, t_now: float) -> bool:
        """True once a running timer has reached its deadline."""
        return self._deadline is not None and t_now >= self._deadline

    def remaining_ms(self, t_now: float) -> float:
        if self._deadline is None:
            return 0.0
        return max(0.0, (self._deadline - t_now) * 1000.0)


class GestureDebouncer:
    """
    Collapses a per-frame label stream into discrete gesture events.

    States:
    - Idle: a positive/negative label emits an event and enters cooldown
    - Cooldown: every label is ignored until the timer expires

    Expiry of the cooldown is the only place where the last emitted label
    and the cooldown flag are cleared, and both are cleared together.
    """

    def __init__(self, cooldown_ms: int = GESTURE_COOLDOWN_MS):
        """Initialize the debouncer in the Idle state."""
        self.timer = CooldownTimer(cooldown_ms)
        self.last_emitted: Optional[GestureLabel] = None
        self.closed = False

    @property
    def cooldown_active(self) -> bool:
        return self.timer.running

    def poll(self, t_now: float) -> None:
        """Apply cooldown expiry without feeding a label."""
        if self.timer.expired(t_now):
            logger.debug("Gesture cooldown expired")
            self.timer.cancel()
            self.last_emitted = None

    def update(self, label: GestureLabel, t_now: float) -> Optional[GestureEvent]:
        """
        Feed one sampled label and return an event if one should fire.

        Args:
            label: Classifier output for this tick (NONE included)
            t_now: Current wall-clock timestamp in seconds

        Returns:
            GestureEvent on the tick that starts a cooldown, None otherwise
        """
        if self.closed:
            return None

        self.poll(t_now)

        if self.timer.running:
            return None

        if label == GestureLabel.NONE:
            return None

        if label == self.last_emitted:
            return None

        self.last_emitted = label
        self.timer.start(t_now)
        logger.info(f"🎯 Gesture event: {label.value} (cooldown {self.timer.duration_ms} ms)")
        return GestureEvent(label=label, timestamp=t_now)

    def reset(self) -> None:
        """Cancel any cooldown and return to Idle."""
        self.timer.cancel()
        self.last_emitted = None

    def close(self) -> None:
        """Stop the timer without firing; no further events are emitted."""
        self.reset()
        self.closed = True

"""
Capture session: classifies each sampled frame and dispatches debounced events.
"""
import logging
from typing import Optional

from .api_client import FeedbackSubmissionError
from .gestures import GestureDebouncer, classify_thumb_gesture
from .types import FeedbackSinkProto, FrameResult, GestureLabel, HandLandmarks

logger = logging.getLogger(__name__)


class GestureSession:
    """
    Frame-driven pipeline from landmarks to feedback events.

    Only one tick is processed at a time: while an event is being
    dispatched the busy flag is set and incoming ticks are skipped.
    """

    def __init__(self, sink: FeedbackSinkProto, debouncer: Optional[GestureDebouncer] = None):
        """Initialize the session with an event sink."""
        self.sink = sink
        self.debouncer = debouncer or GestureDebouncer()
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def cooldown_active(self) -> bool:
        return self.debouncer.cooldown_active

    async def process(self, hand: Optional[HandLandmarks], t_now: float) -> FrameResult:
        """
        Process one sampled frame.

        Args:
            hand: Landmarks of the detected hand (None if no hand detected)
            t_now: Current timestamp in seconds

        Returns:
            FrameResult with the label, diagnostics and any emitted event
        """
        if self._busy:
            return FrameResult(hands_detected=hand is not None, skipped=True)

        if hand is None:
            label, diagnostics = GestureLabel.NONE, None
        else:
            label, diagnostics = classify_thumb_gesture(hand)
            logger.debug(f"{diagnostics.summary()} | {label.value}")

        event = self.debouncer.update(label, t_now)
        result = FrameResult(
            hands_detected=hand is not None,
            label=label,
            diagnostics=diagnostics,
            event=event,
        )

        if event is not None:
            self._busy = True
            try:
                await self.sink.handle(event)
            except FeedbackSubmissionError as e:
                # Cooldown stays as it is and the submission is not retried
                logger.error(f"❌ Failed to record feedback: {e}")
            except Exception as e:
                logger.exception(f"❌ Feedback handler failed: {e}")
            finally:
                self._busy = False

        return result

    def close(self) -> None:
        """End the session; the cooldown timer is cancelled without firing."""
        self.debouncer.close()

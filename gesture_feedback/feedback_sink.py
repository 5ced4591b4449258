"""
Consumers of gesture events: the real feedback dispatcher and a mock for testing.
"""
import asyncio
import logging
from typing import Callable, List, Optional

from pydantic import ValidationError

from .api_client import FeedbackClient
from .schemas import Feedback, FeedbackCreate
from .types import GestureEvent, GestureLabel

logger = logging.getLogger(__name__)

FeedbackForm = Callable[[], Optional[FeedbackCreate]]


def console_feedback_form() -> Optional[FeedbackCreate]:
    """
    Ask for negative feedback details on the terminal.

    Returns:
        The filled form, or None if the user leaves the name blank or
        enters details that do not validate
    """
    print("\n👎 Sorry to hear that. Tell us what went wrong (blank name to cancel).")
    name = input("Name: ").strip()
    if not name:
        print("Feedback form closed")
        return None
    email = input("Email: ").strip()
    message = input("Message: ").strip()
    try:
        return FeedbackCreate(type="negative", name=name, email=email, message=message)
    except ValidationError as e:
        for error in e.errors():
            print(f"Invalid feedback: {error['msg']}")
        print("Feedback form closed")
        return None


class FeedbackDispatcher:
    """
    Turns gesture events into feedback submissions.

    Positive events are submitted immediately. Negative events open the
    feedback form first and are only submitted if the form is filled in.
    """

    def __init__(self, client: FeedbackClient, form: FeedbackForm = console_feedback_form,
                 on_recorded: Optional[Callable[[Feedback], None]] = None):
        self.client = client
        self.form = form
        self.on_recorded = on_recorded

    async def handle(self, event: GestureEvent) -> None:
        """
        Submit feedback for a gesture event.

        Raises:
            FeedbackSubmissionError: if the API call fails
        """
        if event.label == GestureLabel.POSITIVE:
            data = FeedbackCreate(type="positive")
        elif event.label == GestureLabel.NEGATIVE:
            data = await asyncio.to_thread(self.form)
            if data is None:
                logger.info("Negative feedback form closed without submitting")
                return
        else:
            return

        record = await asyncio.to_thread(self.client.create_feedback, data)
        logger.info(f"✅ {record.type.capitalize()} feedback recorded (id={record.id})")
        if self.on_recorded is not None:
            self.on_recorded(record)


class MockFeedbackSink:
    """Mock sink that prints gesture events instead of submitting them."""

    def __init__(self):
        """Initialize the mock sink."""
        self.events: List[GestureEvent] = []
        self.positive_count = 0
        self.negative_count = 0

    async def handle(self, event: GestureEvent) -> None:
        """Print the event instead of submitting feedback."""
        self.events.append(event)
        if event.label == GestureLabel.POSITIVE:
            self.positive_count += 1
            count = self.positive_count
        else:
            self.negative_count += 1
            count = self.negative_count
        print(f"[MockFeedbackSink] {event.label.value} feedback (call #{count})")

    def reset_counters(self) -> None:
        """Reset event counters for testing."""
        self.events.clear()
        self.positive_count = 0
        self.negative_count = 0

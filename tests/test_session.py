"""
Test cases for the capture session and feedback dispatch.
"""
import unittest
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

from gesture_feedback.api_client import FeedbackSubmissionError
from gesture_feedback.feedback_sink import (
    FeedbackDispatcher,
    MockFeedbackSink,
    console_feedback_form,
)
from gesture_feedback.schemas import Feedback, FeedbackCreate
from gesture_feedback.session import GestureSession
from gesture_feedback.types import FeedbackSinkProto, GestureEvent, GestureLabel

from tests.hand_fixtures import curled_thumb_hand, thumbs_down_hand, thumbs_up_hand


class FailingSink:
    """Sink whose submissions always fail."""

    def __init__(self):
        self.calls = 0

    async def handle(self, event: GestureEvent) -> None:
        self.calls += 1
        raise FeedbackSubmissionError("HTTP error 500 while creating feedback", status_code=500)


class CrashingSink:
    """Sink that fails with an unexpected error."""

    def __init__(self):
        self.calls = 0

    async def handle(self, event: GestureEvent) -> None:
        self.calls += 1
        raise KeyError("type")


class ReentrantSink:
    """Sink that tries to push another frame while it is dispatching."""

    def __init__(self):
        self.session = None
        self.inner_result = None
        self.busy_seen = None

    async def handle(self, event: GestureEvent) -> None:
        self.busy_seen = self.session.busy
        self.inner_result = await self.session.process(thumbs_down_hand(), event.timestamp + 5.0)


class TestGestureSession(unittest.IsolatedAsyncioTestCase):
    """Test the frame-driven session pipeline."""

    async def asyncSetUp(self):
        """Set up a session with a mock sink."""
        self.sink = MockFeedbackSink()
        self.session = GestureSession(self.sink)
        self.t0 = 50.0

    async def test_held_thumbs_up_dispatches_once(self):
        """A thumbs up held over many frames is submitted once."""
        hand = thumbs_up_hand()
        results = [await self.session.process(hand, self.t0 + i * 0.033) for i in range(50)]

        self.assertEqual(self.sink.positive_count, 1)
        self.assertIsNotNone(results[0].event)
        self.assertTrue(all(r.event is None for r in results[1:]))
        self.assertTrue(all(r.label == GestureLabel.POSITIVE for r in results))

    async def test_no_hand_frame(self):
        """A frame without a hand yields label none and no diagnostics."""
        result = await self.session.process(None, self.t0)

        self.assertFalse(result.hands_detected)
        self.assertEqual(result.label, GestureLabel.NONE)
        self.assertIsNone(result.diagnostics)
        self.assertIsNone(result.event)

    async def test_diagnostics_on_every_hand_frame(self):
        """Diagnostics are reported even when nothing is recognised."""
        result = await self.session.process(curled_thumb_hand(), self.t0)

        self.assertTrue(result.hands_detected)
        self.assertIsNotNone(result.diagnostics)
        self.assertFalse(result.diagnostics.is_thumb_extended)

    async def test_negative_after_cooldown(self):
        """Thumbs down is blocked during cooldown and dispatched after it."""
        await self.session.process(thumbs_up_hand(), self.t0)
        blocked = await self.session.process(thumbs_down_hand(), self.t0 + 1.0)
        allowed = await self.session.process(thumbs_down_hand(), self.t0 + 3.5)

        self.assertIsNone(blocked.event)
        self.assertIsNotNone(allowed.event)
        self.assertEqual(self.sink.negative_count, 1)

    async def test_busy_flag_skips_frames_during_dispatch(self):
        """Frames arriving while an event is dispatched are not classified."""
        sink = ReentrantSink()
        session = GestureSession(sink)
        sink.session = session

        result = await session.process(thumbs_up_hand(), self.t0)

        self.assertIsNotNone(result.event)
        self.assertTrue(sink.busy_seen)
        self.assertTrue(sink.inner_result.skipped)
        self.assertIsNone(sink.inner_result.event)
        self.assertFalse(session.busy)

    async def test_failed_submission_keeps_cooldown(self):
        """A failed submission is not retried and does not clear the cooldown."""
        sink = FailingSink()
        session = GestureSession(sink)

        first = await session.process(thumbs_up_hand(), self.t0)
        second = await session.process(thumbs_up_hand(), self.t0 + 0.5)

        self.assertIsNotNone(first.event)
        self.assertIsNone(second.event)
        self.assertEqual(sink.calls, 1)
        self.assertTrue(session.cooldown_active)
        self.assertFalse(session.busy)

    async def test_unexpected_sink_error_is_contained(self):
        """Any sink failure is logged and leaves the session usable."""
        sink = CrashingSink()
        session = GestureSession(sink)

        with self.assertLogs("gesture_feedback.session", level="ERROR"):
            first = await session.process(thumbs_up_hand(), self.t0)
        second = await session.process(thumbs_up_hand(), self.t0 + 0.5)

        self.assertIsNotNone(first.event)
        self.assertIsNone(second.event)
        self.assertEqual(sink.calls, 1)
        self.assertTrue(session.cooldown_active)
        self.assertFalse(session.busy)

    @patch("builtins.print")
    @patch("builtins.input", side_effect=["Ada", "not-an-email", ""])
    async def test_invalid_form_entry_keeps_session_running(self, mock_input, mock_print):
        """Bad details typed into the terminal form do not end the session."""
        client = MagicMock()
        session = GestureSession(FeedbackDispatcher(client, form=console_feedback_form))

        result = await session.process(thumbs_down_hand(), self.t0)
        later = await session.process(thumbs_down_hand(), self.t0 + 1.0)

        self.assertIsNotNone(result.event)
        self.assertIsNone(later.event)
        client.create_feedback.assert_not_called()
        self.assertTrue(session.cooldown_active)
        self.assertFalse(session.busy)

    async def test_close_stops_dispatch(self):
        """After teardown no more events are dispatched."""
        await self.session.process(thumbs_up_hand(), self.t0)
        self.session.close()

        result = await self.session.process(thumbs_down_hand(), self.t0 + 10.0)

        self.assertIsNone(result.event)
        self.assertFalse(self.session.cooldown_active)
        self.assertEqual(len(self.sink.events), 1)


def make_record(data: FeedbackCreate, record_id: int = 1) -> Feedback:
    return Feedback(id=record_id, created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
                    **data.model_dump())


class TestFeedbackDispatcher(unittest.IsolatedAsyncioTestCase):
    """Test routing of gesture events to feedback submissions."""

    async def asyncSetUp(self):
        """Set up a dispatcher with a mocked API client."""
        self.client = MagicMock()
        self.client.create_feedback.side_effect = lambda data: make_record(data)
        self.recorded = []

    async def test_positive_submits_immediately(self):
        """Thumbs up submits {type: positive} without opening the form."""
        form = MagicMock()
        dispatcher = FeedbackDispatcher(self.client, form=form, on_recorded=self.recorded.append)

        await dispatcher.handle(GestureEvent(label=GestureLabel.POSITIVE))

        form.assert_not_called()
        submitted = self.client.create_feedback.call_args[0][0]
        self.assertEqual(submitted.type, "positive")
        self.assertEqual(len(self.recorded), 1)

    async def test_negative_opens_form_and_submits(self):
        """Thumbs down submits whatever the form returns."""
        filled = FeedbackCreate(type="negative", name="Ada", email="ada@example.com",
                                message="Queue was too long")
        dispatcher = FeedbackDispatcher(self.client, form=lambda: filled)

        await dispatcher.handle(GestureEvent(label=GestureLabel.NEGATIVE))

        self.client.create_feedback.assert_called_once_with(filled)

    async def test_closed_form_submits_nothing(self):
        """Closing the form abandons the negative feedback."""
        dispatcher = FeedbackDispatcher(self.client, form=lambda: None,
                                        on_recorded=self.recorded.append)

        await dispatcher.handle(GestureEvent(label=GestureLabel.NEGATIVE))

        self.client.create_feedback.assert_not_called()
        self.assertEqual(self.recorded, [])

    async def test_submission_error_propagates(self):
        """API failures surface to the caller."""
        self.client.create_feedback.side_effect = FeedbackSubmissionError("down")
        dispatcher = FeedbackDispatcher(self.client)

        with self.assertRaises(FeedbackSubmissionError):
            await dispatcher.handle(GestureEvent(label=GestureLabel.POSITIVE))

    def test_sinks_implement_protocol(self):
        """Both sinks satisfy FeedbackSinkProto."""
        self.assertIsInstance(FeedbackDispatcher(self.client), FeedbackSinkProto)
        self.assertIsInstance(MockFeedbackSink(), FeedbackSinkProto)


class TestConsoleFeedbackForm(unittest.TestCase):
    """Test the terminal feedback form."""

    @patch("builtins.print")
    @patch("builtins.input", side_effect=[""])
    def test_blank_name_cancels(self, mock_input, mock_print):
        """Leaving the name blank closes the form without asking for more."""
        self.assertIsNone(console_feedback_form())
        self.assertEqual(mock_input.call_count, 1)

    @patch("builtins.print")
    @patch("builtins.input", side_effect=["  Ada ", "ada@example.com", "Queue was too long "])
    def test_filled_form(self, mock_input, mock_print):
        """A complete entry becomes a negative feedback request."""
        data = console_feedback_form()

        self.assertEqual(data, FeedbackCreate(type="negative", name="Ada",
                                              email="ada@example.com",
                                              message="Queue was too long"))

    @patch("builtins.print")
    @patch("builtins.input", side_effect=["Ada", "not-an-email", ""])
    def test_invalid_fields_close_form(self, mock_input, mock_print):
        """Details that fail validation are reported and nothing is returned."""
        self.assertIsNone(console_feedback_form())

        printed = " ".join(str(c.args[0]) for c in mock_print.call_args_list if c.args)
        self.assertIn("Invalid feedback", printed)
        self.assertIn("Feedback form closed", printed)

    @patch("builtins.print")
    @patch("builtins.input", side_effect=["Ada", "ada@example.com", ""])
    def test_missing_message_closes_form(self, mock_input, mock_print):
        """An empty message is rejected like any other missing field."""
        self.assertIsNone(console_feedback_form())


class TestMockFeedbackSink(unittest.IsolatedAsyncioTestCase):
    """Test the mock sink counters."""

    async def test_counters(self):
        """Events are counted per label and can be reset."""
        sink = MockFeedbackSink()
        await sink.handle(GestureEvent(label=GestureLabel.POSITIVE))
        await sink.handle(GestureEvent(label=GestureLabel.NEGATIVE))
        await sink.handle(GestureEvent(label=GestureLabel.NEGATIVE))

        self.assertEqual(sink.positive_count, 1)
        self.assertEqual(sink.negative_count, 2)

        sink.reset_counters()
        self.assertEqual(sink.events, [])
        self.assertEqual(sink.negative_count, 0)


if __name__ == '__main__':
    unittest.main()

"""
Test cases for the feedback REST client with a mocked transport.
"""
import unittest
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import requests

from gesture_feedback.api_client import (
    FeedbackClient, FeedbackSubmissionError, format_feedback_table,
)
from gesture_feedback.schemas import Feedback, FeedbackCreate


def fake_response(status_code=200, payload=None, json_error=False):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.text = "error body"
    if json_error:
        response.json.side_effect = ValueError("not json")
    else:
        response.json.return_value = payload
    return response


RECORD = {
    "id": 7,
    "type": "positive",
    "name": None,
    "email": None,
    "message": None,
    "created_at": "2024-05-01T12:30:00+00:00",
}


class TestFeedbackClient(unittest.TestCase):
    """Test create/list calls and error mapping."""

    def setUp(self):
        """Set up a client against a fake base URL."""
        self.client = FeedbackClient("http://api.test/", timeout_s=2.0)

    @patch("gesture_feedback.api_client.requests.post")
    def test_create_feedback(self, mock_post):
        """Positive feedback is posted without empty fields."""
        mock_post.return_value = fake_response(201, RECORD)

        record = self.client.create_feedback(FeedbackCreate(type="positive"))

        mock_post.assert_called_once_with(
            "http://api.test/feedback", json={"type": "positive"}, timeout=2.0
        )
        self.assertEqual(record.id, 7)
        self.assertEqual(record.type, "positive")

    @patch("gesture_feedback.api_client.requests.get")
    def test_get_feedbacks(self, mock_get):
        """The list endpoint is parsed into Feedback records."""
        mock_get.return_value = fake_response(200, [RECORD, dict(RECORD, id=6)])

        records = self.client.get_feedbacks()

        mock_get.assert_called_once_with("http://api.test/feedbacks", timeout=2.0)
        self.assertEqual([r.id for r in records], [7, 6])

    @patch("gesture_feedback.api_client.requests.post")
    def test_http_error_raises(self, mock_post):
        """A non-2xx status raises with the status code attached."""
        mock_post.return_value = fake_response(500)

        with self.assertRaises(FeedbackSubmissionError) as ctx:
            self.client.create_feedback(FeedbackCreate(type="positive"))
        self.assertEqual(ctx.exception.status_code, 500)

    @patch("gesture_feedback.api_client.requests.post")
    def test_connection_error_raises(self, mock_post):
        """Transport failures are wrapped."""
        mock_post.side_effect = requests.exceptions.ConnectionError("refused")

        with self.assertRaises(FeedbackSubmissionError) as ctx:
            self.client.create_feedback(FeedbackCreate(type="positive"))
        self.assertIsNone(ctx.exception.status_code)

    @patch("gesture_feedback.api_client.requests.get")
    def test_invalid_json_raises(self, mock_get):
        """Unparseable bodies are reported as invalid responses."""
        mock_get.return_value = fake_response(200, json_error=True)

        with self.assertRaises(FeedbackSubmissionError):
            self.client.get_feedbacks()

    @patch("gesture_feedback.api_client.requests.get")
    def test_invalid_record_raises(self, mock_get):
        """Records that do not match the schema are rejected."""
        mock_get.return_value = fake_response(200, [{"id": "x"}])

        with self.assertRaises(FeedbackSubmissionError):
            self.client.get_feedbacks()


class TestFeedbackTable(unittest.TestCase):
    """Test the plain-text feedback table."""

    def test_empty(self):
        """An empty list renders a placeholder."""
        self.assertEqual(format_feedback_table([]), "No feedback yet")

    def test_rows(self):
        """Missing values show as '-' and long messages are truncated."""
        created = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)
        records = [
            Feedback(id=2, type="negative", name="Ada", email="ada@example.com",
                     message="x" * 60, created_at=created),
            Feedback(id=1, type="positive", created_at=created),
        ]

        lines = format_feedback_table(records).splitlines()

        self.assertEqual(len(lines), 4)
        self.assertTrue(lines[0].startswith("Type"))
        self.assertIn("Ada", lines[2])
        self.assertIn("x" * 37 + "...", lines[2])
        self.assertNotIn("x" * 41, lines[2])
        self.assertIn("2024-05-01 12:30", lines[3])
        self.assertIn(" - ", lines[3])


if __name__ == '__main__':
    unittest.main()

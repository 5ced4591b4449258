"""
HTTP client for the feedback REST API.
"""
import logging
from typing import Any, Iterable, List, Optional

import requests
from pydantic import ValidationError

from .schemas import Feedback, FeedbackCreate

logger = logging.getLogger(__name__)

MESSAGE_PREVIEW_CHARS = 40


class FeedbackSubmissionError(RuntimeError):
    """Raised when the feedback API cannot be reached or rejects a request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class FeedbackClient:
    """Thin wrapper over POST /feedback and GET /feedbacks."""

    def __init__(self, base_url: str = "http://localhost:8000", timeout_s: float = 5.0):
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s

    def create_feedback(self, data: FeedbackCreate) -> Feedback:
        """
        Submit a feedback record.

        Args:
            data: Record to create

        Returns:
            The stored record as returned by the server

        Raises:
            FeedbackSubmissionError: on transport errors, non-2xx status or a bad body
        """
        try:
            response = requests.post(
                f"{self.base_url}/feedback",
                json=data.model_dump(exclude_none=True),
                timeout=self.timeout_s,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"❌ Error creating feedback: {e}")
            raise FeedbackSubmissionError(f"Could not reach feedback API: {e}") from e

        payload = self._check(response, "creating feedback")
        try:
            return Feedback.model_validate(payload)
        except ValidationError as e:
            logger.error(f"❌ Invalid feedback returned by server: {e}")
            raise FeedbackSubmissionError("Invalid response from server") from e

    def get_feedbacks(self) -> List[Feedback]:
        """Fetch every stored feedback record."""
        try:
            response = requests.get(f"{self.base_url}/feedbacks", timeout=self.timeout_s)
        except requests.exceptions.RequestException as e:
            logger.error(f"❌ Error fetching feedbacks: {e}")
            raise FeedbackSubmissionError(f"Could not reach feedback API: {e}") from e

        payload = self._check(response, "fetching feedbacks")
        try:
            return [Feedback.model_validate(item) for item in payload]
        except (TypeError, ValidationError) as e:
            logger.error(f"❌ Invalid feedback list returned by server: {e}")
            raise FeedbackSubmissionError("Invalid response from server") from e

    @staticmethod
    def _check(response: requests.Response, action: str) -> Any:
        if not response.ok:
            logger.error(f"❌ Error {action}: HTTP {response.status_code} {response.text}")
            raise FeedbackSubmissionError(
                f"HTTP error {response.status_code} while {action}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"❌ Error {action}: response is not JSON")
            raise FeedbackSubmissionError("Invalid response from server",
                                          status_code=response.status_code) from e


def format_feedback_table(records: Iterable[Feedback]) -> str:
    """
    Render feedback records as a plain-text table.

    Missing values show as '-', long messages are truncated.
    """
    headers = ["Type", "Name", "Email", "Message", "Date"]
    rows = []
    for record in records:
        message = record.message or "-"
        if len(message) > MESSAGE_PREVIEW_CHARS:
            message = message[:MESSAGE_PREVIEW_CHARS - 3] + "..."
        rows.append([
            record.type,
            record.name or "-",
            record.email or "-",
            message,
            record.created_at.strftime("%Y-%m-%d %H:%M"),
        ])

    if not rows:
        return "No feedback yet"

    widths = [max(len(h), *(len(r[i]) for r in rows)) for i, h in enumerate(headers)]
    lines = [
        "  ".join(h.ljust(w) for h, w in zip(headers, widths)),
        "  ".join("-" * w for w in widths),
    ]
    for row in rows:
        lines.append("  ".join(cell.ljust(w) for cell, w in zip(row, widths)))
    return "\n".join(lines)

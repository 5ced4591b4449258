"""
In-memory feedback storage for the REST server.
"""
import threading
from datetime import datetime, timezone
from typing import Dict, List

from .schemas import Feedback, FeedbackCreate


class FeedbackStore:
    """Process-lifetime feedback records keyed by auto-incrementing id."""

    def __init__(self):
        self._records: Dict[int, Feedback] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def add(self, data: FeedbackCreate) -> Feedback:
        with self._lock:
            record = Feedback(
                id=self._next_id,
                created_at=datetime.now(timezone.utc),
                **data.model_dump(),
            )
            self._records[record.id] = record
            self._next_id += 1
            return record

    def list(self) -> List[Feedback]:
        """All records, newest first."""
        with self._lock:
            return sorted(self._records.values(), key=lambda r: r.id, reverse=True)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
            self._next_id = 1

    def __len__(self) -> int:
        return len(self._records)

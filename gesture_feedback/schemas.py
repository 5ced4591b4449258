"""
Request/response models shared by the REST server and its client.
"""
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, model_validator


class FeedbackCreate(BaseModel):
    """A feedback record as submitted by the kiosk."""
    type: Literal["positive", "negative"]
    name: Optional[str] = None
    email: Optional[str] = None
    message: Optional[str] = None

    @model_validator(mode="after")
    def check_negative_fields(self):
        # The negative form marks all three fields required
        if self.type == "negative":
            for field_name in ("name", "email", "message"):
                value = getattr(self, field_name)
                if value is None or not value.strip():
                    raise ValueError(f"'{field_name}' is required for negative feedback")
            if "@" not in self.email:
                raise ValueError("'email' must be a valid email address")
        return self


class Feedback(FeedbackCreate):
    """A stored feedback record."""
    id: int
    created_at: datetime


class DetectGestureRequest(BaseModel):
    # base64 JPEG, optionally as a data URL
    frame_data: str


class DetectGestureResponse(BaseModel):
    hands_detected: bool
    gesture: Optional[Literal["positive", "negative"]] = None
    landmarks: Optional[List[List[float]]] = None
    debug_info: Dict[str, Any] = Field(default_factory=dict)
    error: Optional[str] = None

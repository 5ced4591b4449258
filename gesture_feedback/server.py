#!/usr/bin/env python3
"""
Gesture Feedback - FastAPI server

Stores feedback records and runs server-side hand landmark detection for
clients that cannot run MediaPipe themselves.
"""

import base64
import binascii
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import List, Optional

import cv2
import numpy as np
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from .config import load_config
from .gestures import classify_thumb_gesture
from .landmarks import HandsTracker
from .schemas import DetectGestureRequest, DetectGestureResponse, Feedback, FeedbackCreate
from .store import FeedbackStore
from .types import GestureLabel

logger = logging.getLogger(__name__)

feedback_store = FeedbackStore()
hands_tracker: Optional[HandsTracker] = None


def decode_frame(frame_data: str) -> np.ndarray:
    """
    Decode a base64 JPEG (optionally a data URL) into a BGR frame.

    Raises:
        ValueError: if the payload is not valid base64 or not a decodable image
    """
    encoded = frame_data.split(',', 1)[1] if ',' in frame_data else frame_data
    try:
        img_bytes = base64.b64decode(encoded, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 frame data: {e}") from e

    if not img_bytes:
        raise ValueError("Empty frame")

    nparr = np.frombuffer(img_bytes, np.uint8)
    try:
        frame = cv2.imdecode(nparr, cv2.IMREAD_COLOR)
    except cv2.error as e:
        raise ValueError(f"Invalid image: {e}") from e
    if frame is None:
        raise ValueError("Invalid frame")
    return frame


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the hand tracker on startup, close it on shutdown"""
    global hands_tracker

    logger.info("🚀 Starting Gesture Feedback Server...")
    config = load_config()
    try:
        hands_tracker = HandsTracker(
            max_num_hands=config.mediapipe.max_num_hands,
            model_complexity=config.mediapipe.model_complexity,
            min_detection_conf=config.mediapipe.min_detection_confidence,
            min_tracking_conf=config.mediapipe.min_tracking_confidence,
            static_image_mode=True,
        )
        logger.info("✅ Hand tracker initialized")
    except Exception as e:
        # Feedback endpoints still work without server-side detection
        logger.error(f"❌ Failed to initialize hand tracker: {e}")
        hands_tracker = None

    yield

    logger.info("🛑 Shutting down...")
    if hands_tracker is not None:
        hands_tracker.close()
        hands_tracker = None


app = FastAPI(
    title="Gesture Feedback API",
    description="Thumbs up / thumbs down feedback collection",
    version="0.1.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    """Health check endpoint"""
    return {
        "status": "online",
        "service": "Gesture Feedback API",
        "tracker_ready": hands_tracker is not None,
        "feedback_count": len(feedback_store),
        "timestamp": datetime.now().isoformat(),
    }


@app.post("/feedback", response_model=Feedback, status_code=201)
async def create_feedback(data: FeedbackCreate):
    """Store a feedback record"""
    record = feedback_store.add(data)
    logger.info(f"📝 Stored {record.type} feedback (id={record.id})")
    return record


@app.get("/feedbacks", response_model=List[Feedback])
async def list_feedbacks():
    """List feedback records, newest first"""
    return feedback_store.list()


@app.post("/detect-gesture", response_model=DetectGestureResponse)
async def detect_gesture(request: DetectGestureRequest):
    """Detect a hand in a frame and classify its thumb gesture"""
    if hands_tracker is None:
        raise HTTPException(status_code=503, detail="Hand tracker not initialized")

    try:
        frame = decode_frame(request.frame_data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    hand = hands_tracker.process(frame)
    if hand is None:
        return DetectGestureResponse(
            hands_detected=False,
            error="No hands detected - Try better lighting/positioning",
        )

    label, diagnostics = classify_thumb_gesture(hand)
    return DetectGestureResponse(
        hands_detected=True,
        gesture=None if label == GestureLabel.NONE else label.value,
        landmarks=hand.to_list(),
        debug_info=diagnostics.to_dict(),
    )


def main():
    """Run the server with uvicorn."""
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    config = load_config()

    logger.info(f"🚀 Starting FastAPI server on port {config.server.port}")
    logger.info(f"📚 API documentation available at http://localhost:{config.server.port}/docs")

    uvicorn.run(
        app,
        host=config.server.host,
        port=config.server.port,
        reload=False,
        log_level="info"
    )


if __name__ == "__main__":
    main()

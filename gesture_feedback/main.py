"""
Main application: webcam thumbs up / thumbs down feedback kiosk.
"""
import argparse
import asyncio
import logging
import time
from typing import Optional

import cv2

from .api_client import FeedbackClient, FeedbackSubmissionError, format_feedback_table
from .config import Cfg, load_config
from .feedback_sink import FeedbackDispatcher
from .landmarks import HandsTracker, draw_landmarks
from .remote import LandmarkServiceError, RemoteLandmarkProvider
from .schemas import Feedback
from .session import GestureSession
from .types import InvalidLandmarksError

logger = logging.getLogger(__name__)


class GestureFeedbackApp:
    """Main application class for gesture-driven feedback collection."""

    def __init__(self, config: Cfg, use_remote: bool = False):
        """Initialize the application with configuration."""
        self.config = config
        self.use_remote = use_remote
        self.client = FeedbackClient(config.api.base_url, config.api.timeout_s)

        # Choose landmark provider
        if use_remote:
            self.provider = RemoteLandmarkProvider(config.api.base_url, config.api.timeout_s)
            self.sample_interval_s = config.detection.remote_interval_ms / 1000.0
            logger.info(f"🌐 Using remote detection at {config.api.base_url}")
        else:
            self.provider = HandsTracker(
                max_num_hands=config.mediapipe.max_num_hands,
                model_complexity=config.mediapipe.model_complexity,
                min_detection_conf=config.mediapipe.min_detection_confidence,
                min_tracking_conf=config.mediapipe.min_tracking_confidence
            )
            self.sample_interval_s = 0.0

        self.session = GestureSession(
            FeedbackDispatcher(self.client, on_recorded=self._on_recorded)
        )
        self.debug_text = ""
        self._last_sample_time: Optional[float] = None

        # Initialize camera
        self.cap = cv2.VideoCapture(self.config.camera.index)
        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.config.camera.width)
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.config.camera.height)
        self.cap.set(cv2.CAP_PROP_FPS, self.config.camera.fps)

        if not self.cap.isOpened():
            raise RuntimeError(f"Failed to open camera {self.config.camera.index}")

    def _on_recorded(self, record: Feedback) -> None:
        print(f"✅ {record.type.capitalize()} feedback recorded!")
        try:
            print(format_feedback_table(self.client.get_feedbacks()))
        except FeedbackSubmissionError as e:
            logger.warning(f"⚠️ Could not refresh feedback list: {e}")

    def _due_for_sample(self, t_now: float) -> bool:
        if self._last_sample_time is None or t_now - self._last_sample_time >= self.sample_interval_s:
            self._last_sample_time = t_now
            return True
        return False

    async def run(self):
        """Run the main application loop."""
        print(f"Starting {self.config.display.window_name}")
        print("🎯 Gesture Recognition:")
        print("  - Thumbs UP = Positive feedback")
        print("  - Thumbs DOWN = Negative feedback")
        print("Press 'q' to quit")

        hand = None
        try:
            while True:
                ret, frame = self.cap.read()
                if not ret:
                    logger.error("Failed to read frame from camera")
                    break

                t_now = time.time()
                if self._due_for_sample(t_now):
                    hand = await self._sample(frame, t_now)

                self._draw_overlay(frame, hand)
                cv2.imshow(self.config.display.window_name, frame)

                if cv2.waitKey(1) & 0xFF == ord('q'):
                    break
                # let pending dispatches run between frames
                await asyncio.sleep(0)
        finally:
            self.close()

    async def _sample(self, frame, t_now: float):
        try:
            hand = self.provider.process(frame)
        except LandmarkServiceError as e:
            logger.debug(f"Landmark service error: {e}")
            self.debug_text = "Backend not running - start the server first"
            return None
        except InvalidLandmarksError as e:
            logger.warning(f"⚠️ Discarding malformed landmarks: {e}")
            self.debug_text = "Backend sent malformed landmarks"
            return None

        result = await self.session.process(hand, t_now)
        if result.skipped:
            return hand
        if result.diagnostics is not None:
            self.debug_text = f"{result.diagnostics.summary()} | {result.label.value}"
        else:
            self.debug_text = "No hands detected"
        return hand

    def _draw_overlay(self, frame, hand) -> None:
        if hand is not None and self.config.display.show_landmarks:
            draw_landmarks(frame, hand)

        height = frame.shape[0]
        if self.config.display.show_debug and self.debug_text:
            cv2.putText(frame, self.debug_text, (10, height - 20), cv2.FONT_HERSHEY_SIMPLEX,
                        0.4, (255, 255, 255), 1)

        if self.session.cooldown_active:
            cv2.putText(frame, "Gesture Detected - Cooldown Active", (10, 30),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.6, (0, 255, 0), 2)

        cv2.putText(frame, "Thumbs UP = Positive", (10, height - 80), cv2.FONT_HERSHEY_SIMPLEX, 0.5, (255, 255, 255), 1)
        cv2.putText(frame, "Thumbs DOWN = Negative", (10, height - 60), cv2.FONT_HERSHEY_SIMPLEX, 0.5, (255, 255, 255), 1)

    def close(self) -> None:
        """Release the camera, provider and session."""
        self.session.close()
        if isinstance(self.provider, HandsTracker):
            self.provider.close()
        if self.cap.isOpened():
            self.cap.release()
        cv2.destroyAllWindows()


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Thumbs up / thumbs down feedback kiosk.")
    ap.add_argument("--config", default=None, help="Path to a YAML config file.")
    ap.add_argument("--remote", action="store_true",
                    help="Detect hands on the server instead of locally.")
    ap.add_argument("--list", action="store_true", help="Print stored feedback and exit.")
    ap.add_argument("--debug", action="store_true", help="Enable debug logging.")
    return ap


async def main(argv=None) -> int:
    """Entry point for the application."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO)

    config = load_config(args.config)

    if args.list:
        client = FeedbackClient(config.api.base_url, config.api.timeout_s)
        try:
            print(format_feedback_table(client.get_feedbacks()))
        except FeedbackSubmissionError as e:
            print(f"Error: {e}")
            return 1
        return 0

    try:
        app = GestureFeedbackApp(config, use_remote=args.remote)
    except RuntimeError as e:
        print(f"Error: {e}")
        return 1

    try:
        await app.run()
    except KeyboardInterrupt:
        print("\nApplication interrupted by user")
    return 0


def cli() -> None:
    raise SystemExit(asyncio.run(main()))


if __name__ == "__main__":
    cli()

"""
Configuration management for the gesture feedback system.
"""
import os
import yaml
from pathlib import Path
from typing import Optional, Dict, Any
from dataclasses import dataclass

from dotenv import load_dotenv


@dataclass
class CameraConfig:
    """Camera configuration settings."""
    index: int
    width: int
    height: int
    fps: int


@dataclass
class MediaPipeConfig:
    """MediaPipe Hands configuration settings."""
    max_num_hands: int
    model_complexity: int
    min_detection_confidence: float
    min_tracking_confidence: float


@dataclass
class ApiConfig:
    """Feedback REST API client settings."""
    base_url: str
    timeout_s: float


@dataclass
class ServerConfig:
    """REST server bind settings."""
    host: str
    port: int


@dataclass
class DetectionConfig:
    """Frame sampling settings."""
    remote_interval_ms: int


@dataclass
class DisplayConfig:
    """Display configuration settings."""
    show_landmarks: bool
    show_debug: bool
    window_name: str


@dataclass
class Cfg:
    """Main configuration class."""
    camera: CameraConfig
    mediapipe: MediaPipeConfig
    api: ApiConfig
    server: ServerConfig
    detection: DetectionConfig
    display: DisplayConfig


def load_config(path: Optional[str] = None) -> Cfg:
    """
    Load configuration from YAML file, then apply environment overrides.

    FEEDBACK_API_URL and FEEDBACK_SERVER_PORT (from the environment or a
    .env file) override api.base_url and server.port.

    Args:
        path: Path to config file. If None, uses the bundled config.default.yaml

    Returns:
        Configuration object with all settings
    """
    if path is None:
        path = Path(__file__).parent / "config.default.yaml"

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        data = yaml.safe_load(f)

    cfg = _dict_to_config(data)

    load_dotenv()
    api_url = os.getenv("FEEDBACK_API_URL")
    if api_url:
        cfg.api.base_url = api_url
    server_port = os.getenv("FEEDBACK_SERVER_PORT")
    if server_port:
        cfg.server.port = int(server_port)

    return cfg


def _dict_to_config(data: Dict[str, Any]) -> Cfg:
    """Convert dictionary to configuration object."""
    camera_data = data['camera']
    camera = CameraConfig(
        index=camera_data['index'],
        width=camera_data['width'],
        height=camera_data['height'],
        fps=camera_data['fps']
    )

    mp_data = data['mediapipe']
    mediapipe = MediaPipeConfig(
        max_num_hands=mp_data['max_num_hands'],
        model_complexity=mp_data['model_complexity'],
        min_detection_confidence=mp_data['min_detection_confidence'],
        min_tracking_confidence=mp_data['min_tracking_confidence']
    )

    api_data = data['api']
    api = ApiConfig(
        base_url=api_data['base_url'],
        timeout_s=float(api_data['timeout_s'])
    )

    server_data = data['server']
    server = ServerConfig(
        host=server_data['host'],
        port=int(server_data['port'])
    )

    detection = DetectionConfig(
        remote_interval_ms=data['detection']['remote_interval_ms']
    )

    display_data = data['display']
    display = DisplayConfig(
        show_landmarks=display_data['show_landmarks'],
        show_debug=display_data['show_debug'],
        window_name=display_data['window_name']
    )

    return Cfg(
        camera=camera,
        mediapipe=mediapipe,
        api=api,
        server=server,
        detection=detection,
        display=display
    )

"""
AirDraw configuration.

Defaults live in the dataclasses below; `load_config` overlays values
from the environment (and an optional .env file).
"""

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv

PALETTE: Tuple[Tuple[str, str], ...] = (
    ("White", "#FFFFFF"),
    ("Cyan", "#22D3EE"),
    ("Purple", "#A855F7"),
    ("Amber", "#F59E0B"),
    ("Red", "#EF4444"),
    ("Green", "#22C55E"),
    ("Blue", "#3B82F6"),
    ("Pink", "#EC4899"),
)
BRUSH_SIZES: Tuple[int, ...] = (4, 8, 16, 24)

HAND_LANDMARKER_URL = (
    "https://storage.googleapis.com/mediapipe-models/hand_landmarker/"
    "hand_landmarker/float16/1/hand_landmarker.task"
)


@dataclass(frozen=True)
class PinchConfig:
    threshold: float = 0.12


@dataclass(frozen=True)
class SmoothingConfig:
    gain: float = 0.2


@dataclass(frozen=True)
class CameraConfig:
    index: int = 0
    width: int = 1920
    height: int = 1080
    ready_timeout_s: float = 5.0


@dataclass(frozen=True)
class DetectorConfig:
    model_url: str = HAND_LANDMARKER_URL
    cache_dir: str = "~/.cache/airdraw/models"
    num_hands: int = 1
    min_detection_confidence: float = 0.5
    min_tracking_confidence: float = 0.5
    download_timeout_s: float = 120.0


@dataclass(frozen=True)
class EnhanceConfig:
    endpoint_url: str = "http://localhost:8888/.netlify/functions/analyze-drawing"
    timeout_s: float = 30.0
    cooldown_ms: int = 10_000
    countdown_step_ms: int = 100


@dataclass(frozen=True)
class InteractionConfig:
    require_confirmation: bool = True
    # Re-fire color/size/clear every frame while a pinch is held
    repeat_actions: bool = True
    clear_resets_stroke: bool = True
    frame_interval_ms: int = 16
    cursor_radius: int = 6
    default_color: str = PALETTE[1][1]
    default_brush_size: int = 8


@dataclass(frozen=True)
class LoggingConfig:
    debug: bool = False
    log_to_file: bool = True
    directory: str = "~/.airdraw/logs"
    filename: str = "airdraw.log"
    max_bytes: int = 1_000_000
    backup_count: int = 3


@dataclass(frozen=True)
class AppConfig:
    pinch: PinchConfig = field(default_factory=PinchConfig)
    smoothing: SmoothingConfig = field(default_factory=SmoothingConfig)
    camera: CameraConfig = field(default_factory=CameraConfig)
    detector: DetectorConfig = field(default_factory=DetectorConfig)
    enhance: EnhanceConfig = field(default_factory=EnhanceConfig)
    interaction: InteractionConfig = field(default_factory=InteractionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


def load_config(env_file: Optional[str] = None) -> AppConfig:
    """
    Build the application config from defaults and environment variables.

    Args:
        env_file: Path to a .env file. Defaults to ./.env when present.
    """
    if env_file is not None:
        load_dotenv(Path(env_file))
    else:
        load_dotenv()

    base = AppConfig()
    enhance = replace(
        base.enhance,
        endpoint_url=os.environ.get("AIRDRAW_ENHANCE_URL", base.enhance.endpoint_url),
        timeout_s=_env_float("AIRDRAW_ENHANCE_TIMEOUT", base.enhance.timeout_s),
        cooldown_ms=_env_int("AIRDRAW_COOLDOWN_MS", base.enhance.cooldown_ms),
    )
    camera = replace(base.camera, index=_env_int("AIRDRAW_CAMERA_INDEX", base.camera.index))
    detector = replace(base.detector, model_url=os.environ.get("AIRDRAW_MODEL_URL", base.detector.model_url))
    interaction = replace(
        base.interaction,
        require_confirmation=_env_bool("AIRDRAW_REQUIRE_CONFIRMATION", base.interaction.require_confirmation),
        repeat_actions=_env_bool("AIRDRAW_REPEAT_ACTIONS", base.interaction.repeat_actions),
        clear_resets_stroke=_env_bool("AIRDRAW_CLEAR_RESETS_STROKE", base.interaction.clear_resets_stroke),
    )
    logging_cfg = replace(base.logging, debug=_env_bool("AIRDRAW_DEBUG", base.logging.debug))

    return replace(
        base,
        enhance=enhance,
        camera=camera,
        detector=detector,
        interaction=interaction,
        logging=logging_cfg,
    )

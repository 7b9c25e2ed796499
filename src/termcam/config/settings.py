"""Configuration management for termcam.

Loads settings from a YAML configuration file with environment variable
overrides (``TERMCAM_`` prefix, ``__`` for nested sections). Supports
.env files.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from termcam.domain.models import RenderMode, WindowScale

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/termcam.yaml")


class CaptureConfig(BaseModel):
    preferred_device: int | None = Field(default=None, ge=0, description="OpenCV camera index to start with")
    max_device_index: int = Field(default=10, ge=0, description="Highest index tried by the camera probe")
    tick_interval: float = Field(default=0.05, gt=0, description="Seconds between captured frames")
    threshold_cutoff: int = Field(default=150, ge=0, le=255)
    resolution_width: int | None = Field(default=None, gt=0)
    resolution_height: int | None = Field(default=None, gt=0)


class DisplayConfig(BaseModel):
    mode: RenderMode = Field(default=RenderMode.COLORFUL_HALF_BLOCK)
    window_scale: WindowScale = Field(default=WindowScale.SMALL)
    primary_color: tuple[int, int, int] = Field(default=(168, 50, 62))
    title: str = Field(default="termcam")


class KeyBindings(BaseModel):
    """Key chords per action, e.g. ``"m"``, ``"space"``, ``"ctrl+l"``."""

    mode: list[str] = Field(default_factory=lambda: ["space", "m"])
    camera: list[str] = Field(default_factory=lambda: ["c"])
    scale: list[str] = Field(default_factory=lambda: ["s"])
    lock: list[str] = Field(default_factory=lambda: ["ctrl+l"])
    exit: list[str] = Field(default_factory=lambda: ["escape"])

    @field_validator("mode", "camera", "scale", "lock", "exit")
    @classmethod
    def _normalize(cls, chords: list[str]) -> list[str]:
        normalized = [chord.strip().lower() for chord in chords if chord.strip()]
        if not normalized:
            raise ValueError("at least one key must be bound")
        return normalized

    def action_for(self, chord: str) -> str | None:
        """Name of the action bound to ``chord``, or None.

        Matching ignores case, so Shift and Caps Lock do not break bindings.
        """
        chord = chord.lower()
        for action in ("lock", "exit", "mode", "camera", "scale"):
            if chord in getattr(self, action):
                return action
        return None


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Root configuration for the termcam system.

    Loads from YAML file and supports environment variable overrides.
    Reads .env files automatically.
    """

    model_config = {
        "env_prefix": "TERMCAM_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    capture: CaptureConfig = Field(default_factory=CaptureConfig)
    display: DisplayConfig = Field(default_factory=DisplayConfig)
    keys: KeyBindings = Field(default_factory=KeyBindings)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # YAML values arrive as init kwargs; environment must still win
        return env_settings, dotenv_settings, init_settings, file_secret_settings


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + .env + environment variables.

    Priority: env vars > .env file > YAML file > defaults
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    yaml_data = {}
    if path.exists():
        with open(path) as f:
            yaml_data = yaml.safe_load(f) or {}
        logger.info("Loaded configuration from %s", path)
    else:
        logger.warning("Config file %s not found, using defaults + env vars", path)

    return Settings(**yaml_data)

"""
Global Configuration and Safe Defaults.

Module-level constants hold the defaults the engine relies on (classifier
bounds, layout breakpoints and presets, persistence timing). A project may
override the runtime-facing subset in ``.jsongraph/config.yaml``, which is
read with PyYAML into a ``GraphConfig`` model.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

logger = logging.getLogger(__name__)

# --- Classifier bounds ---
# Epoch milliseconds for 2000-01-01 and 2100-01-01 (exclusive)
TIMESTAMP_MIN_MS = 946_684_800_000
TIMESTAMP_MAX_MS = 4_102_444_800_000

# --- Layout ---
WIDE_BREAKPOINT = 1024
TABLET_BREAKPOINT = 768
DEFAULT_CONTAINER_WIDTH = 1200
DEFAULT_CONTAINER_HEIGHT = 800

# Extra room around each node's spread-axis band, and per depth step
BAND_BUFFER = 40
HORIZONTAL_RANK_BUFFER = 50
VERTICAL_RANK_BUFFER = 60
LAYOUT_ORIGIN = (100.0, 100.0)

LAYOUT_PRESETS: Dict[str, Dict[str, Any]] = {
    "wide": {
        "direction": "horizontal",
        "node_width": 320,
        "node_height": 220,
        "horizontal_spacing": 120,
        "vertical_spacing": 100,
    },
    "tablet": {
        "direction": "horizontal",
        "node_width": 280,
        "node_height": 180,
        "horizontal_spacing": 80,
        "vertical_spacing": 80,
    },
    "compact": {
        "direction": "vertical",
        "node_width": 250,
        "node_height": 160,
        "horizontal_spacing": 60,
        "vertical_spacing": 60,
    },
}

# --- Persistence ---
CONFIG_DIR = Path(".jsongraph")
CONFIG_FILE = CONFIG_DIR / "config.yaml"
DEFAULT_DB_PATH = CONFIG_DIR / "jsongraph.db"
DEFAULT_JSON_STATE_PATH = CONFIG_DIR / "json-states.json"
DEFAULT_DEBOUNCE_SECONDS = 0.5

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

# Written by `jsongraph init`
DEFAULT_CONFIG: Dict[str, Any] = {
    "version": "1.0",
    "storage": {
        "backend": "sqlite",
        "path": str(DEFAULT_DB_PATH),
        "debounce_seconds": DEFAULT_DEBOUNCE_SECONDS,
    },
    "layout": {
        "container_width": DEFAULT_CONTAINER_WIDTH,
        "container_height": DEFAULT_CONTAINER_HEIGHT,
    },
    "logging": {"level": "WARNING"},
}


class StorageConfig(BaseModel):
    backend: Literal["sqlite", "json", "memory"] = "sqlite"
    path: Path = DEFAULT_DB_PATH
    debounce_seconds: float = Field(default=DEFAULT_DEBOUNCE_SECONDS, ge=0)


class LayoutConfig(BaseModel):
    container_width: float = Field(default=DEFAULT_CONTAINER_WIDTH, gt=0)
    container_height: float = Field(default=DEFAULT_CONTAINER_HEIGHT, gt=0)


class LoggingConfig(BaseModel):
    level: str = "WARNING"


class GraphConfig(BaseModel):
    """Runtime configuration resolved from ``.jsongraph/config.yaml``."""
    version: str = "1.0"
    storage: StorageConfig = Field(default_factory=StorageConfig)
    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(config_path: Path | None = None) -> GraphConfig:
    """
    Load configuration from YAML, falling back to defaults.

    A missing file is normal. An unreadable or invalid file is reported and
    ignored rather than aborting the caller.
    """
    path = config_path or CONFIG_FILE
    if not path.exists():
        return GraphConfig()

    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
        return GraphConfig.model_validate(data)
    except (OSError, yaml.YAMLError, PydanticValidationError) as e:
        logger.warning(f"Ignoring invalid config at {path}: {e}")
        return GraphConfig()


def configure_logging(level: str | int = "WARNING") -> None:
    """Attach a single stream handler to the package logger."""
    package_logger = logging.getLogger("jsongraph")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING
    package_logger.setLevel(level)

    # Replace rather than reuse: the previous handler may hold a stale stderr
    for existing in [h for h in package_logger.handlers if getattr(h, "_jsongraph", False)]:
        package_logger.removeHandler(existing)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._jsongraph = True  # type: ignore[attr-defined]
    package_logger.addHandler(handler)

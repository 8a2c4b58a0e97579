from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


DEFAULT_DATA_DIR = Path("/data")
DEFAULT_THUMBNAIL_WIDTH = 400
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080

# Session codes are fixed-length alphanumeric tokens.
SESSION_CODE_LENGTH = 6

# Extensions accepted in /pictures/<session>/<filename>. ".zip" is a pseudo-file
# that selects the archive download.
IMAGE_EXTS = (".jpg", ".jpeg", ".png", ".gif")
ARCHIVE_EXT = ".zip"

# Only these files are bundled into session archives.
ARCHIVE_IMAGE_EXTS = (".jpg", ".png")

CONTENT_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
}

STREAM_CHUNK_SIZE = 64 * 1024

_TRUE_VALUES = {"1", "t", "true", "y", "yes", "on"}
_FALSE_VALUES = {"0", "f", "false", "n", "no", "off"}


class GalleryConfig(BaseModel):
    """Process-wide settings, fixed once the app is built."""

    model_config = ConfigDict(frozen=True)

    data_dir: Path = DEFAULT_DATA_DIR
    thumbnail_width: int = Field(default=DEFAULT_THUMBNAIL_WIDTH, gt=0)
    thumbnails_enabled: bool = True
    uppercase_sessions: bool = True
    host: str = DEFAULT_HOST
    port: int = Field(default=DEFAULT_PORT, gt=0, lt=65536)


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def load_config(**overrides: object) -> GalleryConfig:
    """Build the config from FOTOBOX_* environment variables.

    Keyword overrides (e.g. parsed command line flags) win over the environment;
    ``None`` overrides are ignored.
    """
    _dir_raw = os.environ.get("FOTOBOX_DATA_DIR")
    values: dict[str, object] = {
        "data_dir": Path(_dir_raw) if _dir_raw and _dir_raw.strip() else DEFAULT_DATA_DIR,
        "thumbnail_width": int(os.environ.get("FOTOBOX_THUMBNAIL_WIDTH", str(DEFAULT_THUMBNAIL_WIDTH))),
        "thumbnails_enabled": _env_flag("FOTOBOX_THUMBNAILS_ENABLED", True),
        "uppercase_sessions": _env_flag("FOTOBOX_UPPERCASE_SESSIONS", True),
        "host": os.environ.get("HOST", DEFAULT_HOST),
        "port": int(os.environ.get("PORT", str(DEFAULT_PORT))),
    }
    for key, value in overrides.items():
        if value is not None:
            values[key] = value
    return GalleryConfig(**values)

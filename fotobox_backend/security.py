from __future__ import annotations

import re
from pathlib import Path

from .config import SESSION_CODE_LENGTH


_SESSION_CODE_RE = re.compile(rf"^[0-9A-Za-z]{{{SESSION_CODE_LENGTH}}}$")


def normalize_session_id(session_id: str, uppercase: bool = True) -> str:
    """Validate a session code and return the form used on disk.

    Session codes are exactly six ASCII letters/digits. They name a directory
    under the data root, so anything else is rejected before it gets near the
    filesystem.
    """
    if not isinstance(session_id, str) or not _SESSION_CODE_RE.fullmatch(session_id):
        raise ValueError("Invalid session id")
    return session_id.upper() if uppercase else session_id


def is_safe_basename(name: str) -> bool:
    """Allow only simple filenames (no directories)."""
    if not isinstance(name, str) or not name:
        return False
    if name in (".", ".."):
        return False
    if name != Path(name).name:
        return False
    if "/" in name or "\\" in name or "\x00" in name:
        return False
    return True


def safe_join(base_dir: Path, *parts: str) -> Path:
    """Join paths and ensure the result stays within base_dir."""
    base_dir = base_dir.resolve()
    candidate = base_dir
    for part in parts:
        candidate = candidate / part
    resolved = candidate.resolve()
    if resolved == base_dir:
        return resolved
    if base_dir not in resolved.parents:
        raise ValueError("Path traversal attempt")
    return resolved

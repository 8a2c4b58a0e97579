from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from .security import is_safe_basename, safe_join


@dataclass(frozen=True)
class SessionEntry:
    name: str
    is_dir: bool


@dataclass(frozen=True)
class SessionStore:
    """Read-only view of the data root: one directory per session code.

    Both operations raise FileNotFoundError when the session or file does not
    exist; any other OSError means the backend itself failed.
    """

    root: Path

    def session_dir(self, session_id: str) -> Path:
        try:
            return safe_join(self.root, session_id)
        except ValueError:
            raise FileNotFoundError(session_id) from None

    def list_entries(self, session_id: str) -> list[SessionEntry]:
        """Return the session's entries in directory read order."""
        directory = self.session_dir(session_id)
        entries: list[SessionEntry] = []
        try:
            with os.scandir(directory) as it:
                for entry in it:
                    entries.append(SessionEntry(name=entry.name, is_dir=entry.is_dir()))
        except NotADirectoryError:
            raise FileNotFoundError(session_id) from None
        return entries

    def list_files(self, session_id: str) -> list[str]:
        return [e.name for e in self.list_entries(session_id) if not e.is_dir]

    def open_file(self, session_id: str, filename: str) -> BinaryIO:
        """Open a session file for binary reading. The caller owns the handle."""
        if not is_safe_basename(filename):
            raise FileNotFoundError(filename)
        directory = self.session_dir(session_id)
        try:
            path = safe_join(directory, filename)
        except ValueError:
            raise FileNotFoundError(filename) from None
        try:
            return path.open("rb")
        except (NotADirectoryError, IsADirectoryError):
            raise FileNotFoundError(filename) from None

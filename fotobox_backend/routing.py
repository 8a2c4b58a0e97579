from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Mapping, Optional, Union

from .config import ARCHIVE_EXT, IMAGE_EXTS, SESSION_CODE_LENGTH
from .security import normalize_session_id


def _ext_alternatives(exts: tuple[str, ...]) -> str:
    return "|".join(re.escape(ext.lstrip(".")) for ext in exts)


# /pictures/<session>[/[<filename>]] with the allowed extensions spelled out once.
_PICTURE_PATH_RE = re.compile(
    rf"^/pictures/(?P<session>[0-9A-Za-z]{{{SESSION_CODE_LENGTH}}})"
    rf"(?:/(?P<filename>[^/]+\.(?:{_ext_alternatives(IMAGE_EXTS + (ARCHIVE_EXT,))}))?)?$"
)

# strconv.ParseBool spellings.
_BOOL_TRUE = {"1", "t", "T", "TRUE", "true", "True"}
_BOOL_FALSE = {"0", "f", "F", "FALSE", "false", "False"}


@dataclass(frozen=True)
class ListSession:
    pass


@dataclass(frozen=True)
class DownloadArchive:
    pass


@dataclass(frozen=True)
class FetchImage:
    filename: str
    thumbnail: bool = False


Intent = Union[ListSession, DownloadArchive, FetchImage]


@dataclass(frozen=True)
class ResolvedRequest:
    session_id: str
    intent: Intent
    path: str
    trailing_slash: bool


def parse_bool(raw: Optional[str]) -> Optional[bool]:
    """Parse a query flag; return None for anything unrecognised."""
    if raw is None:
        return None
    if raw in _BOOL_TRUE:
        return True
    if raw in _BOOL_FALSE:
        return False
    return None


def first_query_value(query: Optional[Mapping[str, str]], key: str) -> Optional[str]:
    """First value for key; repeated keys do not override it."""
    if query is None:
        return None
    getlist = getattr(query, "getlist", None)
    if getlist is not None:
        values = getlist(key)
        return values[0] if values else None
    return query.get(key)


def resolve_picture_path(
    path: str,
    query: Optional[Mapping[str, str]] = None,
    uppercase_sessions: bool = True,
) -> Optional[ResolvedRequest]:
    """Map a request path to a session and intent.

    Returns None when the path does not have the /pictures/<session>[/<file>]
    shape; callers answer that with a 404.
    """
    match = _PICTURE_PATH_RE.fullmatch(path or "")
    if match is None:
        return None

    session_id = normalize_session_id(match.group("session"), uppercase=uppercase_sessions)
    filename = match.group("filename") or ""
    trailing_slash = path.endswith("/")

    intent: Intent
    if not filename:
        intent = ListSession()
    elif filename.endswith(ARCHIVE_EXT):
        intent = DownloadArchive()
    else:
        thumbnail = parse_bool(first_query_value(query, "thumbnail"))
        intent = FetchImage(filename=filename, thumbnail=bool(thumbnail))

    return ResolvedRequest(
        session_id=session_id,
        intent=intent,
        path=path,
        trailing_slash=trailing_slash,
    )

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import BinaryIO, Iterator, Optional

from fastapi import HTTPException
from fastapi.responses import HTMLResponse, RedirectResponse, Response, StreamingResponse
from jinja2 import TemplateError

from .config import CONTENT_TYPES, STREAM_CHUNK_SIZE, GalleryConfig
from .listing import ListingRenderer
from .routing import DownloadArchive, FetchImage, ListSession, ResolvedRequest
from .storage import SessionStore
from .thumbnails import ThumbnailError, make_thumbnail
from .zip_utils import archive_members, iter_session_zip


logger = logging.getLogger(__name__)

NOT_FOUND_DETAIL = "Not found"
INTERNAL_ERROR_DETAIL = "Internal Server Error"


def not_found() -> HTTPException:
    return HTTPException(status_code=404, detail=NOT_FOUND_DETAIL)


def internal_error() -> HTTPException:
    return HTTPException(status_code=500, detail=INTERNAL_ERROR_DETAIL)


def content_type_for(filename: str) -> Optional[str]:
    """Content type by suffix; None lets the client sniff."""
    for ext, media_type in CONTENT_TYPES.items():
        if filename.endswith(ext):
            return media_type
    return None


class ContentDispatcher:
    """Runs the listing, archive or image flow for a resolved picture request.

    Everything it holds is read-only after construction, so one instance
    serves all concurrent requests. Each request opens its own handles.
    """

    def __init__(self, config: GalleryConfig, store: SessionStore, renderer: ListingRenderer) -> None:
        self.config = config
        self.store = store
        self.renderer = renderer

    def dispatch(self, resolved: ResolvedRequest) -> Response:
        intent = resolved.intent
        if isinstance(intent, ListSession):
            if not resolved.trailing_slash:
                # Relative links in the listing only resolve under the slash form.
                return RedirectResponse(url=f"{resolved.path}/", status_code=301)
            return self.list_session(resolved.session_id)
        if isinstance(intent, DownloadArchive):
            return self.download_archive(resolved.session_id)
        if isinstance(intent, FetchImage):
            return self.fetch_image(resolved.session_id, intent)
        raise TypeError(f"unknown intent {intent!r}")

    @contextmanager
    def _session_lookup(self, session_id: str) -> Iterator[None]:
        try:
            yield
        except FileNotFoundError:
            raise not_found() from None
        except OSError:
            logger.exception("dir list error for session %s", session_id)
            raise internal_error() from None

    def list_session(self, session_id: str) -> Response:
        with self._session_lookup(session_id):
            filenames = self.store.list_files(session_id)
        try:
            body = self.renderer.render(session_id, filenames)
        except TemplateError:
            logger.exception("template rendering error for session %s", session_id)
            raise internal_error() from None
        return HTMLResponse(content=body)

    def download_archive(self, session_id: str) -> Response:
        with self._session_lookup(session_id):
            members = archive_members(self.store.list_entries(session_id))
        chunks = iter_session_zip(self.store, session_id, members, chunk_size=STREAM_CHUNK_SIZE)

        # Pull the first chunk here so early failures still get a proper status.
        try:
            first = next(chunks, b"")
        except Exception:
            chunks.close()
            logger.exception("zip creation error for session %s", session_id)
            raise internal_error() from None

        headers = {"Content-Disposition": f'attachment; filename="{session_id}.zip"'}
        return StreamingResponse(
            _stream_archive(first, chunks, session_id),
            media_type="application/zip",
            headers=headers,
        )

    def fetch_image(self, session_id: str, intent: FetchImage) -> Response:
        filename = intent.filename
        try:
            src = self.store.open_file(session_id, filename)
        except FileNotFoundError:
            raise not_found() from None
        except OSError:
            logger.exception("image read error for %s/%s", session_id, filename)
            raise internal_error() from None

        try:
            if intent.thumbnail and self.config.thumbnails_enabled:
                thumbnail = self._try_thumbnail(src, session_id, filename)
                if thumbnail is not None:
                    src.close()
                    # Thumbnails are always re-encoded as JPEG.
                    return Response(content=thumbnail, media_type="image/jpeg")
            size = os.fstat(src.fileno()).st_size
        except OSError:
            src.close()
            logger.exception("image read error for %s/%s", session_id, filename)
            raise internal_error() from None
        except BaseException:
            src.close()
            raise

        return StreamingResponse(
            _stream_file(src, f"{session_id}/{filename}"),
            media_type=content_type_for(filename),
            headers={"Content-Length": str(size)},
        )

    def _try_thumbnail(self, src: BinaryIO, session_id: str, filename: str) -> Optional[bytes]:
        try:
            return make_thumbnail(src, self.config.thumbnail_width)
        except ThumbnailError as exc:
            logger.warning(
                "resize failed for %s/%s: %s. continuing with full-size image",
                session_id,
                filename,
                exc,
            )
        src.seek(0)
        return None


def _stream_archive(first: bytes, chunks: Iterator[bytes], session_id: str) -> Iterator[bytes]:
    try:
        if first:
            yield first
        yield from chunks
    except Exception:
        # Headers are already out; the transport can only drop the connection.
        logger.exception("zip stream for session %s failed mid-response, aborting", session_id)
        raise
    finally:
        chunks.close()


def _stream_file(src: BinaryIO, label: str) -> Iterator[bytes]:
    try:
        with src:
            while True:
                chunk = src.read(STREAM_CHUNK_SIZE)
                if not chunk:
                    return
                yield chunk
    except Exception:
        logger.exception("image send error for %s, aborting", label)
        raise

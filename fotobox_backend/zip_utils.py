from __future__ import annotations

import os
import time
import zipfile
from typing import BinaryIO, Iterable, Iterator

from .config import ARCHIVE_IMAGE_EXTS, STREAM_CHUNK_SIZE
from .storage import SessionEntry, SessionStore


class _ChunkSink:
    """Write-only target for ZipFile; buffers output until drained.

    It has no tell()/seek(), so ZipFile falls back to data descriptors and
    never needs to rewind what was already sent.
    """

    def __init__(self) -> None:
        self._buf = bytearray()

    def write(self, data: bytes) -> int:
        self._buf += data
        return len(data)

    def flush(self) -> None:
        pass

    def drain(self) -> bytes:
        data = bytes(self._buf)
        self._buf.clear()
        return data


def archive_members(entries: Iterable[SessionEntry]) -> list[str]:
    """Names of the files that go into a session archive, in listing order.

    Only .jpg and .png files are bundled; other readable images are left out.
    """
    return [
        e.name
        for e in entries
        if not e.is_dir and e.name.endswith(ARCHIVE_IMAGE_EXTS)
    ]


def _zip_info(name: str, src: BinaryIO) -> zipfile.ZipInfo:
    st = os.fstat(src.fileno())
    date_time = time.localtime(st.st_mtime)[:6]
    if date_time[0] < 1980:
        date_time = (1980, 1, 1, 0, 0, 0)
    info = zipfile.ZipInfo(name, date_time=date_time)
    info.compress_type = zipfile.ZIP_DEFLATED
    info.external_attr = 0o644 << 16
    # Lets ZipFile pick zip64 headers up front for very large files.
    info.file_size = st.st_size
    return info


def iter_session_zip(
    store: SessionStore,
    session_id: str,
    filenames: Iterable[str],
    chunk_size: int = STREAM_CHUNK_SIZE,
) -> Iterator[bytes]:
    """Yield a ZIP archive of the given session files chunk by chunk.

    Each file is copied byte-for-byte into an entry of the same name. Only one
    chunk of input is held in memory at a time. Closing the generator early
    closes the open source file and the archive writer.
    """
    sink = _ChunkSink()
    with zipfile.ZipFile(sink, mode="w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name in filenames:
            with store.open_file(session_id, name) as src:
                with zf.open(_zip_info(name, src), mode="w") as dest:
                    while True:
                        chunk = src.read(chunk_size)
                        if not chunk:
                            break
                        dest.write(chunk)
                        data = sink.drain()
                        if data:
                            yield data
            data = sink.drain()
            if data:
                yield data
    data = sink.drain()
    if data:
        yield data

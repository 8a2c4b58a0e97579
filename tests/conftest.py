"""Shared test fixtures."""

import io
import logging
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from fotobox_backend.config import GalleryConfig
from server import create_app

SESSION_ID = "AB12CD"
THUMBNAIL_WIDTH = 32


def image_bytes(size: tuple[int, int], fmt: str, mode: str = "RGB", color=(200, 30, 30)) -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, size, color).save(buffer, fmt)
    return buffer.getvalue()


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """Data root with one session: a.jpg, b.png, c.gif, notes.txt and a subfolder."""
    root = tmp_path / "data"
    session = root / SESSION_ID
    session.mkdir(parents=True)
    (session / "a.jpg").write_bytes(image_bytes((64, 48), "JPEG"))
    (session / "b.png").write_bytes(image_bytes((30, 20), "PNG", mode="RGBA", color=(0, 128, 255, 128)))
    (session / "c.gif").write_bytes(image_bytes((40, 10), "GIF", mode="P", color=3))
    (session / "notes.txt").write_text("not a photo", encoding="utf-8")
    (session / "raw").mkdir()
    return root


@pytest.fixture
def config(data_dir: Path) -> GalleryConfig:
    return GalleryConfig(data_dir=data_dir, thumbnail_width=THUMBNAIL_WIDTH)


@pytest.fixture
def app(config: GalleryConfig):
    return create_app(config)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def package_logs(monkeypatch, caplog):
    """caplog that also sees the package logger, which does not propagate by default."""
    monkeypatch.setattr(logging.getLogger("fotobox_backend"), "propagate", True)
    caplog.set_level(logging.INFO, logger="fotobox_backend")
    return caplog

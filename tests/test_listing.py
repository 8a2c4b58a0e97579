"""Tests for the session listing template."""

from pathlib import Path

import pytest
from jinja2 import TemplateError

from fotobox_backend.listing import ListingRenderer


def test_render_lists_every_file() -> None:
    html = ListingRenderer().render("AB12CD", ["a.jpg", "notes.txt"]).decode("utf-8")

    assert "Session AB12CD" in html
    assert 'href="a.jpg"' in html
    assert 'src="a.jpg?thumbnail=true"' in html
    assert "notes.txt" in html
    assert 'href="AB12CD.zip"' in html


def test_render_escapes_filenames() -> None:
    html = ListingRenderer().render("AB12CD", ["<b>.jpg"]).decode("utf-8")

    assert "<b>.jpg" not in html
    assert "&lt;b&gt;.jpg" in html


def test_render_empty_session() -> None:
    html = ListingRenderer().render("AB12CD", []).decode("utf-8")

    assert "no photos" in html


def test_missing_template_raises(tmp_path: Path) -> None:
    with pytest.raises(TemplateError):
        ListingRenderer(templates_dir=tmp_path).render("AB12CD", [])

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from jinja2 import Environment, FileSystemLoader, select_autoescape


TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
SESSION_LIST_TEMPLATE = "session_list.html"


class ListingRenderer:
    """Renders the HTML page for one session. Built once per app."""

    def __init__(self, templates_dir: Path = TEMPLATES_DIR) -> None:
        self.env = Environment(
            loader=FileSystemLoader(str(templates_dir)),
            autoescape=select_autoescape(["html", "xml"]),
        )

    def render(self, session_id: str, filenames: Sequence[str]) -> bytes:
        template = self.env.get_template(SESSION_LIST_TEMPLATE)
        html = template.render(session_id=session_id, files=list(filenames))
        return html.encode("utf-8")

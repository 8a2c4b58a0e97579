from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path
from typing import Iterable, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import Response

from fotobox_backend.app_logging import configure_logging
from fotobox_backend.config import GalleryConfig, load_config
from fotobox_backend.delivery import NOT_FOUND_DETAIL, ContentDispatcher
from fotobox_backend.listing import ListingRenderer
from fotobox_backend.metrics import RequestMetrics
from fotobox_backend.routing import resolve_picture_path
from fotobox_backend.storage import SessionStore


logger = logging.getLogger("fotobox_backend.server")

PICTURES_ROUTE_LABEL = "/pictures/*"


def create_app(config: Optional[GalleryConfig] = None) -> FastAPI:
    """Build the gallery app around one immutable config."""
    config = config or load_config()

    # "/pictures" must 404 rather than bounce to "/pictures/".
    app = FastAPI(title="Fotobox Gallery", redirect_slashes=False)
    app.state.config = config
    app.state.dispatcher = ContentDispatcher(
        config=config,
        store=SessionStore(root=config.data_dir),
        renderer=ListingRenderer(),
    )
    app.state.metrics = RequestMetrics()

    @app.middleware("http")
    async def _record_request_duration(request: Request, call_next):
        # Only picture requests are timed, all under one route label.
        if not request.scope["path"].startswith("/pictures/"):
            return await call_next(request)
        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            request.app.state.metrics.observe(
                PICTURES_ROUTE_LABEL,
                status_code,
                request.method,
                time.perf_counter() - started,
            )

    @app.get("/metrics")
    async def metrics(request: Request) -> Response:
        body, content_type = request.app.state.metrics.exposition()
        return Response(content=body, headers={"Content-Type": content_type})

    @app.get("/.well-known/ready")
    async def ready() -> Response:
        return Response(status_code=200)

    @app.get("/pictures/{subpath:path}")
    def pictures(subpath: str, request: Request) -> Response:
        """Session listing, archive download or single image, picked from the path.

        Declared sync so filesystem and Pillow work runs in the threadpool.
        """
        state_config: GalleryConfig = request.app.state.config
        resolved = resolve_picture_path(
            # The decoded route parameter; request.url re-splits on "?" and "#".
            f"/pictures/{subpath}",
            request.query_params,
            uppercase_sessions=state_config.uppercase_sessions,
        )
        if resolved is None:
            raise HTTPException(status_code=404, detail=NOT_FOUND_DETAIL)
        dispatcher: ContentDispatcher = request.app.state.dispatcher
        return dispatcher.dispatch(resolved)

    return app


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Serve fotobox photo sessions over HTTP.")
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="The data directory to render photos from (default: $FOTOBOX_DATA_DIR or /data)",
    )
    parser.add_argument(
        "--thumbnail.width",
        dest="thumbnail_width",
        type=int,
        default=None,
        help="Thumbnail width for session preview (default: 400)",
    )
    parser.add_argument("--host", default=None, help="Host to bind (default: $HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, default=None, help="Port to listen on (default: $PORT or 8080)")
    return parser.parse_args(list(argv) if argv is not None else None)


configure_logging()
app = create_app()


if __name__ == "__main__":
    import uvicorn

    args = parse_args()
    config = load_config(
        data_dir=args.data_dir,
        thumbnail_width=args.thumbnail_width,
        host=args.host,
        port=args.port,
    )
    logger.info("listening on %s:%d, serving %s", config.host, config.port, config.data_dir)
    uvicorn.run(create_app(config), host=config.host, port=config.port, reload=False)

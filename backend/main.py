"""ogcard FastAPI backend: Open Graph preview cards as PNG."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import PlainTextResponse, Response
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import config
from extractor import PageFetchError, extract_ogp, fetch_page
from fonts import FontLoadError, load_font
from layout import build_layout
from raster import rasterize
from render import ImageFetchError, RenderError, render_svg, resolve_images
from segmenter import Segmenter, load_segmenter

logging.basicConfig(level=config["log_level"], format="%(asctime)s %(levelname)s %(message)s")
log = logging.getLogger(__name__)

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.segmenter = load_segmenter()
    yield


app = FastAPI(title="ogcard", version="1.0", lifespan=lifespan)


@app.exception_handler(StarletteHTTPException)
async def plain_method_not_allowed(request: Request, exc: StarletteHTTPException):
    # methods outside ALL_METHODS never reach the route
    if exc.status_code == 405:
        return PlainTextResponse("Method Not Allowed", status_code=405)
    return await http_exception_handler(request, exc)


# ── Dependencies ─────────────────────────────────────────────

def get_segmenter(request: Request) -> Segmenter:
    return request.app.state.segmenter


async def get_http_client() -> AsyncIterator[httpx.AsyncClient]:
    """One client per request; closed when the response is done."""
    async with httpx.AsyncClient(timeout=config["fetch_timeout"]) as client:
        yield client


def _text(body: str, status: int) -> PlainTextResponse:
    return PlainTextResponse(body, status_code=status)


# ── Preview ──────────────────────────────────────────────────

@app.api_route("/{path:path}", methods=ALL_METHODS)
async def preview(
    request: Request,
    client: httpx.AsyncClient = Depends(get_http_client),
    segmenter: Segmenter = Depends(get_segmenter),
):
    """Fetch the page named by ?url=, read its OG tags and render a card."""
    if request.method != "GET":
        return _text("Method Not Allowed", 405)
    if request.url.path != "/":
        return _text("Not Found", 404)

    values = request.query_params.getlist("url")
    if not values:
        return _text("Missing URL parameter", 400)
    target = values[0]
    log.info("Preview requested for %s", target)

    try:
        html = await fetch_page(client, target, config["user_agent"])
    except PageFetchError:
        return _text("Failed to fetch URL", 500)

    ogp = await run_in_threadpool(extract_ogp, html)
    if ogp.image == "":
        return _text("No image found", 404)

    try:
        font_data = await load_font(client, config["font_css_url"])
    except FontLoadError as e:
        log.error("Font load failed: %s", e)
        return _text("Failed to load font", 502)

    tree = await run_in_threadpool(build_layout, ogp.title, ogp.description, ogp.image, segmenter)
    try:
        images = await resolve_images(client, tree)
    except ImageFetchError as e:
        log.error("Image fetch failed: %s", e)
        return _text("Failed to fetch image", 502)

    try:
        svg = await run_in_threadpool(render_svg, tree, font_data, images)
        png = await run_in_threadpool(rasterize, svg)
    except RenderError as e:
        log.error("Render failed for %s: %s", target, e)
        return _text("Failed to render image", 500)

    return Response(content=png, media_type="image/png")


if __name__ == "__main__":
    log.info("Starting ogcard backend on port %d", config["backend_port"])
    uvicorn.run(app, host=config["backend_host"], port=config["backend_port"])

"""Shared fixtures for ogcard tests."""

import base64
import sys
from io import BytesIO
from pathlib import Path

import httpx
import pytest
from fontTools.fontBuilder import FontBuilder
from fontTools.pens.ttGlyphPen import TTGlyphPen

# Add backend to path so we can import modules
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

ICON_PNG = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)

FONT_FILE_URL = "https://fonts.gstatic.com/s/notosansjp/test.ttf"
FONT_CSS = (
    "@font-face {\n"
    "  font-family: 'Noto Sans JP';\n"
    "  font-style: normal;\n"
    "  font-weight: 700;\n"
    f"  src: url({FONT_FILE_URL}) format('truetype');\n"
    "}\n"
)

_FONT_CHARS = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789.,!?-"


def _box_glyph():
    pen = TTGlyphPen(None)
    pen.moveTo((50, 0))
    pen.lineTo((50, 700))
    pen.lineTo((450, 700))
    pen.lineTo((450, 0))
    pen.closePath()
    return pen.glyph()


def build_test_font() -> bytes:
    """A 1000 upm TrueType font: every glyph is a 500-unit wide box, space is 250."""
    names = {ord(c): f"uni{ord(c):04X}" for c in _FONT_CHARS}
    names[ord(" ")] = "space"
    glyph_order = [".notdef"] + sorted(set(names.values()))

    fb = FontBuilder(1000, isTTF=True)
    fb.setupGlyphOrder(glyph_order)
    fb.setupCharacterMap(names)
    glyphs = {name: _box_glyph() for name in glyph_order}
    glyphs["space"] = TTGlyphPen(None).glyph()
    fb.setupGlyf(glyphs)
    metrics = {name: (500, 50) for name in glyph_order}
    metrics["space"] = (250, 0)
    fb.setupHorizontalMetrics(metrics)
    fb.setupHorizontalHeader(ascent=800, descent=-200)
    fb.setupNameTable({"familyName": "Box Test", "styleName": "Bold"})
    fb.setupOS2(sTypoAscender=800, sTypoDescender=-200, usWinAscent=800, usWinDescent=200)
    fb.setupPost()

    buf = BytesIO()
    fb.save(buf)
    return buf.getvalue()


def page_html(title="T", description="D", image="https://example.com/icon.png", extra=""):
    tags = []
    if title is not None:
        tags.append(f'<meta property="og:title" content="{title}">')
    if description is not None:
        tags.append(f'<meta property="og:description" content="{description}">')
    if image is not None:
        tags.append(f'<meta property="og:image" content="{image}">')
    return f"<html><head>{''.join(tags)}{extra}</head><body>hi</body></html>"


def mock_transport(routes: dict, calls: list | None = None) -> httpx.MockTransport:
    """Serve ``routes`` (url -> (status, headers, body) or exception); unknown urls 404.

    Requested urls are appended to ``calls`` when given.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(str(request.url))
        route = routes.get(str(request.url))
        if route is None:
            return httpx.Response(404, text="not found")
        if isinstance(route, Exception):
            raise route
        status, headers, body = route
        return httpx.Response(status, headers=headers, content=body)

    return httpx.MockTransport(handler)


@pytest.fixture(scope="session")
def font_data():
    return build_test_font()


@pytest.fixture
def upstream(font_data):
    """Default upstream: a font service that works and a reachable icon."""
    from config import config

    return {
        config["font_css_url"]: (200, {"content-type": "text/css"}, FONT_CSS.encode()),
        FONT_FILE_URL: (200, {"content-type": "font/ttf"}, font_data),
        "https://example.com/icon.png": (200, {"content-type": "image/png"}, ICON_PNG),
    }


@pytest.fixture
def upstream_calls():
    return []


@pytest.fixture
def app_client(upstream, upstream_calls):
    """FastAPI TestClient whose outbound HTTP goes to ``upstream``."""
    from fastapi.testclient import TestClient

    import main

    async def _client():
        async with httpx.AsyncClient(transport=mock_transport(upstream, upstream_calls)) as client:
            yield client

    main.app.dependency_overrides[main.get_http_client] = _client
    with TestClient(main.app) as client:
        yield client, upstream
    main.app.dependency_overrides.clear()

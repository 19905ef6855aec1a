"""Font resource loading from the Google Fonts CSS API."""

import logging
import re

import httpx

log = logging.getLogger(__name__)

_FONT_SRC = re.compile(r"src: url\((.+?)\) format\('(opentype|truetype)'\)")


class FontLoadError(Exception):
    """The font stylesheet or font file could not be loaded."""


def parse_font_url(css: str) -> str:
    """Return the first opentype/truetype source URL declared in a stylesheet."""
    match = _FONT_SRC.search(css)
    if not match:
        raise FontLoadError("Failed to parse font data")
    return match.group(1)


async def load_font(client: httpx.AsyncClient, css_url: str) -> bytes:
    """Fetch the stylesheet, then the font file it points at.

    Nothing is cached: every call hits the font service again.
    """
    try:
        css_resp = await client.get(css_url)
    except httpx.HTTPError as e:
        raise FontLoadError(f"Failed to load font data: {e}") from e
    if not css_resp.is_success:
        raise FontLoadError(f"Failed to load font data: HTTP {css_resp.status_code}")

    font_url = parse_font_url(css_resp.text)
    log.debug("Font source: %s", font_url)

    try:
        font_resp = await client.get(font_url)
        font_resp.raise_for_status()
    except httpx.HTTPError as e:
        raise FontLoadError(f"Failed to fetch font file {font_url}: {e}") from e
    return font_resp.content

"""Target page fetch and Open Graph extraction using httpx + BeautifulSoup."""

import logging

import httpx
from bs4 import BeautifulSoup

from models import OGPRecord

log = logging.getLogger(__name__)

OG_SELECTOR = 'meta[property^="og:"]'

_FIELDS = {
    "og:title": "title",
    "og:description": "description",
    "og:image": "image",
}


class PageFetchError(Exception):
    """The target page could not be fetched (network error or non-2xx)."""


async def fetch_page(client: httpx.AsyncClient, url: str, user_agent: str | None = None) -> str:
    """GET the target page and return its decoded body."""
    headers = {"User-Agent": user_agent} if user_agent else {}
    try:
        resp = await client.get(url, headers=headers, follow_redirects=True)
        resp.raise_for_status()
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        log.warning("Failed to fetch %s: %s", url, e)
        raise PageFetchError(url) from e
    return resp.text


def extract_ogp(html: str) -> OGPRecord:
    """Collect og:title, og:description and og:image from an HTML document.

    The whole document is parsed before any tag is read. A later tag wins
    over an earlier one with the same property.
    """
    soup = BeautifulSoup(html, "html.parser")
    values: dict[str, str] = {}
    for tag in soup.select(OG_SELECTOR):
        prop = tag.get("property")
        content = tag.get("content") or ""
        field = _FIELDS.get(prop)
        if field is None:
            log.info("ignore property: %s %s", prop, content)
            continue
        values[field] = content
    return OGPRecord(**values)

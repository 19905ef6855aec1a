"""Layout tree to SVG rendering with fontTools glyph outlines."""

import base64
import html
import logging
import re
from dataclasses import dataclass, field
from io import BytesIO

import httpx
from fontTools.pens.svgPathPen import SVGPathPen
from fontTools.ttLib import TTFont

from models import BoxNode, ImageNode, LayoutNode, TextNode

log = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")
_TOKEN = re.compile(r" |[^ ]+")


class RenderError(Exception):
    """Layout, SVG generation or rasterization failed."""


class ImageFetchError(Exception):
    """An image referenced by the layout could not be fetched."""


def _fmt(value: float) -> str:
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


class FontFace:
    """Metrics and outlines for one font file."""

    def __init__(self, data: bytes):
        self._font = TTFont(BytesIO(data), lazy=True)
        self._glyphs = self._font.getGlyphSet()
        self._cmap = self._font.getBestCmap() or {}
        self._notdef = self._font.getGlyphOrder()[0]
        self.units_per_em = self._font["head"].unitsPerEm
        hhea = self._font["hhea"]
        self.ascent = hhea.ascent
        self.descent = hhea.descent
        self.line_gap = hhea.lineGap
        self._paths: dict[str, str] = {}

    def glyph_name(self, char: str) -> str:
        return self._cmap.get(ord(char), self._notdef)

    def scale(self, size: float) -> float:
        return size / self.units_per_em

    def line_height(self, size: float) -> float:
        return (self.ascent - self.descent + self.line_gap) * self.scale(size)

    def baseline(self, size: float) -> float:
        """Distance from the top of a line box to its baseline."""
        return (self.line_gap / 2 + self.ascent) * self.scale(size)

    def advance(self, name: str, size: float) -> float:
        return self._glyphs[name].width * self.scale(size)

    def text_width(self, text: str, size: float) -> float:
        return sum(self.advance(self.glyph_name(ch), size) for ch in text)

    def outline(self, name: str) -> str:
        if name not in self._paths:
            pen = SVGPathPen(self._glyphs)
            self._glyphs[name].draw(pen)
            self._paths[name] = pen.getCommands()
        return self._paths[name]


# ── Text wrapping ────────────────────────────────────────────

def _break_chars(face: FontFace, word: str, size: float, max_width: float) -> list[str]:
    pieces = []
    current = ""
    for ch in word:
        if current and face.text_width(current + ch, size) > max_width:
            pieces.append(current)
            current = ""
        current += ch
    pieces.append(current)
    return pieces


def wrap_text(face: FontFace, text: str, size: float, max_width: float) -> list[str]:
    """Greedy line breaking with collapsed whitespace.

    Lines break at spaces; a word wider than the line is broken between
    characters. Spaces at the start of a line and at a break point are dropped.
    """
    lines: list[str] = []
    current = ""
    for token in _TOKEN.findall(_WHITESPACE.sub(" ", text)):
        if token == " ":
            if current:
                current += token
            continue
        candidate = current + token
        if current.strip() and face.text_width(candidate, size) > max_width:
            lines.append(current.rstrip())
            candidate = token
        if face.text_width(candidate, size) > max_width:
            pieces = _break_chars(face, candidate, size, max_width)
            lines.extend(pieces[:-1])
            candidate = pieces[-1]
        current = candidate
    if current:
        lines.append(current)
    return lines


# ── Layout ───────────────────────────────────────────────────

@dataclass
class _Frame:
    node: LayoutNode
    width: float
    height: float
    children: list["_Frame"] = field(default_factory=list)
    lines: list[str] = field(default_factory=list)


def _flow(frames: list[_Frame], max_width: float) -> list[list[_Frame]]:
    rows: list[list[_Frame]] = []
    row: list[_Frame] = []
    used = 0.0
    for frame in frames:
        outer = frame.width + frame.node.margin_right
        if row and used + outer > max_width:
            rows.append(row)
            row, used = [], 0.0
        row.append(frame)
        used += outer
    if row:
        rows.append(row)
    return rows


def _row_width(row: list[_Frame]) -> float:
    return sum(f.width + f.node.margin_right for f in row)


def _measure(node: LayoutNode, face: FontFace, max_width: float) -> _Frame:
    if isinstance(node, TextNode):
        lines = wrap_text(face, node.text, node.font_size, max_width)
        width = max((face.text_width(line, node.font_size) for line in lines), default=0.0)
        return _Frame(node, width, len(lines) * face.line_height(node.font_size), lines=lines)

    if isinstance(node, ImageNode):
        return _Frame(node, node.width, node.height)

    top, right, bottom, left = node.padding
    outer = node.width if node.width is not None else max_width
    inner = max(outer - left - right, 0.0)

    children = []
    if node.direction == "column":
        children = [_measure(child, face, inner) for child in node.children]
        content_w = max((f.width + f.node.margin_right for f in children), default=0.0)
        content_h = sum(f.height for f in children)
    elif node.wrap:
        children = [_measure(child, face, inner) for child in node.children]
        rows = _flow(children, inner)
        content_w = max((_row_width(row) for row in rows), default=0.0)
        content_h = sum(max(f.height for f in row) for row in rows)
    else:
        remaining = inner
        for child in node.children:
            frame = _measure(child, face, max(remaining, 0.0))
            remaining -= frame.width + child.margin_right
            children.append(frame)
        content_w = _row_width(children)
        content_h = max((f.height for f in children), default=0.0)

    width = node.width if node.width is not None else content_w + left + right
    height = node.height if node.height is not None else content_h + top + bottom
    return _Frame(node, width, height, children=children)


def _offset(free: float, mode: str) -> float:
    return free / 2 if mode == "center" else 0.0


def _place(frame: _Frame, x: float, y: float, out: list[tuple]) -> None:
    node = frame.node
    if isinstance(node, TextNode):
        out.append(("text", x, y, node.font_size, frame.lines))
        return
    if isinstance(node, ImageNode):
        out.append(("image", x, y, frame.width, frame.height, node.src))
        return

    top, right, bottom, left = node.padding
    inner_x, inner_y = x + left, y + top
    inner_w = frame.width - left - right
    inner_h = frame.height - top - bottom

    if node.direction == "column":
        total = sum(f.height for f in frame.children)
        cy = inner_y + _offset(inner_h - total, node.justify_content)
        for child in frame.children:
            _place(child, inner_x + _offset(inner_w - child.width, node.align_items), cy, out)
            cy += child.height
        return

    rows = _flow(frame.children, inner_w) if node.wrap else [frame.children]
    cy = inner_y
    for row in rows:
        row_h = max((f.height for f in row), default=0.0)
        cross = row_h if node.wrap else inner_h
        cx = inner_x + _offset(inner_w - _row_width(row), node.justify_content)
        for child in row:
            _place(child, cx, cy + _offset(cross - child.height, node.align_items), out)
            cx += child.width + child.node.margin_right
        cy += row_h


# ── SVG output ───────────────────────────────────────────────

def _collect_images(node: LayoutNode) -> list[str]:
    if isinstance(node, ImageNode):
        return [node.src]
    if isinstance(node, BoxNode):
        return [src for child in node.children for src in _collect_images(child)]
    return []


async def resolve_images(client: httpx.AsyncClient, tree: LayoutNode) -> dict[str, str]:
    """Fetch every image in the tree and return src -> data URI."""
    images: dict[str, str] = {}
    for src in _collect_images(tree):
        if src in images:
            continue
        try:
            resp = await client.get(src, follow_redirects=True)
            resp.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            log.warning("Failed to fetch image %s: %s", src, e)
            raise ImageFetchError(src) from e
        content_type = resp.headers.get("content-type", "application/octet-stream").split(";")[0].strip()
        images[src] = f"data:{content_type};base64,{base64.b64encode(resp.content).decode('ascii')}"
    return images


def render_svg(tree: BoxNode, font_data: bytes, images: dict[str, str]) -> str:
    """Lay out the tree and emit an SVG document the size of the root node."""
    try:
        face = FontFace(font_data)
        root = _measure(tree, face, tree.width or 0.0)
        ops: list[tuple] = []
        _place(root, 0.0, 0.0, ops)

        glyph_ids: dict[str, str] = {}
        defs: list[str] = []
        body: list[str] = []
        for op in ops:
            if op[0] == "image":
                _, x, y, w, h, src = op
                if src not in images:
                    raise RenderError(f"image not resolved: {src}")
                body.append(
                    f'<image x="{_fmt(x)}" y="{_fmt(y)}" width="{_fmt(w)}" height="{_fmt(h)}" '
                    f'preserveAspectRatio="none" xlink:href="{html.escape(images[src])}"/>'
                )
                continue

            _, x, y, size, lines = op
            scale = _fmt(face.scale(size))
            for i, line in enumerate(lines):
                baseline = y + i * face.line_height(size) + face.baseline(size)
                pen_x = x
                for ch in line:
                    name = face.glyph_name(ch)
                    outline = face.outline(name)
                    if outline:
                        if name not in glyph_ids:
                            glyph_ids[name] = f"g{len(glyph_ids)}"
                            defs.append(f'<path id="{glyph_ids[name]}" d="{outline}"/>')
                        body.append(
                            f'<use xlink:href="#{glyph_ids[name]}" '
                            f'transform="translate({_fmt(pen_x)} {_fmt(baseline)}) scale({scale} -{scale})"/>'
                        )
                    pen_x += face.advance(name, size)
    except RenderError:
        raise
    except Exception as e:
        raise RenderError(f"Failed to render layout: {e}") from e

    width, height = _fmt(root.width), _fmt(root.height)
    return (
        f'<svg xmlns="http://www.w3.org/2000/svg" xmlns:xlink="http://www.w3.org/1999/xlink" '
        f'width="{width}" height="{height}" viewBox="0 0 {width} {height}">'
        f'<defs>{"".join(defs)}</defs><g fill="#000000">{"".join(body)}</g></svg>'
    )

"""SVG to PNG rasterization using CairoSVG."""

import cairosvg

from render import RenderError


def rasterize(svg: str) -> bytes:
    """Render the SVG at its own width and height and return PNG bytes."""
    try:
        return cairosvg.svg2png(bytestring=svg.encode("utf-8"))
    except Exception as e:
        raise RenderError(f"Failed to rasterize: {e}") from e

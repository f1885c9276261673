"""Rasterize a MapSurface into a PIL image."""

import io
import logging

from PIL import Image

log = logging.getLogger(__name__)

BACKGROUND = (232, 228, 218)


def render_surface(surface, background: tuple[int, int, int] = BACKGROUND) -> Image.Image:
    """Paint every visible element onto a new RGB image.

    Managed content goes first in attach order; unmanaged overlays go on top.
    """
    canvas = Image.new("RGB", (int(surface.width), int(surface.height)), background)
    off = surface.managed_offset
    painted = 0
    for b in sorted(surface.bindings(), key=lambda b: not b.managed):
        if not b.element.visible:
            continue
        origin = (off.x, off.y) if b.managed else (0.0, 0.0)
        b.element.paint(canvas, origin)
        painted += 1
    log.debug("rendered %dx%d surface, %d element(s)", surface.width, surface.height, painted)
    return canvas


def render_png(surface, **kwargs) -> bytes:
    buf = io.BytesIO()
    render_surface(surface, **kwargs).save(buf, format="PNG")
    return buf.getvalue()

"""
Card face rasterization using Pillow.

CardFaceSurface draws a VisualFace at a fixed scale factor (reference pixels
times scale). SurfaceRasterizer is the capability the export pipeline uses to
capture staged surfaces one at a time, off the event loop.
"""
from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Callable, Dict, List, Tuple

from PIL import Image, ImageChops, ImageDraw, ImageOps

from domain.errors import CaptureFailure
from domain.models import FaceElement, RasterImage, VisualFace
from services.fonts import CardFonts
from services.image_refs import ImageRefLoader

if TYPE_CHECKING:
    from services.staging import StagingArea

logger = logging.getLogger(__name__)

LINE_HEIGHT_FACTOR = 1.35
PHOTO_BACKDROP = "#e2e8f0"
FALLBACK_GLYPH_COLOR = "#9ca3af"


class RenderableSurface:
    """Anything that can turn itself into a RasterImage at a given scale."""

    def rasterize(self, scale: float) -> RasterImage:
        raise NotImplementedError


class CardFaceSurface(RenderableSurface):
    def __init__(self, face: VisualFace, fonts: CardFonts, images: ImageRefLoader):
        self.face = face
        self.fonts = fonts
        self.images = images

    @property
    def key(self) -> str:
        return self.face.surface_key

    def rasterize(self, scale: float) -> RasterImage:
        face = self.face
        size = (int(round(face.width_px * scale)), int(round(face.height_px * scale)))
        canvas = Image.new("RGBA", size, (255, 255, 255, 0))
        for element in face.elements:
            drawer = _ELEMENT_DRAWERS.get(element.kind)
            if drawer is None:
                raise ValueError(f"Unknown face element kind: {element.kind}")
            drawer(self, canvas, element, scale)
        logger.debug("[rasterizer] %s -> %sx%s px (scale %.1f)", self.key, size[0], size[1], scale)
        return RasterImage(image=canvas, scale=scale, width_mm=face.width_mm, height_mm=face.height_mm)


class SurfaceRasterizer:
    """Captures staged surfaces; every failure surfaces as CaptureFailure."""

    async def rasterize(self, staging: "StagingArea", key: str, scale: float) -> RasterImage:
        surface = staging.get(key)
        if surface is None:
            raise CaptureFailure(f"Surface {key} not found in staging area", surface_key=key)
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, surface.rasterize, scale)
        except CaptureFailure:
            raise
        except Exception as exc:
            raise CaptureFailure(f"Failed to rasterize {key}: {exc}", surface_key=key) from exc


# ============================================
# Text layout
# ============================================

def wrap_text(text: str, font, max_width: float, keep_last_word: bool = False) -> List[str]:
    """
    Greedy word wrap.

    Words wider than max_width are broken by character. With keep_last_word,
    the final word of a multi-word text is never broken: it moves to its own
    line whole instead.
    """
    words = (text or "").split()
    if not words:
        return []
    atomic_last = keep_last_word and len(words) > 1
    lines: List[str] = []
    current = ""
    for index, word in enumerate(words):
        candidate = f"{current} {word}" if current else word
        if font.getlength(candidate) <= max_width:
            current = candidate
            continue
        if current:
            lines.append(current)
            current = ""
        is_last = index == len(words) - 1
        if font.getlength(word) <= max_width or (atomic_last and is_last):
            current = word
        else:
            pieces = _break_word(word, font, max_width)
            lines.extend(pieces[:-1])
            current = pieces[-1]
    if current:
        lines.append(current)
    return lines


def _break_word(word: str, font, max_width: float) -> List[str]:
    pieces: List[str] = []
    current = ""
    for char in word:
        if current and font.getlength(current + char) > max_width:
            pieces.append(current)
            current = char
        else:
            current += char
    pieces.append(current)
    return pieces


# ============================================
# Element drawers
# ============================================

def _box(element: FaceElement, scale: float) -> Tuple[int, int, int, int]:
    x0 = int(round(element.x_px * scale))
    y0 = int(round(element.y_px * scale))
    x1 = int(round((element.x_px + element.width_px) * scale))
    y1 = int(round((element.y_px + element.height_px) * scale))
    return x0, y0, max(x0 + 1, x1), max(y0 + 1, y1)


def _draw_fill(surface: CardFaceSurface, canvas: Image.Image, element: FaceElement, scale: float) -> None:
    x0, y0, x1, y1 = _box(element, scale)
    layer = Image.new("RGBA", (x1 - x0, y1 - y0), element.color or (0, 0, 0, 0))
    canvas.alpha_composite(layer, dest=(x0, y0))


def _draw_image(surface: CardFaceSurface, canvas: Image.Image, element: FaceElement, scale: float) -> None:
    x0, y0, x1, y1 = _box(element, scale)
    size = (x1 - x0, y1 - y0)
    source = surface.images.load(element.image_ref)
    if source is None:
        if element.fallback:
            _ELEMENT_DRAWERS[element.fallback](surface, canvas, element, scale)
        return

    if element.fit == "contain":
        fitted = ImageOps.contain(source, size, method=Image.Resampling.LANCZOS)
        tile = Image.new("RGBA", size, (0, 0, 0, 0))
        tile.paste(fitted, ((size[0] - fitted.width) // 2, (size[1] - fitted.height) // 2))
    else:
        tile = ImageOps.fit(source, size, method=Image.Resampling.LANCZOS)

    if element.radius_px:
        tile = _round_tile(tile, element.radius_px * scale)
    canvas.alpha_composite(tile, dest=(x0, y0))
    _draw_border(canvas, element, scale)


def _round_tile(tile: Image.Image, radius: float) -> Image.Image:
    mask = Image.new("L", tile.size, 0)
    ImageDraw.Draw(mask).rounded_rectangle((0, 0, tile.width - 1, tile.height - 1), radius=radius, fill=255)
    rounded = tile.copy()
    rounded.putalpha(ImageChops.multiply(tile.getchannel("A"), mask))
    return rounded


def _draw_border(canvas: Image.Image, element: FaceElement, scale: float) -> None:
    if not element.border_px or not element.border_color:
        return
    x0, y0, x1, y1 = _box(element, scale)
    ImageDraw.Draw(canvas).rounded_rectangle(
        (x0, y0, x1 - 1, y1 - 1),
        radius=element.radius_px * scale,
        outline=element.border_color,
        width=max(1, int(round(element.border_px * scale))),
    )


def _draw_silhouette(surface: CardFaceSurface, canvas: Image.Image, element: FaceElement, scale: float) -> None:
    """Generic person glyph used when a record has no usable photo."""
    x0, y0, x1, y1 = _box(element, scale)
    w, h = x1 - x0, y1 - y0
    tile = Image.new("RGBA", (w, h), PHOTO_BACKDROP)
    draw = ImageDraw.Draw(tile)
    stroke = max(1, int(round(1.5 * scale)))
    head_r = min(w, h) * 0.17
    cx, cy = w / 2, h * 0.36
    draw.ellipse((cx - head_r, cy - head_r, cx + head_r, cy + head_r), outline=FALLBACK_GLYPH_COLOR, width=stroke)
    draw.ellipse((w * 0.18, h * 0.62, w * 0.82, h * 1.25), outline=FALLBACK_GLYPH_COLOR, width=stroke)
    if element.radius_px:
        tile = _round_tile(tile, element.radius_px * scale)
    canvas.alpha_composite(tile, dest=(x0, y0))
    _draw_border(canvas, element, scale)


def _draw_logo_glyph(surface: CardFaceSurface, canvas: Image.Image, element: FaceElement, scale: float) -> None:
    """Outline of a building, stands in for a missing school logo."""
    x0, y0, x1, y1 = _box(element, scale)
    w, h = x1 - x0, y1 - y0
    draw = ImageDraw.Draw(canvas)
    stroke = max(1, int(round(1.5 * scale)))
    roof_top = (x0 + w * 0.5, y0 + h * 0.12)
    draw.line([(x0 + w * 0.12, y0 + h * 0.38), roof_top, (x0 + w * 0.88, y0 + h * 0.38)], fill=FALLBACK_GLYPH_COLOR, width=stroke)
    for frac in (0.3, 0.5, 0.7):
        x = x0 + w * frac
        draw.line([(x, y0 + h * 0.5), (x, y0 + h * 0.85)], fill=FALLBACK_GLYPH_COLOR, width=stroke)
    draw.line([(x0 + w * 0.12, y0 + h * 0.88), (x0 + w * 0.88, y0 + h * 0.88)], fill=FALLBACK_GLYPH_COLOR, width=stroke)


def _draw_text(surface: CardFaceSurface, canvas: Image.Image, element: FaceElement, scale: float) -> None:
    if not element.text:
        return
    x0, y0, x1, y1 = _box(element, scale)
    size = (element.font_size or 12) * scale
    font = surface.fonts.font(size, bold=element.bold)
    lines = wrap_text(element.text, font, x1 - x0, keep_last_word=element.wrap == "keep_last_word")
    line_height = size * LINE_HEIGHT_FACTOR
    max_lines = max(1, int((y1 - y0) // line_height))
    draw = ImageDraw.Draw(canvas)
    for index, line in enumerate(lines[:max_lines]):
        x = x0
        if element.align == "center":
            x = x0 + ((x1 - x0) - font.getlength(line)) / 2
        elif element.align == "right":
            x = x1 - font.getlength(line)
        draw.text((x, y0 + index * line_height), line, font=font, fill=element.color or "#000000")


Drawer = Callable[[CardFaceSurface, Image.Image, FaceElement, float], None]

_ELEMENT_DRAWERS: Dict[str, Drawer] = {
    "fill": _draw_fill,
    "image": _draw_image,
    "text": _draw_text,
    "silhouette": _draw_silhouette,
    "logo_glyph": _draw_logo_glyph,
}

"""
Corner-clip compositor.

Clips a rasterized face to a rounded rectangle so the printed image matches
the on-screen card corners. The radius is given in reference pixels and
multiplied by the raster scale factor.
"""
import logging
from typing import List, Tuple

from PIL import Image, ImageChops, ImageDraw

from domain.models import CompositedImage, RasterImage

logger = logging.getLogger(__name__)

# Mask is drawn this many times larger, then downsampled for smooth edges.
MASK_UPSCALE_FACTOR = 4
CURVE_STEPS = 24

Point = Tuple[float, float]


def _quad_curve(p0: Point, ctrl: Point, p1: Point, steps: int = CURVE_STEPS) -> List[Point]:
    """Points along a quadratic Bezier from p0 to p1 (p0 excluded)."""
    points = []
    for i in range(1, steps + 1):
        t = i / steps
        u = 1 - t
        x = u * u * p0[0] + 2 * u * t * ctrl[0] + t * t * p1[0]
        y = u * u * p0[1] + 2 * u * t * ctrl[1] + t * t * p1[1]
        points.append((x, y))
    return points


def rounded_rect_path(width: float, height: float, radius: float) -> List[Point]:
    """
    Closed outline of a rounded rectangle: four straight edges joined by
    quadratic corner curves whose control points sit on the rectangle corners.
    """
    r = max(0.0, min(radius, width / 2, height / 2))
    path: List[Point] = [(r, 0)]
    path.append((width - r, 0))
    path.extend(_quad_curve((width - r, 0), (width, 0), (width, r)))
    path.append((width, height - r))
    path.extend(_quad_curve((width, height - r), (width, height), (width - r, height)))
    path.append((r, height))
    path.extend(_quad_curve((r, height), (0, height), (0, height - r)))
    path.append((0, r))
    path.extend(_quad_curve((0, r), (0, 0), (r, 0)))
    return path


def build_clip_mask(size: Tuple[int, int], radius: float) -> Image.Image:
    """8-bit mask: 255 inside the rounded rectangle, 0 outside."""
    factor = MASK_UPSCALE_FACTOR
    big = Image.new("L", (size[0] * factor, size[1] * factor), 0)
    path = rounded_rect_path(big.width, big.height, radius * factor)
    ImageDraw.Draw(big).polygon(path, fill=255)
    return big.resize(size, resample=Image.Resampling.LANCZOS)


def clip_rounded_corners(raster: RasterImage, nominal_radius_px: float, scale: float) -> CompositedImage:
    """
    Apply the rounded-corner clip to a raster.

    Args:
        raster: Rasterized face
        nominal_radius_px: Corner radius on the reference (unscaled) card
        scale: Raster scale factor the face was captured at

    Returns:
        CompositedImage at the same pixel size, transparent outside the
        rounded rectangle. If no drawing surface can be created the raster is
        returned unclipped (clip_radius_px is None).
    """
    radius = nominal_radius_px * scale
    try:
        source = raster.image.convert("RGBA")
        mask = build_clip_mask(source.size, radius)
    except (ValueError, OSError, MemoryError):
        logger.warning("[corner-clip] no drawing surface for %sx%s raster, leaving corners square",
                       raster.width_px, raster.height_px, exc_info=True)
        return CompositedImage(
            image=raster.image,
            scale=raster.scale,
            width_mm=raster.width_mm,
            height_mm=raster.height_mm,
            clip_radius_px=None,
        )

    clipped = source.copy()
    clipped.putalpha(ImageChops.multiply(source.getchannel("A"), mask))
    return CompositedImage(
        image=clipped,
        scale=raster.scale,
        width_mm=raster.width_mm,
        height_mm=raster.height_mm,
        clip_radius_px=radius,
    )

"""
Page layout engine.

Pure geometry for the printed sheet: one row per card pair (front left, back
right), rows spread so the column is vertically centered and the two columns
horizontally centered. Computed once per run and reused for every page.
"""
from typing import Tuple

from domain.models import (
    CARDS_PER_PAGE,
    ID1_HEIGHT_MM,
    ID1_WIDTH_MM,
    NOMINAL_CORNER_RADIUS_PX,
    PAPER_SIZES_MM,
    REFERENCE_CARD_WIDTH_PX,
    PageLayout,
    PaperSize,
)

# Corner radius as a share of card width (16px on a 384px card).
CORNER_RADIUS_FRACTION = NOMINAL_CORNER_RADIUS_PX / REFERENCE_CARD_WIDTH_PX


def paper_size_mm(paper: PaperSize) -> Tuple[float, float]:
    """Portrait (width, height) of a paper format in millimeters."""
    try:
        return PAPER_SIZES_MM[PaperSize(paper)]
    except (KeyError, ValueError):
        raise ValueError(f"Unsupported paper size: {paper}")


def border_radius_mm(card_width_mm: float, corner_radius_fraction: float = CORNER_RADIUS_FRACTION) -> float:
    """Printed corner radius matching the raster clip (same share of card width)."""
    return corner_radius_fraction * card_width_mm


def compute_page_layout(
    paper: PaperSize = PaperSize.A4,
    card_size_mm: Tuple[float, float] = (ID1_WIDTH_MM, ID1_HEIGHT_MM),
    capacity: int = CARDS_PER_PAGE,
    corner_radius_fraction: float = CORNER_RADIUS_FRACTION,
) -> PageLayout:
    """
    Compute the slot geometry for a page.

    Raises:
        ValueError: If capacity is not positive or the cards do not fit the paper
    """
    if capacity < 1:
        raise ValueError(f"Capacity must be positive, got {capacity}")
    page_w, page_h = paper_size_mm(paper)
    card_w, card_h = card_size_mm

    vertical_margin = (page_h - capacity * card_h) / (capacity + 1)
    horizontal_margin = (page_w - 2 * card_w) / 3
    if vertical_margin < 0 or horizontal_margin < 0:
        raise ValueError(
            f"{capacity} card pairs of {card_w}x{card_h}mm do not fit on {page_w}x{page_h}mm paper"
        )

    return PageLayout(
        page_width_mm=page_w,
        page_height_mm=page_h,
        card_width_mm=card_w,
        card_height_mm=card_h,
        capacity=capacity,
        vertical_margin_mm=vertical_margin,
        horizontal_margin_mm=horizontal_margin,
        border_radius_mm=border_radius_mm(card_w, corner_radius_fraction),
    )

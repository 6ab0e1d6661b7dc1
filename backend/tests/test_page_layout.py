import pytest

from domain.models import FaceKind, PaperSize
from services.page_layout import CORNER_RADIUS_FRACTION, compute_page_layout


def test_a4_margins_center_five_pairs():
    layout = compute_page_layout()
    assert layout.page_width_mm == 210.0
    assert layout.page_height_mm == 297.0
    assert layout.capacity == 5
    assert layout.vertical_margin_mm == pytest.approx((297 - 5 * 53.98) / 6)
    assert layout.horizontal_margin_mm == pytest.approx((210 - 2 * 85.6) / 3)
    # Last row leaves exactly one margin below it.
    last = layout.slot(4, FaceKind.FRONT)
    assert last.y_mm + last.height_mm + layout.vertical_margin_mm == pytest.approx(297.0)


def test_row_offsets_follow_margin_formula():
    layout = compute_page_layout()
    for row in range(5):
        expected = layout.vertical_margin_mm * (row + 1) + 53.98 * row
        assert layout.row_y_mm(row) == pytest.approx(expected)
        assert layout.slot(row, FaceKind.BACK).y_mm == pytest.approx(expected)


def test_front_and_back_columns():
    layout = compute_page_layout()
    front = layout.slot(0, FaceKind.FRONT)
    back = layout.slot(0, FaceKind.BACK)
    assert front.x_mm == pytest.approx(layout.horizontal_margin_mm)
    assert back.x_mm == pytest.approx(2 * layout.horizontal_margin_mm + 85.6)
    assert front.width_mm == back.width_mm == 85.6
    assert front.height_mm == back.height_mm == 53.98
    # Right margin equals left margin.
    assert 210 - (back.x_mm + back.width_mm) == pytest.approx(front.x_mm)


def test_border_radius_matches_reference_corner():
    layout = compute_page_layout()
    assert layout.border_radius_mm == pytest.approx(16 / 384 * 85.6)
    assert round(layout.border_radius_mm, 2) == 3.57
    assert layout.border_radius_mm / layout.card_width_mm == pytest.approx(CORNER_RADIUS_FRACTION)


def test_letter_paper_uses_same_formulas():
    layout = compute_page_layout(PaperSize.LETTER)
    assert layout.vertical_margin_mm == pytest.approx((279.4 - 5 * 53.98) / 6)
    assert layout.horizontal_margin_mm == pytest.approx((215.9 - 2 * 85.6) / 3)


def test_slot_outside_capacity_rejected():
    layout = compute_page_layout()
    with pytest.raises(ValueError):
        layout.slot(5, FaceKind.FRONT)


def test_cards_that_do_not_fit_are_rejected():
    with pytest.raises(ValueError):
        compute_page_layout(capacity=6)
    with pytest.raises(ValueError):
        compute_page_layout(capacity=0)


def test_layout_is_deterministic():
    assert compute_page_layout() == compute_page_layout()

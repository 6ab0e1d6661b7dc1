"""
Visual face producer.

Turns (record, template, face) into a VisualFace: a list of positioned
elements in reference pixels (384x242 card, 16 px padding). Pure and
deterministic; missing fields fall back to built-in visuals.
"""
from typing import Callable, Dict, List, Optional

from domain.models import (
    CardTemplate,
    EntityRecord,
    FaceElement,
    FaceKind,
    PLACEHOLDER_RECORD,
    REFERENCE_CARD_HEIGHT_PX,
    REFERENCE_CARD_WIDTH_PX,
    VisualFace,
)

PADDING_PX = 16
CONTENT_WIDTH_PX = REFERENCE_CARD_WIDTH_PX - 2 * PADDING_PX

CARD_TITLE = "บัตรประจำตัวนักเรียน"
RULES_TITLE = "ข้อปฏิบัติสำหรับผู้ถือบัตร"
HOLDER_RULES = [
    "บัตรนี้เป็นกรรมสิทธิ์ของโรงเรียน",
    "กรุณาแสดงบัตรนี้ทุกครั้งเมื่อติดต่อกับโรงเรียน",
    "หากเก็บบัตรนี้ได้ กรุณาส่งคืนโรงเรียน",
]
LABEL_CODE = "รหัสนักเรียน:"
LABEL_CLASS = "ชั้นเรียน:"
LABEL_TEACHER = "ครูประจำชั้น:"
PHONE_PREFIX = "โทร."

BRAND_DARK = "#1e3a8a"
BRAND_RULE = "#1e40af"
TEXT_COLOR = "#1f2937"
MUTED_RULE = "#6b7280"
PLAIN_BACKGROUND = "#f1f5f9"
WASH_RGBA = (255, 255, 255, 179)  # 70% white over the background image


FaceBuilder = Callable[[EntityRecord, CardTemplate], List[FaceElement]]

_face_registry: Dict[FaceKind, FaceBuilder] = {}


def register_face(face: FaceKind):
    """Decorator to register the element builder for a card face."""
    def decorator(func: FaceBuilder) -> FaceBuilder:
        _face_registry[face] = func
        return func
    return decorator


def build_visual_face(
    record: Optional[EntityRecord],
    template: CardTemplate,
    face: FaceKind,
) -> VisualFace:
    """
    Describe one card face.

    Args:
        record: The person to render; None renders the preview placeholder
        template: Shared card branding
        face: Front or back

    Returns:
        VisualFace with positioned elements
    """
    display = record or PLACEHOLDER_RECORD
    builder = _face_registry.get(FaceKind(face))
    if not builder:
        raise ValueError(f"No face builder registered for: {face}")
    elements = _background_elements(template) + builder(display, template)
    return VisualFace(
        entity_id=display.id,
        face=FaceKind(face),
        template=template,
        elements=elements,
    )


def format_contact_line(template: CardTemplate) -> str:
    """Return 'โทร. {phone} | {website}', dropping whichever part is empty."""
    parts: List[str] = []
    if template.phone:
        parts.append(f"{PHONE_PREFIX} {template.phone}")
    if template.website:
        parts.append(template.website)
    return " | ".join(parts)


def _background_elements(template: CardTemplate) -> List[FaceElement]:
    w, h = REFERENCE_CARD_WIDTH_PX, REFERENCE_CARD_HEIGHT_PX
    return [
        FaceElement(kind="fill", x_px=0, y_px=0, width_px=w, height_px=h, color=PLAIN_BACKGROUND),
        FaceElement(
            kind="image",
            x_px=0,
            y_px=0,
            width_px=w,
            height_px=h,
            image_ref=template.background_url or None,
            fit="cover",
        ),
        FaceElement(kind="fill", x_px=0, y_px=0, width_px=w, height_px=h, color=WASH_RGBA),
    ]


def _text(x, y, width, text, size, bold=False, color=TEXT_COLOR, align="left", wrap="words", height=None) -> FaceElement:
    return FaceElement(
        kind="text",
        x_px=x,
        y_px=y,
        width_px=width,
        height_px=height if height is not None else size * 1.4,
        text=text,
        font_size=size,
        bold=bold,
        color=color,
        align=align,
        wrap=wrap,
    )


@register_face(FaceKind.FRONT)
def build_front_elements(record: EntityRecord, template: CardTemplate) -> List[FaceElement]:
    """
    Front face.

    Structure:
    - Header: logo, card title, school name, blue rule
    - Photo (one third of the width, framed)
    - Name, code, class and homeroom teacher
    """
    p = PADDING_PX
    logo_size = 40
    header_text_x = p + logo_size + 8
    header_text_w = REFERENCE_CARD_WIDTH_PX - p - header_text_x
    elements = [
        FaceElement(
            kind="image",
            x_px=p,
            y_px=p,
            width_px=logo_size,
            height_px=logo_size,
            image_ref=template.logo_url or None,
            fit="contain",
            fallback="logo_glyph",
        ),
        _text(header_text_x, p, header_text_w, CARD_TITLE, 16, bold=True, color=BRAND_DARK),
        _text(header_text_x, p + 21, header_text_w, template.school_name, 11, color=BRAND_DARK),
        FaceElement(kind="fill", x_px=p, y_px=66, width_px=CONTENT_WIDTH_PX, height_px=2, color=BRAND_RULE),
    ]

    photo_size = 108
    photo_y = 80
    elements.append(FaceElement(
        kind="image",
        x_px=p,
        y_px=photo_y,
        width_px=photo_size,
        height_px=photo_size,
        image_ref=record.photo_url or None,
        fit="cover",
        fallback="silhouette",
        radius_px=8,
        border_px=4,
        border_color=BRAND_RULE,
    ))

    info_x = p + photo_size + 16
    info_w = REFERENCE_CARD_WIDTH_PX - p - info_x
    elements.extend([
        _text(info_x, photo_y + 2, info_w, record.name, 14, bold=True, wrap="keep_last_word", height=40),
        _text(info_x, photo_y + 44, info_w, f"{LABEL_CODE} {record.student_code}", 12),
        _text(info_x, photo_y + 64, info_w, f"{LABEL_CLASS} {record.class_name}", 12),
        _text(
            info_x,
            photo_y + 84,
            info_w,
            f"{LABEL_TEACHER} {record.homeroom_teacher}",
            12,
            wrap="keep_last_word",
            height=36,
        ),
    ])
    return elements


@register_face(FaceKind.BACK)
def build_back_elements(record: EntityRecord, template: CardTemplate) -> List[FaceElement]:
    """Back face: holder rules, school contact block and director signature."""
    p = PADDING_PX
    elements = [_text(p, p, CONTENT_WIDTH_PX, RULES_TITLE, 12, bold=True, align="center")]

    rule_y = p + 26
    for index, rule in enumerate(HOLDER_RULES):
        y = rule_y + index * 15
        elements.append(_text(p, y, 16, f"{index + 1}.", 10, bold=True, color=BRAND_DARK))
        elements.append(_text(p + 16, y, CONTENT_WIDTH_PX - 16, rule, 10))

    elements.append(_text(p, 96, CONTENT_WIDTH_PX, template.address, 11, align="center", height=30))
    contact = format_contact_line(template)
    if contact:
        elements.append(_text(p, 128, CONTENT_WIDTH_PX, contact, 11, align="center"))

    sig_w = 128
    sig_x = REFERENCE_CARD_WIDTH_PX - p - sig_w
    if template.signature_url:
        elements.append(FaceElement(
            kind="image",
            x_px=sig_x,
            y_px=150,
            width_px=sig_w,
            height_px=40,
            image_ref=template.signature_url,
            fit="contain",
        ))
    elements.extend([
        FaceElement(kind="fill", x_px=sig_x, y_px=192, width_px=sig_w, height_px=1, color=MUTED_RULE),
        _text(sig_x, 195, sig_w, template.director_name, 11, align="center"),
        _text(sig_x, 211, sig_w, template.director_title, 11, align="center"),
    ])
    return elements

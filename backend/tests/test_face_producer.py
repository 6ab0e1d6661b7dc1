from domain.models import CardTemplate, EntityRecord, FaceKind, PLACEHOLDER_RECORD
from services.face_producer import build_visual_face, format_contact_line


def _record() -> EntityRecord:
    return EntityRecord(
        id="s-1",
        student_code="65001",
        name="สมชาย ใจดี",
        class_name="ป.4/2",
        homeroom_teacher="ครูสมศรี มีสุข",
        photo_url="",
    )


def _texts(face):
    return [e.text for e in face.elements if e.kind == "text"]


def test_front_face_shows_record_fields():
    template = CardTemplate(school_name="โรงเรียนทดสอบ", background_url="")
    face = build_visual_face(_record(), template, FaceKind.FRONT)
    assert face.surface_key == "face-front-s-1"
    assert (face.width_mm, face.height_mm) == (85.6, 53.98)
    assert face.corner_radius_px == 16
    texts = _texts(face)
    assert "โรงเรียนทดสอบ" in texts
    assert "สมชาย ใจดี" in texts
    assert "รหัสนักเรียน: 65001" in texts
    assert "ชั้นเรียน: ป.4/2" in texts
    assert "ครูประจำชั้น: ครูสมศรี มีสุข" in texts


def test_names_keep_last_word_together():
    face = build_visual_face(_record(), CardTemplate(), FaceKind.FRONT)
    name = next(e for e in face.elements if e.text == "สมชาย ใจดี")
    assert name.wrap == "keep_last_word"
    assert name.bold


def test_missing_record_uses_placeholder():
    face = build_visual_face(None, CardTemplate(), FaceKind.FRONT)
    assert face.entity_id == PLACEHOLDER_RECORD.id
    assert PLACEHOLDER_RECORD.name in _texts(face)
    assert "รหัสนักเรียน: 12345" in _texts(face)


def test_empty_refs_fall_back_to_builtin_visuals():
    template = CardTemplate(logo_url="", signature_url="", background_url="")
    front = build_visual_face(_record(), template, FaceKind.FRONT)
    images = [e for e in front.elements if e.kind == "image"]
    assert all(e.image_ref is None for e in images)
    assert {e.fallback for e in images} == {None, "logo_glyph", "silhouette"}

    back = build_visual_face(_record(), template, FaceKind.BACK)
    # No signature image without a signature reference.
    assert not [e for e in back.elements if e.kind == "image" and e.image_ref]


def test_back_face_contact_and_signature():
    template = CardTemplate(phone="02-123-4567", website="school.ac.th", signature_url="sig.png")
    back = build_visual_face(_record(), template, FaceKind.BACK)
    texts = _texts(back)
    assert "โทร. 02-123-4567 | school.ac.th" in texts
    assert template.director_name in texts
    assert template.director_title in texts
    assert any(e.kind == "image" and e.image_ref == "sig.png" for e in back.elements)


def test_contact_line_omits_empty_parts():
    assert format_contact_line(CardTemplate(phone="", website="")) == ""
    assert format_contact_line(CardTemplate(phone="099", website="")) == "โทร. 099"
    assert format_contact_line(CardTemplate(phone="", website="x.th")) == "x.th"


def test_back_face_without_contact_has_no_contact_line():
    back = build_visual_face(_record(), CardTemplate(phone="", website=""), FaceKind.BACK)
    assert not [t for t in _texts(back) if t.startswith("โทร.")]


def test_face_production_is_deterministic():
    template = CardTemplate()
    assert build_visual_face(_record(), template, FaceKind.BACK) == build_visual_face(_record(), template, FaceKind.BACK)


def test_template_from_dict_keeps_defaults_for_missing_keys():
    template = CardTemplate.from_dict({"school_name": "A", "logo_url": None})
    assert template.school_name == "A"
    assert template.logo_url == ""
    assert template.phone == CardTemplate().phone

from services.csv_import import load_records_csv, parse_csv, records_from_rows


THAI_CSV = """\ufeffรหัสนักเรียน,ชื่อ-นามสกุล,ชั้นเรียน,ครูประจำชั้น,รูปภาพ
65001,สมชาย ใจดี,ป.4/2,ครูสมศรี,photos/65001.jpg

65002,สมหญิง รักเรียน,ป.4/2
,ไม่มีรหัส,ป.4/2,,
65004,,ป.4/2,,
"""


def test_parse_csv_skips_blank_lines_and_pads_short_rows():
    rows = parse_csv(THAI_CSV)
    assert len(rows) == 4
    assert "รหัสนักเรียน" in rows[0]
    assert rows[1]["ครูประจำชั้น"] == ""
    assert rows[1]["รูปภาพ"] == ""


def test_parse_csv_header_only_is_empty():
    assert parse_csv("name,class\n") == []
    assert parse_csv("") == []


def test_records_map_thai_headers_and_skip_incomplete_rows():
    result = records_from_rows(parse_csv(THAI_CSV))
    assert result.total_rows == 4
    assert result.skipped_rows == 2
    assert [r.student_code for r in result.records] == ["65001", "65002"]
    first = result.records[0]
    assert first.name == "สมชาย ใจดี"
    assert first.class_name == "ป.4/2"
    assert first.homeroom_teacher == "ครูสมศรี"
    assert first.photo_url == "photos/65001.jpg"
    assert first.id != result.records[1].id


def test_english_headers_match_loosely():
    rows = parse_csv("Student ID,Name,Class,Homeroom_Teacher,Photo URL\n7,Ada,M.1,Mr. B,\n")
    record = records_from_rows(rows).records[0]
    assert (record.student_code, record.name, record.class_name, record.homeroom_teacher) == ("7", "Ada", "M.1", "Mr. B")


def test_custom_header_mapping():
    rows = parse_csv("code,full\n1,Ada\n")
    result = records_from_rows(rows, {"code": "student_code", "full": "name"})
    assert result.records[0].name == "Ada"


def test_load_records_csv_reads_utf8_with_bom(tmp_path):
    path = tmp_path / "students.csv"
    path.write_text(THAI_CSV.lstrip("\ufeff"), encoding="utf-8-sig")
    result = load_records_csv(path)
    assert len(result.records) == 2


def test_quoted_value_keeps_embedded_blank_line():
    rows = parse_csv('code,name,teacher\n1,Ada,"Line one\n\nLine three"\n\n2,Bo,\n')
    assert len(rows) == 2
    assert rows[0]["teacher"] == "Line one\n\nLine three"
    assert rows[1]["name"] == "Bo"


def test_rows_of_only_separators_are_ignored():
    rows = parse_csv("code,name\n,\n1,Ada\n")
    assert rows == [{"code": "1", "name": "Ada"}]

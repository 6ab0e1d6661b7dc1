"""
CSV import of card records.

Header names are matched case-insensitively (ignoring spaces and underscores)
against a mapping of Thai and English column names. Rows without a student
code or name are skipped and counted.
"""
import csv
import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from domain.models import EntityRecord

logger = logging.getLogger(__name__)

HEADER_MAPPING: Dict[str, str] = {
    "รหัสนักเรียน": "student_code",
    "เลขประจำตัว": "student_code",
    "studentid": "student_code",
    "ชื่อ-นามสกุล": "name",
    "ชื่อ-สกุล": "name",
    "ชื่อ": "name",
    "name": "name",
    "ชั้นเรียน": "class_name",
    "ชั้น": "class_name",
    "ห้อง": "class_name",
    "class": "class_name",
    "ครูประจำชั้น": "homeroom_teacher",
    "homeroomteacher": "homeroom_teacher",
    "รูปภาพ": "photo_url",
    "รูป": "photo_url",
    "photourl": "photo_url",
}


@dataclass
class CsvImportResult:
    records: List[EntityRecord] = field(default_factory=list)
    skipped_rows: int = 0
    total_rows: int = 0


def parse_csv(text: str) -> List[Dict[str, str]]:
    """
    Parse CSV text into dicts keyed by the (trimmed) header row.

    Blank rows are ignored; quoted values may span lines. Missing trailing
    values become empty strings.
    """
    reader = csv.reader(io.StringIO(text.lstrip("\ufeff")))
    non_empty = (values for values in reader if any(value.strip() for value in values))
    headers = [h.strip() for h in next(non_empty, [])]
    rows: List[Dict[str, str]] = []
    for values in non_empty:
        rows.append({
            header: values[index].strip() if index < len(values) else ""
            for index, header in enumerate(headers)
        })
    return rows


def records_from_rows(
    rows: List[Dict[str, str]],
    header_mapping: Optional[Dict[str, str]] = None,
) -> CsvImportResult:
    mapping = {_normalize_header(k): v for k, v in (header_mapping or HEADER_MAPPING).items()}
    result = CsvImportResult(total_rows=len(rows))
    for row in rows:
        mapped: Dict[str, str] = {}
        for raw_header, value in row.items():
            field_name = mapping.get(_normalize_header(raw_header))
            if field_name:
                mapped[field_name] = value
        if not mapped.get("student_code") or not mapped.get("name"):
            result.skipped_rows += 1
            continue
        result.records.append(EntityRecord(
            id=EntityRecord.generate_id(),
            student_code=mapped["student_code"].strip(),
            name=mapped["name"].strip(),
            class_name=mapped.get("class_name", "").strip(),
            homeroom_teacher=mapped.get("homeroom_teacher", "").strip(),
            photo_url=mapped.get("photo_url", "").strip(),
        ))
    if result.skipped_rows:
        logger.warning("[csv-import] skipped %d of %d rows with missing code or name",
                       result.skipped_rows, result.total_rows)
    return result


def load_records_csv(path: Path) -> CsvImportResult:
    text = Path(path).read_text(encoding="utf-8-sig")
    return records_from_rows(parse_csv(text))


def _normalize_header(header: str) -> str:
    return "".join(header.strip().lower().replace("_", " ").split())

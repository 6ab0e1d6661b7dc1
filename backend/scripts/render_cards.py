"""Export an A4 sheet of student ID cards from a CSV file.

Usage:
    python -m scripts.render_cards --csv students.csv [--template template.json] [--out media]
        [--paper a4|letter] [--scale 3] [--name student-id-cards.pdf]

The template JSON uses CardTemplate field names (school_name, address, phone,
website, logo_url, signature_url, background_url, director_name,
director_title); omitted fields keep their defaults.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from domain.errors import CardExportError
from domain.models import CardTemplate, PaperSize
from services.csv_import import load_records_csv
from services.export_pipeline import export_cards
from services.fonts import CardFonts
from services.image_refs import ImageRefLoader
from storage.file_storage import FileStorage

logger = logging.getLogger("render_cards")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Export student ID cards to a printable PDF.")
    parser.add_argument("--csv", required=True, help="CSV file with one student per row.")
    parser.add_argument("--template", help="JSON file with card template settings.")
    parser.add_argument("--out", default=None, help="Media root; the PDF lands in <out>/exports/.")
    parser.add_argument("--name", default=None, help="Output file name (defaults to student-id-*.pdf).")
    parser.add_argument("--paper", choices=[p.value for p in PaperSize], default=None, help="Paper size (default from settings).")
    parser.add_argument("--scale", type=float, default=None, help="Raster scale factor (default from settings).")
    parser.add_argument("--font", default=None, help="TrueType font for card text.")
    parser.add_argument("--bold-font", default=None, help="TrueType font for bold card text.")
    parser.add_argument("--offline", action="store_true", help="Do not fetch http(s) image references.")
    return parser


def load_template(path: Optional[str]) -> CardTemplate:
    if not path:
        return CardTemplate()
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return CardTemplate.from_dict(data)


def main(argv: Optional[List[str]] = None) -> int:
    if not logger.handlers:
        logging.basicConfig(level=logging.INFO, format="%(message)s")
    args = build_parser().parse_args(argv)

    csv_path = Path(args.csv)
    imported = load_records_csv(csv_path)
    if not imported.records:
        logger.error("No usable rows in %s (%d skipped)", csv_path, imported.skipped_rows)
        return 1

    fonts = CardFonts(args.font, args.bold_font) if args.font else CardFonts.from_settings()
    images = ImageRefLoader(base_dir=csv_path.resolve().parent, remote_enabled=False if args.offline else None)
    try:
        result = asyncio.run(export_cards(
            imported.records,
            load_template(args.template),
            args.name,
            paper=PaperSize(args.paper) if args.paper else None,
            scale=args.scale,
            fonts=fonts,
            images=images,
            storage=FileStorage(args.out),
        ))
    except CardExportError as exc:
        logger.error("Export failed (%s): %s", exc.kind, exc)
        return 2

    artifact = result.artifact
    print(f"Wrote {artifact.path}")
    print(f"Pages: {artifact.page_count} rows={artifact.rows_per_page} skipped={result.skipped_count}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""
PDF document writer.

Wraps a reportlab canvas behind a small interface working in millimeters with
a top-left origin, so the assembler never deals with PDF points or reportlab's
bottom-left coordinate system.
"""
import logging
from io import BytesIO
from typing import Any, Callable, Tuple

from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from domain.errors import AssemblyFailure
from domain.models import PageLayout

logger = logging.getLogger(__name__)


class DocumentWriter:
    """Capability the assembler draws through. Coordinates are mm from the top-left."""

    def begin_page(self) -> None:
        raise NotImplementedError

    def draw_image(self, image: Any, x_mm: float, y_mm: float, width_mm: float, height_mm: float) -> None:
        raise NotImplementedError

    def stroke_rounded_rect(
        self,
        x_mm: float,
        y_mm: float,
        width_mm: float,
        height_mm: float,
        radius_mm: float,
        line_width_mm: float,
        color_rgb: Tuple[int, int, int],
    ) -> None:
        raise NotImplementedError

    def serialize(self, name: str) -> bytes:
        raise NotImplementedError

    def discard(self) -> None:
        raise NotImplementedError


WriterFactory = Callable[[PageLayout], DocumentWriter]


class ReportLabDocumentWriter(DocumentWriter):
    def __init__(self, page_width_mm: float, page_height_mm: float):
        self.page_width_mm = page_width_mm
        self.page_height_mm = page_height_mm
        self._buffer = BytesIO()
        # invariant=1 drops timestamps and random ids: identical input, identical bytes.
        self._canvas = canvas.Canvas(
            self._buffer,
            pagesize=(page_width_mm * mm, page_height_mm * mm),
            invariant=1,
        )
        self._page_count = 0
        self._closed = False

    @classmethod
    def for_layout(cls, layout: PageLayout) -> "ReportLabDocumentWriter":
        return cls(layout.page_width_mm, layout.page_height_mm)

    @property
    def page_count(self) -> int:
        return self._page_count

    def begin_page(self) -> None:
        self._ensure_open()
        if self._page_count > 0:
            self._canvas.showPage()
        self._page_count += 1

    def draw_image(self, image: Any, x_mm: float, y_mm: float, width_mm: float, height_mm: float) -> None:
        self._ensure_open()
        try:
            self._canvas.drawImage(
                ImageReader(image),
                x_mm * mm,
                self._flip_y(y_mm, height_mm) * mm,
                width=width_mm * mm,
                height=height_mm * mm,
                mask="auto",
            )
        except Exception as exc:
            raise AssemblyFailure(f"Failed to place image at ({x_mm:.2f}, {y_mm:.2f})mm: {exc}") from exc

    def stroke_rounded_rect(
        self,
        x_mm: float,
        y_mm: float,
        width_mm: float,
        height_mm: float,
        radius_mm: float,
        line_width_mm: float,
        color_rgb: Tuple[int, int, int],
    ) -> None:
        self._ensure_open()
        c = self._canvas
        c.setStrokeColorRGB(*(channel / 255.0 for channel in color_rgb))
        c.setLineWidth(line_width_mm * mm)
        c.roundRect(
            x_mm * mm,
            self._flip_y(y_mm, height_mm) * mm,
            width_mm * mm,
            height_mm * mm,
            radius_mm * mm,
            stroke=1,
            fill=0,
        )

    def serialize(self, name: str) -> bytes:
        self._ensure_open()
        try:
            if self._page_count == 0:
                # A PDF needs at least one page; an empty run yields one blank sheet.
                self._canvas.showPage()
            self._canvas.setTitle(name)
            self._canvas.save()
            data = self._buffer.getvalue()
        except Exception as exc:
            raise AssemblyFailure(f"Failed to serialize document {name}: {exc}") from exc
        finally:
            self._closed = True
        logger.info("[document-writer] serialized %s (%d pages, %d bytes)", name, max(1, self._page_count), len(data))
        return data

    def discard(self) -> None:
        self._closed = True
        self._buffer = BytesIO()

    def _flip_y(self, y_mm: float, height_mm: float) -> float:
        return self.page_height_mm - y_mm - height_mm

    def _ensure_open(self) -> None:
        if self._closed:
            raise AssemblyFailure("Document writer is already closed")

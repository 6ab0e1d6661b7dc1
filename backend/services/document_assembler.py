"""
Document assembler.

Places composited card pairs onto pages in the order supplied, strokes a
light-gray rounded border around each face and starts a new page whenever the
current one is full. Page and row indices change only through place_pair.
"""
import logging
from typing import List, Optional, Tuple

from domain.errors import AssemblyFailure
from domain.models import (
    BORDER_COLOR_RGB,
    BORDER_LINE_WIDTH_MM,
    CompositedImage,
    DocumentArtifact,
    FaceKind,
    PageLayout,
    PlacedCard,
)
from services.document_writer import DocumentWriter

logger = logging.getLogger(__name__)


class DocumentAssembler:
    def __init__(self, layout: PageLayout, writer: DocumentWriter):
        self.layout = layout
        self.writer = writer
        self._pages: List[List[PlacedCard]] = []
        self._page_index = -1
        self._row_index = layout.capacity  # forces a page on the first pair
        self._finalized = False

    @property
    def page_index(self) -> int:
        return max(self._page_index, 0)

    @property
    def row_index(self) -> int:
        return 0 if self._page_index < 0 else self._row_index

    @property
    def pages(self) -> List[List[PlacedCard]]:
        return [list(page) for page in self._pages]

    def place_pair(
        self,
        front: CompositedImage,
        back: CompositedImage,
        entity_id: Optional[str] = None,
    ) -> Tuple[PlacedCard, PlacedCard]:
        """Write one front/back row; returns the two placements."""
        if self._finalized:
            raise AssemblyFailure("Document already finalized")
        if self._row_index == self.layout.capacity:
            self.writer.begin_page()
            self._pages.append([])
            self._page_index += 1
            self._row_index = 0

        placed = []
        for face, image in ((FaceKind.FRONT, front), (FaceKind.BACK, back)):
            slot = self.layout.slot(self._row_index, face)
            self.writer.draw_image(image.image, slot.x_mm, slot.y_mm, slot.width_mm, slot.height_mm)
            self.writer.stroke_rounded_rect(
                slot.x_mm,
                slot.y_mm,
                slot.width_mm,
                slot.height_mm,
                self.layout.border_radius_mm,
                BORDER_LINE_WIDTH_MM,
                BORDER_COLOR_RGB,
            )
            card = PlacedCard(
                page_index=self._page_index,
                slot=slot,
                entity_id=entity_id,
                border_radius_mm=self.layout.border_radius_mm,
            )
            self._pages[-1].append(card)
            placed.append(card)

        logger.debug(
            "[assembler] %s -> page %d row %d",
            entity_id or "<pair>",
            self._page_index,
            self._row_index,
        )
        self._row_index += 1
        return placed[0], placed[1]

    def finalize(self, name: str) -> DocumentArtifact:
        if self._finalized:
            raise AssemblyFailure("Document already finalized")
        self._finalized = True
        content = self.writer.serialize(name)
        return DocumentArtifact(name=name, content=content, pages=self.pages)

    def discard(self) -> None:
        """Drop accumulated pages without producing a document."""
        self._finalized = True
        self._pages = []
        self.writer.discard()

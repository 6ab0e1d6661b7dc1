"""
Card export pipeline.

Drives one export run end to end:
1. Wait once on the readiness gate
2. For each entity id, look up its staged front/back surfaces
   (missing -> skip and count, run continues)
3. Rasterize both faces, clip their corners, place the pair
4. Finalize the document

CaptureFailure and AssemblyFailure abort the run: nothing is emitted and the
error reaches the caller unchanged. The staging area is released on every
exit path. The pipeline holds no lock; callers serialize concurrent runs.
"""
import logging
from typing import List, Optional, Sequence, Set, Tuple

from domain.errors import MissingRenderTarget
from domain.models import (
    CardTemplate,
    EntityRecord,
    ExportResult,
    ExportState,
    FaceKind,
    NOMINAL_CORNER_RADIUS_PX,
    PageLayout,
    PaperSize,
    SkippedEntity,
)
from services.corner_clip import clip_rounded_corners
from services.document_assembler import DocumentAssembler
from services.document_writer import ReportLabDocumentWriter, WriterFactory
from services.fonts import CardFonts
from services.image_refs import ImageRefLoader
from services.page_layout import compute_page_layout
from services.rasterizer import SurfaceRasterizer
from services.readiness import ReadinessGate, fonts_ready_gate
from services.staging import StagingArea, face_key, stage_cards
from settings import settings
from storage.file_storage import FileStorage

logger = logging.getLogger(__name__)

SINGLE_FILE_NAME = "student-id-{code}.pdf"
BATCH_FILE_NAME = "student-id-cards.pdf"


def export_file_name(records: Sequence[EntityRecord]) -> str:
    """student-id-{code}.pdf for a single record, student-id-cards.pdf otherwise."""
    if len(records) == 1:
        return SINGLE_FILE_NAME.format(code=records[0].student_code or records[0].id)
    return BATCH_FILE_NAME


class CardExportPipeline:
    def __init__(
        self,
        rasterizer: SurfaceRasterizer,
        readiness: ReadinessGate,
        writer_factory: WriterFactory = ReportLabDocumentWriter.for_layout,
        layout: Optional[PageLayout] = None,
        scale: Optional[float] = None,
        corner_radius_px: float = NOMINAL_CORNER_RADIUS_PX,
    ):
        self.rasterizer = rasterizer
        self.readiness = readiness
        self.writer_factory = writer_factory
        self.layout = layout or compute_page_layout()
        self.scale = settings.CARD_RASTER_SCALE if scale is None else scale
        self.corner_radius_px = corner_radius_px
        self.state = ExportState.IDLE

    async def run(self, entity_ids: Sequence[str], staging: StagingArea, name: str) -> ExportResult:
        """
        Export the staged cards for entity_ids, in order.

        Args:
            entity_ids: Selected entities, in print order
            staging: Surfaces keyed face-front-{id} / face-back-{id}; released on return
            name: Document name

        Returns:
            ExportResult with the artifact and the skipped entities

        Raises:
            CaptureFailure: A staged surface could not be rasterized
            AssemblyFailure: The document could not be serialized
        """
        assembler: Optional[DocumentAssembler] = None
        skipped: List[SkippedEntity] = []
        try:
            self.state = ExportState.AWAITING_GATE
            ready = await self.readiness.wait()
            logger.info("[export] %s: %d entities, readiness=%s", name, len(entity_ids), ready)

            self.state = ExportState.PROCESSING
            assembler = DocumentAssembler(self.layout, self.writer_factory(self.layout))
            for entity_id in entity_ids:
                try:
                    self._require_staged(staging, entity_id)
                except MissingRenderTarget as exc:
                    logger.warning("[export] skipping %s: %s", entity_id, exc)
                    skipped.append(SkippedEntity(entity_id=entity_id, reason=str(exc)))
                    continue
                front = await self._capture(staging, FaceKind.FRONT, entity_id)
                back = await self._capture(staging, FaceKind.BACK, entity_id)
                assembler.place_pair(front, back, entity_id=entity_id)

            self.state = ExportState.FINALIZING
            artifact = assembler.finalize(name)
        except Exception as exc:
            self.state = ExportState.ABORTED
            if assembler is not None:
                assembler.discard()
            logger.error("[export] %s aborted (%s): %s", name, getattr(exc, "kind", type(exc).__name__), exc)
            raise
        finally:
            staging.release()

        self.state = ExportState.DONE
        logger.info(
            "[export] %s done: %d pages, %d skipped",
            name,
            artifact.page_count,
            len(skipped),
        )
        return ExportResult(artifact=artifact, skipped=skipped)

    def _require_staged(self, staging: StagingArea, entity_id: str) -> None:
        for face in (FaceKind.FRONT, FaceKind.BACK):
            if staging.get(face_key(face, entity_id)) is None:
                raise MissingRenderTarget(entity_id, face.value)

    async def _capture(self, staging: StagingArea, face: FaceKind, entity_id: str):
        raster = await self.rasterizer.rasterize(staging, face_key(face, entity_id), self.scale)
        return clip_rounded_corners(raster, self.corner_radius_px, self.scale)


async def export_cards(
    records: Sequence[EntityRecord],
    template: CardTemplate,
    name: Optional[str] = None,
    *,
    paper: Optional[PaperSize] = None,
    scale: Optional[float] = None,
    fonts: Optional[CardFonts] = None,
    images: Optional[ImageRefLoader] = None,
    storage: Optional[FileStorage] = None,
    readiness: Optional[ReadinessGate] = None,
) -> ExportResult:
    """
    Stage faces for records and export them as one PDF.

    Records reusing an earlier record's id are not printed; each is reported
    in result.skipped. When storage is given the finished document is written
    there (atomically) and artifact.path is set. Nothing is written when the
    run fails.
    """
    fonts = fonts or CardFonts.from_settings()
    name = name or export_file_name(records)
    unique, duplicates = _split_duplicate_ids(records)
    staging = stage_cards(unique, template, fonts, images)
    pipeline = CardExportPipeline(
        rasterizer=SurfaceRasterizer(),
        readiness=readiness or fonts_ready_gate(fonts),
        layout=compute_page_layout(PaperSize(paper or settings.CARD_PAPER_SIZE)),
        scale=scale,
    )
    result = await pipeline.run([record.id for record in unique], staging, name)
    result.skipped.extend(duplicates)
    if storage is not None:
        result.artifact.path = str(storage.save_document(result.artifact))
    return result


def _split_duplicate_ids(records: Sequence[EntityRecord]) -> Tuple[List[EntityRecord], List[SkippedEntity]]:
    seen: Set[str] = set()
    unique: List[EntityRecord] = []
    duplicates: List[SkippedEntity] = []
    for record in records:
        if record.id in seen:
            logger.warning("[export] skipping %s (%s): duplicate id", record.id, record.student_code)
            duplicates.append(SkippedEntity(entity_id=record.id, reason="duplicate id"))
            continue
        seen.add(record.id)
        unique.append(record)
    return unique, duplicates


async def export_single(record: EntityRecord, template: CardTemplate, **kwargs) -> ExportResult:
    """Print one card: the batch export with a one-element batch."""
    return await export_cards([record], template, **kwargs)

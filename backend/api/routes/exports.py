"""
Export API routes.

Handles PDF export of selected students and card face previews.
"""
import asyncio
import logging
from io import BytesIO
from typing import List, Optional
from urllib.parse import quote

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel, Field

from domain.errors import AssemblyFailure, CaptureFailure
from domain.models import CardTemplate, EntityRecord, FaceKind, PaperSize
from services.export_pipeline import export_cards
from services.face_producer import build_visual_face
from services.fonts import CardFonts
from services.image_refs import ImageRefLoader
from services.rasterizer import CardFaceSurface
from storage.file_storage import safe_file_name

logger = logging.getLogger(__name__)

router = APIRouter()

# Busy flag: one export at a time owns the staging area.
_export_lock = asyncio.Lock()


class TemplatePayload(BaseModel):
    school_name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    logo_url: Optional[str] = None
    signature_url: Optional[str] = None
    background_url: Optional[str] = None
    director_name: Optional[str] = None
    director_title: Optional[str] = None

    def to_template(self) -> CardTemplate:
        return CardTemplate.from_dict(self.model_dump())


class StudentPayload(BaseModel):
    id: Optional[str] = None
    student_code: str
    name: str
    class_name: str = ""
    homeroom_teacher: str = ""
    photo_url: str = ""

    def to_record(self) -> EntityRecord:
        return EntityRecord.from_dict(self.model_dump())


class ExportRequest(BaseModel):
    students: List[StudentPayload]
    template: TemplatePayload = Field(default_factory=TemplatePayload)
    file_name: Optional[str] = None
    paper: Optional[PaperSize] = None


@router.post("")
async def export_pdf(request: ExportRequest):
    """
    Render the selected students' cards into one PDF.

    Returns the PDF bytes; X-Skipped-Count reports entities whose faces
    could not be staged.
    """
    if not request.students:
        raise HTTPException(status_code=400, detail="Select at least one student to export.")
    if _export_lock.locked():
        raise HTTPException(status_code=409, detail="Another export is in progress.")

    records = [s.to_record() for s in request.students]
    file_name = safe_file_name(request.file_name) if request.file_name else None

    async with _export_lock:
        try:
            result = await export_cards(
                records,
                request.template.to_template(),
                file_name,
                paper=request.paper,
            )
        except (CaptureFailure, AssemblyFailure) as exc:
            logger.error("[api] export failed (%s): %s", exc.kind, exc)
            raise HTTPException(status_code=500, detail={"kind": exc.kind, "message": str(exc)})

    artifact = result.artifact
    headers = {
        "Content-Disposition": f"attachment; filename*=UTF-8''{quote(artifact.name)}",
        "X-Skipped-Count": str(result.skipped_count),
        "X-Page-Count": str(artifact.page_count),
    }
    return Response(content=artifact.content, media_type="application/pdf", headers=headers)


@router.get("/preview/{face}")
async def preview_face(face: FaceKind, scale: float = 1.0):
    """PNG preview of the placeholder card with the default template."""
    if not 0 < scale <= 4:
        raise HTTPException(status_code=400, detail="scale must be in (0, 4]")
    visual = build_visual_face(None, CardTemplate(background_url=""), face)
    surface = CardFaceSurface(visual, CardFonts.from_settings(), ImageRefLoader(remote_enabled=False))
    raster = await asyncio.get_running_loop().run_in_executor(None, surface.rasterize, scale)
    buf = BytesIO()
    raster.image.save(buf, format="PNG")
    return Response(content=buf.getvalue(), media_type="image/png")

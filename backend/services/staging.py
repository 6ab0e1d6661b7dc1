"""
Staging area for one export run.

Holds every pre-rendered face keyed face-front-{id} / face-back-{id}. A run
owns its staging area exclusively and releases it on every exit path; use it
as a context manager or call release() directly.
"""
import logging
from typing import Dict, Iterable, Optional

from domain.errors import CaptureFailure
from domain.models import CardTemplate, EntityRecord, FaceKind
from services.face_producer import build_visual_face
from services.fonts import CardFonts
from services.image_refs import ImageRefLoader
from services.rasterizer import CardFaceSurface, RenderableSurface

logger = logging.getLogger(__name__)


def face_key(face: FaceKind, entity_id: str) -> str:
    return f"face-{FaceKind(face).value}-{entity_id}"


class StagingArea:
    def __init__(self) -> None:
        self._surfaces: Dict[str, RenderableSurface] = {}
        self.released = False

    def stage(self, key: str, surface: RenderableSurface) -> None:
        """Register a surface; a key can be staged only once per run."""
        if self.released:
            raise CaptureFailure("Staging area already released", surface_key=key)
        if key in self._surfaces:
            raise ValueError(f"Surface {key} is already staged")
        self._surfaces[key] = surface

    def get(self, key: str) -> Optional[RenderableSurface]:
        """Look up a staged surface; None when it was never staged."""
        if self.released:
            raise CaptureFailure("Staging area already released", surface_key=key)
        return self._surfaces.get(key)

    def release(self) -> None:
        if self.released:
            return
        logger.debug("[staging] releasing %d surfaces", len(self._surfaces))
        self._surfaces.clear()
        self.released = True

    def __contains__(self, key: str) -> bool:
        return key in self._surfaces

    def __len__(self) -> int:
        return len(self._surfaces)

    def __enter__(self) -> "StagingArea":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.release()
        return False


def stage_cards(
    records: Iterable[EntityRecord],
    template: CardTemplate,
    fonts: CardFonts,
    images: Optional[ImageRefLoader] = None,
) -> StagingArea:
    """
    Render front and back faces for each record into a fresh staging area.

    Records sharing an id are staged once: the first one wins and the rest
    are logged and left out.
    """
    images = images or ImageRefLoader()
    staging = StagingArea()
    for record in records:
        if face_key(FaceKind.FRONT, record.id) in staging:
            logger.warning("[staging] duplicate entity id %s, keeping the first record", record.id)
            continue
        for face in (FaceKind.FRONT, FaceKind.BACK):
            visual = build_visual_face(record, template, face)
            staging.stage(face_key(face, record.id), CardFaceSurface(visual, fonts, images))
    logger.info("[staging] staged %d surfaces", len(staging))
    return staging

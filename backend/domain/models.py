"""
Core domain models for the ID card exporter.
These are framework-agnostic and can be used across all services.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
import uuid


# ID-1 card format, in millimeters
ID1_WIDTH_MM = 85.6
ID1_HEIGHT_MM = 53.98

# Reference card layout the faces are designed against (a 24rem wide card).
# The 384 px width has no other provenance; it only fixes the ratio between
# the nominal corner radius and the card width.
REFERENCE_CARD_WIDTH_PX = 384
REFERENCE_CARD_HEIGHT_PX = 242
NOMINAL_CORNER_RADIUS_PX = 16

CARDS_PER_PAGE = 5
BORDER_LINE_WIDTH_MM = 0.1
BORDER_COLOR_RGB = (150, 150, 150)

DEFAULT_BACKGROUND_URL = (
    "https://images.pexels.com/photos/7130473/pexels-photo-7130473.jpeg"
    "?auto=compress&cs=tinysrgb&w=1260&h=750&dpr=2"
)


class FaceKind(str, Enum):
    """Printable side of a card."""
    FRONT = "front"
    BACK = "back"


class PaperSize(str, Enum):
    """Supported office paper formats (portrait)."""
    A4 = "a4"
    LETTER = "letter"


class ExportState(str, Enum):
    """Lifecycle of a single export run."""
    IDLE = "idle"
    AWAITING_GATE = "awaiting_gate"
    PROCESSING = "processing"
    FINALIZING = "finalizing"
    DONE = "done"
    ABORTED = "aborted"


PAPER_SIZES_MM: Dict[PaperSize, Tuple[float, float]] = {
    PaperSize.A4: (210.0, 297.0),
    PaperSize.LETTER: (215.9, 279.4),
}


@dataclass(frozen=True)
class CardTemplate:
    """
    Shared branding applied to every card of a run.

    Image fields hold references: a local path, an http(s) URL or a
    base64 ``data:`` URL. Empty strings select the built-in fallbacks.
    """
    school_name: str = "โรงเรียนบ้านลำดวน สพป.บุรีรัมย์ เขต 2"
    address: str = "โรงเรียนบ้านลำดวน หมู่ 11 ต.ลำดวน อ.กระสัง จ.บุรีรัมย์ 31160"
    phone: str = "093-1979539"
    website: str = ""
    logo_url: str = ""
    signature_url: str = ""
    background_url: str = DEFAULT_BACKGROUND_URL
    director_name: str = "(นายมงคล นิพรรัมย์)"
    director_title: str = "ผู้อำนวยการโรงเรียน"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CardTemplate":
        defaults = cls()
        values = {}
        for name in defaults.__dataclass_fields__:
            value = data.get(name)
            values[name] = getattr(defaults, name) if value is None else str(value)
        return cls(**values)


@dataclass(frozen=True)
class EntityRecord:
    """One person to be carded. The pipeline only reads these."""
    id: str
    student_code: str
    name: str
    class_name: str = ""
    homeroom_teacher: str = ""
    photo_url: str = ""

    @staticmethod
    def generate_id() -> str:
        return str(uuid.uuid4())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EntityRecord":
        return cls(
            id=str(data.get("id") or cls.generate_id()),
            student_code=str(data.get("student_code") or ""),
            name=str(data.get("name") or ""),
            class_name=str(data.get("class_name") or ""),
            homeroom_teacher=str(data.get("homeroom_teacher") or ""),
            photo_url=str(data.get("photo_url") or ""),
        )


# Shown in previews when no record is selected; never exported.
PLACEHOLDER_RECORD = EntityRecord(
    id="0",
    student_code="12345",
    name="ชื่อ-นามสกุล",
    class_name="ม.6/1",
    homeroom_teacher="ชื่อครูประจำชั้น",
    photo_url="",
)


@dataclass
class FaceElement:
    """
    A positioned element on a card face, in reference pixels.

    kind is one of:
    - fill: solid (optionally translucent) rectangle
    - image: image reference, with an optional fallback drawing
    - text: text block wrapped to width_px
    - silhouette / logo_glyph: built-in fallback drawings
    """
    kind: str
    x_px: float
    y_px: float
    width_px: float
    height_px: float
    text: Optional[str] = None
    font_size: Optional[float] = None
    bold: bool = False
    color: Optional[Any] = None
    align: str = "left"
    wrap: str = "words"  # "words" | "keep_last_word"
    image_ref: Optional[str] = None
    fit: str = "cover"  # "cover" | "contain"
    fallback: Optional[str] = None  # element kind drawn when image_ref can't be loaded
    radius_px: float = 0
    border_px: float = 0
    border_color: Optional[str] = None


@dataclass
class VisualFace:
    """One face of one entity's card, as a renderable description."""
    entity_id: str
    face: FaceKind
    template: CardTemplate
    elements: List[FaceElement] = field(default_factory=list)
    width_px: int = REFERENCE_CARD_WIDTH_PX
    height_px: int = REFERENCE_CARD_HEIGHT_PX
    corner_radius_px: float = NOMINAL_CORNER_RADIUS_PX
    width_mm: float = ID1_WIDTH_MM
    height_mm: float = ID1_HEIGHT_MM

    @property
    def surface_key(self) -> str:
        return f"face-{self.face.value}-{self.entity_id}"


@dataclass
class RasterImage:
    """Pixel buffer of one rasterized face (a Pillow image)."""
    image: Any
    scale: float
    width_mm: float = ID1_WIDTH_MM
    height_mm: float = ID1_HEIGHT_MM

    @property
    def width_px(self) -> int:
        return self.image.width

    @property
    def height_px(self) -> int:
        return self.image.height


@dataclass
class CompositedImage(RasterImage):
    """Raster with the rounded-corner clip applied (None when clipping was skipped)."""
    clip_radius_px: Optional[float] = None


@dataclass
class SlotRect:
    """Where one card face lands on a page."""
    row: int
    face: FaceKind
    x_mm: float
    y_mm: float
    width_mm: float
    height_mm: float


@dataclass(frozen=True)
class PageLayout:
    """Geometry contract shared by every page of a run."""
    page_width_mm: float
    page_height_mm: float
    card_width_mm: float
    card_height_mm: float
    capacity: int
    vertical_margin_mm: float
    horizontal_margin_mm: float
    border_radius_mm: float

    @property
    def front_x_mm(self) -> float:
        return self.horizontal_margin_mm

    @property
    def back_x_mm(self) -> float:
        return 2 * self.horizontal_margin_mm + self.card_width_mm

    def row_y_mm(self, row: int) -> float:
        """Top edge of a row, measured from the top of the page."""
        return self.vertical_margin_mm * (row + 1) + self.card_height_mm * row

    def slot(self, row: int, face: FaceKind) -> SlotRect:
        if not 0 <= row < self.capacity:
            raise ValueError(f"Row {row} outside page capacity {self.capacity}")
        x = self.front_x_mm if face == FaceKind.FRONT else self.back_x_mm
        return SlotRect(
            row=row,
            face=face,
            x_mm=x,
            y_mm=self.row_y_mm(row),
            width_mm=self.card_width_mm,
            height_mm=self.card_height_mm,
        )


@dataclass
class PlacedCard:
    """A composited face written onto a page."""
    page_index: int
    slot: SlotRect
    entity_id: Optional[str] = None
    border_radius_mm: float = 0.0


@dataclass
class DocumentArtifact:
    """The finalized PDF. Pages list the placements, in order."""
    name: str
    content: bytes
    pages: List[List[PlacedCard]] = field(default_factory=list)
    path: Optional[str] = None

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def rows_per_page(self) -> List[int]:
        return [len({card.slot.row for card in page}) for page in self.pages]

    @property
    def entity_order(self) -> List[str]:
        order: List[str] = []
        for page in self.pages:
            for card in page:
                if card.slot.face == FaceKind.FRONT and card.entity_id is not None:
                    order.append(card.entity_id)
        return order


@dataclass
class SkippedEntity:
    entity_id: str
    reason: str


@dataclass
class ExportResult:
    artifact: DocumentArtifact
    skipped: List[SkippedEntity] = field(default_factory=list)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

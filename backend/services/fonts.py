"""
Font loading for card text.

Fonts are read once per run (behind the readiness gate) and then handed out
per pixel size. Card text is Thai, so when no font file is configured the
loader tries well-known Thai-capable fonts through Pillow's system font
lookup. Only when none of those resolve does it use Pillow's built-in font,
which has no Thai glyphs.
"""
import io
import logging
from pathlib import Path
from typing import Dict, Optional, Sequence, Tuple, Union

from PIL import ImageFont

from settings import settings

logger = logging.getLogger(__name__)

# Tried in order by file name (Pillow searches the system font directories).
THAI_FONT_NAMES: Tuple[str, ...] = (
    "Sarabun-Regular.ttf",
    "NotoSansThai-Regular.ttf",
    "NotoSansThaiUI-Regular.ttf",
    "NotoSansThai-Regular.otf",
    "Garuda.otf",
    "Garuda.ttf",
    "Loma.otf",
    "Loma.ttf",
    "tahoma.ttf",
)
THAI_BOLD_FONT_NAMES: Tuple[str, ...] = (
    "Sarabun-Bold.ttf",
    "NotoSansThai-Bold.ttf",
    "NotoSansThaiUI-Bold.ttf",
    "NotoSansThai-Bold.otf",
    "Garuda-Bold.otf",
    "Garuda-Bold.ttf",
    "Loma-Bold.otf",
    "Loma-Bold.ttf",
    "tahomabd.ttf",
)

# Font bytes read from a configured path, or a name resolved by Pillow.
FontSource = Union[bytes, str]


class CardFonts:
    """Regular + bold font pair used by every card face."""

    def __init__(
        self,
        regular_path: Optional[str] = None,
        bold_path: Optional[str] = None,
        fallback_names: Sequence[str] = THAI_FONT_NAMES,
        bold_fallback_names: Sequence[str] = THAI_BOLD_FONT_NAMES,
    ):
        self.regular_path = regular_path
        self.bold_path = bold_path
        self.fallback_names = tuple(fallback_names)
        self.bold_fallback_names = tuple(bold_fallback_names)
        self._sources: Dict[bool, Optional[FontSource]] = {False: None, True: None}
        self._cache: Dict[Tuple[int, bool], ImageFont.ImageFont] = {}
        self.ready = False

    @classmethod
    def from_settings(cls) -> "CardFonts":
        return cls(settings.CARD_FONT_PATH, settings.CARD_BOLD_FONT_PATH)

    @property
    def has_truetype(self) -> bool:
        """True when card text uses a real TrueType font rather than the builtin one."""
        return self._sources[False] is not None

    def load(self) -> "CardFonts":
        """Resolve font sources. Safe to call more than once."""
        if self.ready:
            return self
        regular = _read_font_file(self.regular_path) or _find_named_font(self.fallback_names)
        bold = (
            _read_font_file(self.bold_path)
            or _find_named_font(self.bold_fallback_names)
            or regular
        )
        self._sources = {False: regular, True: bold}
        self._cache.clear()
        self.ready = True
        if regular is None:
            logger.warning("[fonts] no Thai-capable font found, using builtin font (Thai text will not render)")
        else:
            logger.info("[fonts] loaded regular=%s bold=%s", _describe(regular), _describe(bold))
        return self

    def font(self, size_px: float, bold: bool = False) -> ImageFont.ImageFont:
        if not self.ready:
            self.load()
        size = max(1, int(round(size_px)))
        key = (size, bold)
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        source = self._sources.get(bold)
        if isinstance(source, bytes):
            font = ImageFont.truetype(io.BytesIO(source), size)
        elif source:
            font = ImageFont.truetype(source, size)
        else:
            font = ImageFont.load_default(size=size)
        self._cache[key] = font
        return font


def _read_font_file(path: Optional[str]) -> Optional[bytes]:
    if not path:
        return None
    font_path = Path(path)
    try:
        data = font_path.read_bytes()
        # Validate once so a corrupt file degrades here rather than mid-capture.
        ImageFont.truetype(io.BytesIO(data), 12)
        return data
    except OSError:
        logger.warning("[fonts] cannot load font %s, trying system fonts", font_path, exc_info=True)
        return None


def _find_named_font(names: Sequence[str]) -> Optional[str]:
    for name in names:
        try:
            ImageFont.truetype(name, 12)
        except OSError:
            continue
        return name
    return None


def _describe(source: Optional[FontSource]) -> str:
    if source is None:
        return "<builtin>"
    if isinstance(source, bytes):
        return f"<file, {len(source)} bytes>"
    return source

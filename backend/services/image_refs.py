"""
Resolve image references used by card templates and records.

A reference can be a local path, an http(s) URL or a base64 data URL.
Anything that cannot be decoded resolves to None so the face falls back to
its default visual; loading never raises.
"""
import base64
import binascii
import logging
from io import BytesIO
from pathlib import Path
from typing import Dict, Optional
from urllib.parse import unquote

import requests
from PIL import Image, UnidentifiedImageError

from settings import settings

logger = logging.getLogger(__name__)

IMAGE_FETCH_USER_AGENT = "id-card-exporter/1.0 (image-fetch)"
_SESSION = requests.Session()
_SESSION.headers.update({"User-Agent": IMAGE_FETCH_USER_AGENT})


class ImageRefLoader:
    """
    Loads and memoizes images for one export run.

    The same logo and background are drawn on every card, so each reference
    is fetched once. Returned images are shared; callers must copy before
    mutating.
    """

    def __init__(
        self,
        base_dir: Optional[Path] = None,
        remote_enabled: Optional[bool] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_dir = base_dir
        self.remote_enabled = settings.CARD_REMOTE_IMAGES_ENABLED if remote_enabled is None else remote_enabled
        self.timeout = settings.CARD_IMAGE_FETCH_TIMEOUT if timeout is None else timeout
        self.session = session or _SESSION
        self._cache: Dict[str, Optional[Image.Image]] = {}

    def load(self, ref: Optional[str]) -> Optional[Image.Image]:
        if not ref or not ref.strip():
            return None
        ref = ref.strip()
        if ref in self._cache:
            return self._cache[ref]
        img = self._load_uncached(ref)
        self._cache[ref] = img
        return img

    def _load_uncached(self, ref: str) -> Optional[Image.Image]:
        try:
            if ref.startswith("data:"):
                data = _decode_data_url(ref)
            elif ref.startswith(("http://", "https://")):
                data = self._fetch(ref)
            else:
                data = self._read_local(ref)
            if data is None:
                return None
            img = Image.open(BytesIO(data))
            img.load()
            return img.convert("RGBA")
        except (OSError, UnidentifiedImageError, ValueError, requests.RequestException):
            logger.warning("[image-refs] cannot load %s", _short(ref), exc_info=True)
            return None

    def _fetch(self, url: str) -> Optional[bytes]:
        if not self.remote_enabled:
            logger.info("[image-refs] remote images disabled, skipping %s", _short(url))
            return None
        resp = self.session.get(url, timeout=self.timeout)
        resp.raise_for_status()
        return resp.content

    def _read_local(self, ref: str) -> Optional[bytes]:
        path = Path(ref)
        if not path.is_absolute() and self.base_dir is not None:
            path = self.base_dir / path
        if not path.exists():
            logger.warning("[image-refs] file not found: %s", path)
            return None
        return path.read_bytes()


def _decode_data_url(ref: str) -> Optional[bytes]:
    header, _, payload = ref.partition(",")
    if "image/svg" in header:
        # Pillow has no SVG decoder.
        logger.info("[image-refs] svg data URL not supported, using fallback")
        return None
    if header.endswith(";base64"):
        try:
            return base64.b64decode(payload, validate=False)
        except binascii.Error as exc:
            raise ValueError("malformed base64 data URL") from exc
    return unquote(payload).encode("latin-1")


def _short(ref: str, limit: int = 80) -> str:
    return ref if len(ref) <= limit else f"{ref[:limit - 3]}..."

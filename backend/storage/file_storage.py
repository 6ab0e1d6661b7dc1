"""
File storage for exported card documents.

Documents are written under {media_root}/exports/. Writes go to a temporary
file in the same directory and are renamed into place, so a failed write
never leaves a partial PDF behind.
"""
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Optional

from domain.errors import AssemblyFailure
from domain.models import DocumentArtifact
from settings import settings

logger = logging.getLogger(__name__)

_UNSAFE_NAME_CHARS = re.compile(r"[^\w.\-]+", re.UNICODE)


def safe_file_name(name: str, default: str = "cards.pdf") -> str:
    """Strip directory parts and unsafe characters; ensure a .pdf suffix."""
    base = Path(name or "").name
    base = _UNSAFE_NAME_CHARS.sub("_", base).strip("._") or default
    if not base.lower().endswith(".pdf"):
        base = f"{base}.pdf"
    return base


class FileStorage:
    """Writes finished card documents to {media_root}/exports/."""

    def __init__(self, media_root: Optional[str] = None):
        self.media_root = Path(media_root or settings.CARD_MEDIA_ROOT)
        self.media_root.mkdir(parents=True, exist_ok=True)

    def get_exports_dir(self) -> Path:
        """Exports directory, created on first use."""
        path = self.media_root / "exports"
        path.mkdir(parents=True, exist_ok=True)
        return path

    def save_document(self, artifact: DocumentArtifact) -> Path:
        """
        Write a finalized document.

        Returns:
            Absolute path of the saved file

        Raises:
            AssemblyFailure: If the file cannot be written
        """
        target = self.get_exports_dir() / safe_file_name(artifact.name)
        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(
                dir=target.parent, prefix=".tmp-", suffix=".pdf", delete=False
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(artifact.content)
            os.replace(tmp_name, target)
        except OSError as exc:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise AssemblyFailure(f"Failed to write {target}: {exc}") from exc
        logger.info("[storage] saved %s (%d bytes)", target, len(artifact.content))
        return target.resolve()

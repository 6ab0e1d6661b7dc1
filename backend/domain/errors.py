"""
Error taxonomy for card export runs.

MissingRenderTarget is recoverable (the entity is skipped); CaptureFailure and
AssemblyFailure abort the run and reach the caller unchanged.
"""
from typing import Optional


class CardExportError(Exception):
    """Base class for export pipeline errors."""
    kind = "export"


class MissingRenderTarget(CardExportError):
    kind = "missing_render_target"

    def __init__(self, entity_id: str, face: str):
        super().__init__(f"No staged {face} surface for entity {entity_id}")
        self.entity_id = entity_id
        self.face = face


class CaptureFailure(CardExportError):
    kind = "capture"

    def __init__(self, message: str, surface_key: Optional[str] = None):
        super().__init__(message)
        self.surface_key = surface_key


class AssemblyFailure(CardExportError):
    kind = "assembly"

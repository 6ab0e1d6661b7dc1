import sys
from pathlib import Path

import pytest

# Tests import domain/, services/ etc. as top-level packages from backend/
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from settings import settings  # noqa: E402


@pytest.fixture
def offline_settings(monkeypatch):
    """No network fetches, scale 1 rasters and no readiness fallback wait."""
    monkeypatch.setattr(settings, "CARD_REMOTE_IMAGES_ENABLED", False)
    monkeypatch.setattr(settings, "CARD_RASTER_SCALE", 1.0)
    monkeypatch.setattr(settings, "CARD_READINESS_FALLBACK_SEC", 0.0)
    return settings

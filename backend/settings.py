import os

# Basic settings helper to read environment configuration.


def _as_bool(val: str | None, default: bool = False) -> bool:
    if val is None:
        return default
    return val.lower() in ("1", "true", "yes", "on")


def _as_float(val: str | None, default: float) -> float:
    if val is None or not val.strip():
        return default
    try:
        return float(val)
    except ValueError:
        return default


class Settings:
    def __init__(self) -> None:
        self.CARD_RASTER_SCALE: float = _as_float(os.getenv("CARD_RASTER_SCALE"), 3.0)
        self.CARD_READINESS_TIMEOUT_SEC: float = _as_float(os.getenv("CARD_READINESS_TIMEOUT_SEC"), 5.0)
        self.CARD_READINESS_FALLBACK_SEC: float = _as_float(os.getenv("CARD_READINESS_FALLBACK_SEC"), 0.1)
        self.CARD_FONT_PATH: str | None = os.getenv("CARD_FONT_PATH") or None
        self.CARD_BOLD_FONT_PATH: str | None = os.getenv("CARD_BOLD_FONT_PATH") or None
        self.CARD_IMAGE_FETCH_TIMEOUT: float = _as_float(os.getenv("CARD_IMAGE_FETCH_TIMEOUT"), 5.0)
        self.CARD_REMOTE_IMAGES_ENABLED: bool = _as_bool(os.getenv("CARD_REMOTE_IMAGES_ENABLED"), True)
        self.CARD_PAPER_SIZE: str = (os.getenv("CARD_PAPER_SIZE") or "a4").lower()
        self.CARD_MEDIA_ROOT: str = os.getenv("CARD_MEDIA_ROOT", "media")


settings = Settings()

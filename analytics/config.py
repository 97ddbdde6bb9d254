"""
Configuration for the live emotion session.
"""
from pydantic import BaseModel
import os


def _env_flag(name: str, default: str = "0") -> bool:
    return (os.getenv(name, default) or default).strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    """
    Runtime settings with environment-variable overrides.
    """
    CAMERA_INDEX: int = int(os.getenv("CAMERA_INDEX", "0"))

    CLASSIFIER_URL: str = os.getenv("CLASSIFIER_URL", "http://127.0.0.1:8000/predict")
    CLASSIFIER_TIMEOUT: float = float(os.getenv("CLASSIFIER_TIMEOUT", "5"))
    CLASSIFIER_WORKERS: int = int(os.getenv("CLASSIFIER_WORKERS", "4"))
    JPEG_QUALITY: int = int(os.getenv("JPEG_QUALITY", "90"))

    DETECT_INTERVAL: float = float(os.getenv("DETECT_INTERVAL", "1"))
    CLOCK_INTERVAL: float = float(os.getenv("CLOCK_INTERVAL", "1"))
    HISTORY_WINDOW: int = int(os.getenv("HISTORY_WINDOW", "30"))

    FACE_DETECTOR: str = os.getenv("FACE_DETECTOR", "opencv")
    MIN_FACE_SIZE: int = int(os.getenv("MIN_FACE_SIZE", "40"))

    DISCARD_STALE_RESULTS: bool = _env_flag("DISCARD_STALE_RESULTS")

    def __init__(self, **data):
        super().__init__(**data)
        # Normalize detector name and keep numeric knobs in usable ranges
        det = (self.FACE_DETECTOR or "opencv").strip().split()[0].lower()
        object.__setattr__(self, "FACE_DETECTOR", det)
        object.__setattr__(self, "JPEG_QUALITY", max(1, min(100, self.JPEG_QUALITY)))
        object.__setattr__(self, "HISTORY_WINDOW", max(1, self.HISTORY_WINDOW))
        object.__setattr__(self, "CLASSIFIER_WORKERS", max(1, self.CLASSIFIER_WORKERS))
        object.__setattr__(self, "MIN_FACE_SIZE", max(0, self.MIN_FACE_SIZE))

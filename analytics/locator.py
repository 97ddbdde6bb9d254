"""
Face localization adapters.

Both locators return at most one Region (the largest face) or None.
- DeepFaceLocator: DeepFace.extract_faces with a configurable detector backend
- HaarFaceLocator: OpenCV frontal-face Haar cascade, no extra model download
"""
from __future__ import annotations

import logging
from typing import List, Optional

import cv2
import numpy as np

from analytics.config import Settings
from analytics.models import Region

logger = logging.getLogger(__name__)

MIN_DET_CONF = 0.5    # if backend supplies a score


def _largest(regions: List[Region]) -> Optional[Region]:
    if not regions:
        return None
    return max(regions, key=lambda r: r.width * r.height)


class DeepFaceLocator:
    def __init__(self, detector_backend: str = "opencv", min_size: int = 40):
        self.detector_backend = detector_backend
        self.min_size = int(min_size)
        self._df = None

    @property
    def ready(self) -> bool:
        return self._df is not None

    def load(self) -> None:
        """Import DeepFace and warm the detector once; raises RuntimeError on failure."""
        try:
            # Lazy import so tests can monkeypatch sys.modules['deepface']
            from deepface import DeepFace
        except Exception as e:
            raise RuntimeError("DeepFace import failed. Ensure deepface/tensorflow stack is installed.") from e
        try:
            DeepFace.extract_faces(
                img_path=np.zeros((64, 64, 3), dtype=np.uint8),
                detector_backend=self.detector_backend,
                enforce_detection=False,
            )
        except Exception as e:
            raise RuntimeError(f"Face detector '{self.detector_backend}' failed to load: {e}") from e
        self._df = DeepFace
        logger.debug(f"[locator] deepface backend={self.detector_backend} ready")

    def detect(self, frame: np.ndarray) -> Optional[Region]:
        if self._df is None:
            return None
        dets = self._df.extract_faces(
            img_path=frame,
            detector_backend=self.detector_backend,
            enforce_detection=False,
            align=False,
        )
        regions: List[Region] = []
        for d in dets or []:
            fa = (d or {}).get("facial_area") or {}
            # with enforce_detection=False a miss comes back as the whole image at confidence 0
            conf = (d or {}).get("confidence", 1.0)
            try:
                conf = float(conf)
            except (TypeError, ValueError):
                conf = 1.0
            if conf < MIN_DET_CONF:
                continue
            w, h = int(fa.get("w", 0)), int(fa.get("h", 0))
            if w < self.min_size or h < self.min_size:
                continue
            regions.append(Region(x=int(fa.get("x", 0)), y=int(fa.get("y", 0)), width=w, height=h))
        return _largest(regions)


class HaarFaceLocator:
    def __init__(self, min_size: int = 40, scale_factor: float = 1.1, min_neighbors: int = 5):
        self.min_size = int(min_size)
        self.scale_factor = scale_factor
        self.min_neighbors = min_neighbors
        self._cascade = None

    @property
    def ready(self) -> bool:
        return self._cascade is not None

    def load(self) -> None:
        path = cv2.data.haarcascades + "haarcascade_frontalface_default.xml"
        cascade = cv2.CascadeClassifier(path)
        if cascade.empty():
            raise RuntimeError(f"Could not load Haar cascade: {path}")
        self._cascade = cascade
        logger.debug("[locator] haar cascade ready")

    def detect(self, frame: np.ndarray) -> Optional[Region]:
        if self._cascade is None:
            return None
        gray = cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY) if frame.ndim == 3 else frame
        size = max(1, self.min_size)
        faces = self._cascade.detectMultiScale(
            gray, self.scale_factor, self.min_neighbors, minSize=(size, size)
        )
        return _largest([Region(x=int(x), y=int(y), width=int(w), height=int(h)) for (x, y, w, h) in faces])


def build_locator(settings: Settings):
    if settings.FACE_DETECTOR == "haar":
        return HaarFaceLocator(min_size=settings.MIN_FACE_SIZE)
    return DeepFaceLocator(detector_backend=settings.FACE_DETECTOR, min_size=settings.MIN_FACE_SIZE)

"""
Webcam frame source (OpenCV).
"""
from __future__ import annotations

import logging
import threading
from typing import Optional

import cv2
import numpy as np

logger = logging.getLogger(__name__)


class CameraFrameSource:
    """
    Read-only access to the current webcam frame.

    read() returns None while the camera has not produced a frame yet; callers
    treat that as "not ready" and try again on their next tick.
    """
    def __init__(self, camera_index: int = 0):
        self.camera_index = camera_index
        self._cap = None
        self._lock = threading.Lock()

    def open(self) -> None:
        cap = cv2.VideoCapture(self.camera_index)
        if not cap.isOpened():
            raise RuntimeError(f"Could not open camera index {self.camera_index}")
        self._cap = cap
        logger.debug(f"[frames] camera {self.camera_index} opened")

    @property
    def ready(self) -> bool:
        return self._cap is not None

    def read(self) -> Optional[np.ndarray]:
        with self._lock:
            if self._cap is None:
                return None
            ok, frame = self._cap.read()
        if not ok or frame is None or not getattr(frame, "size", 0):
            return None
        return frame

    def release(self) -> None:
        with self._lock:
            if self._cap is not None:
                self._cap.release()
                self._cap = None

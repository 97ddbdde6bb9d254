"""
Remote emotion classification client.

Crops the face region, encodes it as JPEG, and posts it as a multipart file to
the classification service. Expected JSON reply:
    {"emotion": "Happy", "confidence": 0.81, "probabilities": {"Happy": 0.81, ...}}
"""
from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Dict, Optional

import cv2
import numpy as np
import requests
from pydantic import ValidationError

from analytics.config import Settings
from analytics.models import EMOTIONS, ClassificationResult, Region

logger = logging.getLogger(__name__)


class ClassifierError(RuntimeError):
    """Classification call did not complete: network, HTTP status, or malformed reply."""


def crop_region(frame: np.ndarray, region: Region) -> Optional[np.ndarray]:
    h, w = frame.shape[:2]
    reg = region.clamp(w, h)
    if reg is None:
        return None
    return frame[reg.y: reg.y + reg.height, reg.x: reg.x + reg.width]


def encode_crop(crop: np.ndarray, quality: int = 90) -> bytes:
    ok, buf = cv2.imencode(".jpg", crop, [int(cv2.IMWRITE_JPEG_QUALITY), int(quality)])
    if not ok:
        raise ClassifierError("JPEG encoding of face crop failed")
    return buf.tobytes()


def parse_response(data) -> Optional[ClassificationResult]:
    """
    Turn the service JSON into a ClassificationResult.

    Returns None when `probabilities` is absent (incomplete reply, not an error).
    An empty mapping is a valid reply; every emotion then counts as 0.
    Raises ClassifierError for anything else that does not fit.
    """
    if not isinstance(data, dict):
        raise ClassifierError(f"Unexpected response body: {type(data).__name__}")
    probs = data.get("probabilities")
    if probs is None:
        return None
    if not isinstance(probs, dict):
        raise ClassifierError("`probabilities` is not a mapping")
    if "emotion" not in data or "confidence" not in data:
        raise ClassifierError("Response is missing `emotion` or `confidence`")

    # Keys outside the known emotions are ignored
    dist: Dict[str, float] = {k: v for k, v in probs.items() if k in EMOTIONS}
    try:
        return ClassificationResult(
            label=data["emotion"],
            confidence=data["confidence"],
            distribution=dist,
        )
    except ValidationError as e:
        raise ClassifierError(f"Malformed classification: {e.errors()[0].get('msg', e)}") from e


class ClassifierClient:
    """HTTP client for the classification service, with a worker pool for async calls."""
    def __init__(self, settings: Settings, session: Optional[requests.Session] = None,
                 executor: Optional[ThreadPoolExecutor] = None):
        self.s = settings
        self.url = settings.CLASSIFIER_URL
        self._http = session or requests.Session()
        self._executor = executor or ThreadPoolExecutor(
            max_workers=settings.CLASSIFIER_WORKERS, thread_name_prefix="classifier"
        )

    def classify(self, crop: np.ndarray) -> Optional[ClassificationResult]:
        """Blocking call: encode -> POST -> parse."""
        payload = encode_crop(crop, self.s.JPEG_QUALITY)
        logger.debug(f"[classifier] POST {self.url} bytes={len(payload)}")
        try:
            resp = self._http.post(
                self.url,
                files={"file": ("face.jpg", payload, "image/jpeg")},
                timeout=self.s.CLASSIFIER_TIMEOUT,
            )
        except requests.RequestException as e:
            raise ClassifierError(f"Request to {self.url} failed: {e}") from e

        if resp.status_code != 200:
            raise ClassifierError(f"Service returned HTTP {resp.status_code}: {resp.text[:200]}")
        try:
            data = resp.json()
        except ValueError as e:
            raise ClassifierError("Service returned a non-JSON body") from e
        return parse_response(data)

    def submit(self, crop: np.ndarray) -> Future:
        return self._executor.submit(self.classify, crop)

    def close(self) -> None:
        self._executor.shutdown(wait=False)
        self._http.close()

"""Overlay and display-text helpers.

- draw_overlay: face rectangle + "label (xx.x%)" on a copy of the frame
- format_label / display_text: text shown next to the video and in the status API
"""
from __future__ import annotations
import cv2
import numpy as np
from typing import Optional, Tuple

from analytics.models import EMOTION_COLORS, ClassificationResult, CurrentSnapshot, Region

OVERLAY_COLOR: Tuple[int, int, int] = (136, 255, 0)  # #00ff88 in BGR


def format_label(result: ClassificationResult) -> str:
    return f"{result.label} ({result.percent()})"


def display_text(snapshot: CurrentSnapshot) -> str:
    if snapshot.status == "NoFace":
        return "No face detected"
    if snapshot.status == "Labeled" and snapshot.label:
        return f"{snapshot.label} ({snapshot.confidence * 100:.1f}%)"
    return "Initializing..."


def display_color(snapshot: CurrentSnapshot) -> Optional[str]:
    if snapshot.status == "Labeled" and snapshot.label:
        return EMOTION_COLORS.get(snapshot.label)
    return None


def draw_overlay(frame: np.ndarray,
                 region: Optional[Region] = None,
                 result: Optional[ClassificationResult] = None,
                 color: Tuple[int, int, int] = OVERLAY_COLOR) -> np.ndarray:
    """Draw the detected face box and, when classified, its label above it.

    Args:
        frame: BGR image (left untouched)
        region: detected face, or None for a clean frame
        result: classification for this region, or None to draw the box only
        color: BGR color for box and text

    Returns:
        Annotated copy of the frame
    """
    out = frame.copy()
    if region is None:
        return out

    h, w = out.shape[:2]
    reg = region.clamp(w, h)
    if reg is None:
        return out

    x, y = reg.x, reg.y
    cv2.rectangle(out, (x, y), (x + reg.width, y + reg.height), color, 3)
    if result is not None:
        cv2.putText(out, format_label(result), (x, max(0, y - 10)),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.6, color, 2, cv2.LINE_AA)
    return out

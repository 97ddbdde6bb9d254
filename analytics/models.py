"""
Pydantic data models for the live session and its projections.
"""
from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Annotated, Dict, List, Literal, Optional

EMOTIONS = ("Angry", "Disgust", "Fear", "Happy", "Sad", "Surprise", "Neutral")

Category = Literal["Angry", "Disgust", "Fear", "Happy", "Sad", "Surprise", "Neutral"]

EMOTION_COLORS: Dict[str, str] = {
    "Angry": "#ef4444",
    "Disgust": "#22c55e",
    "Fear": "#a855f7",
    "Happy": "#facc15",
    "Sad": "#3b82f6",
    "Surprise": "#f97316",
    "Neutral": "#06b6d4",
}

Probability = Annotated[float, Field(ge=0.0, le=1.0)]


class Region(BaseModel):
    x: int
    y: int
    width: int
    height: int

    def clamp(self, frame_w: int, frame_h: int) -> Optional["Region"]:
        """Clip to frame bounds; None when nothing of the box is left."""
        x0 = max(0, min(self.x, frame_w))
        y0 = max(0, min(self.y, frame_h))
        x1 = max(0, min(self.x + self.width, frame_w))
        y1 = max(0, min(self.y + self.height, frame_h))
        if x1 <= x0 or y1 <= y0:
            return None
        return Region(x=x0, y=y0, width=x1 - x0, height=y1 - y0)


class ClassificationResult(BaseModel):
    label: Category
    confidence: float = Field(ge=0.0, le=1.0)
    distribution: Dict[Category, Probability] = Field(default_factory=dict)

    def percent(self) -> str:
        return f"{self.confidence * 100:.1f}%"


class CurrentSnapshot(BaseModel):
    status: Literal["Detecting", "NoFace", "Labeled"] = "Detecting"
    label: Optional[Category] = None
    confidence: float = 0.0
    distribution: Dict[Category, Probability] = Field(default_factory=dict)


class AggregatorState(BaseModel):
    """Point-in-time copy of the history buffers and the snapshot."""
    history: Dict[Category, List[Probability]]
    snapshot: CurrentSnapshot


# projections


class TimeSeriesProjection(BaseModel):
    labels: List[int]
    series: Dict[Category, List[Probability]]


class DistributionProjection(BaseModel):
    labels: List[Category]
    values: List[Probability]

    def as_dict(self) -> Dict[str, float]:
        return dict(zip(self.labels, self.values))


# live model


class LiveStatus(BaseModel):
    running: bool
    started_at: float | None = None
    session_seconds: int = 0
    snapshot: CurrentSnapshot | None = None
    display: str | None = None
    color: str | None = None

"""
Chart-ready projections of the aggregator state.

- time_series_projection: per-emotion history, oldest first, on a fixed 1..W axis
- distribution_projection: latest distribution with every emotion present
- chart_payload: both of the above as line/pie dataset dicts with colors
"""
from __future__ import annotations
from typing import Dict

from analytics.models import (
    EMOTIONS,
    EMOTION_COLORS,
    AggregatorState,
    DistributionProjection,
    TimeSeriesProjection,
)


def time_series_projection(state: AggregatorState, window: int = 30) -> TimeSeriesProjection:
    series = {c: list(state.history.get(c, [])) for c in EMOTIONS}
    return TimeSeriesProjection(labels=list(range(1, int(window) + 1)), series=series)


def distribution_projection(state: AggregatorState) -> DistributionProjection:
    dist = state.snapshot.distribution
    return DistributionProjection(
        labels=list(EMOTIONS),
        values=[float(dist.get(c, 0.0)) for c in EMOTIONS],
    )


def chart_payload(state: AggregatorState, window: int = 30) -> Dict:
    """
    Line + pie datasets in the shape chart widgets expect:
      {"line": {"labels": [1..W], "datasets": [{label, data, borderColor, ...}]},
       "pie":  {"labels": [...], "datasets": [{data, backgroundColor}]}}
    """
    ts = time_series_projection(state, window)
    dist = distribution_projection(state)
    return {
        "line": {
            "labels": ts.labels,
            "datasets": [
                {
                    "label": c,
                    "data": ts.series[c],
                    "borderColor": EMOTION_COLORS[c],
                    "borderWidth": 2,
                    "tension": 0.4,
                }
                for c in EMOTIONS
            ],
        },
        "pie": {
            "labels": dist.labels,
            "datasets": [
                {
                    "data": dist.values,
                    "backgroundColor": [EMOTION_COLORS[c] for c in dist.labels],
                }
            ],
        },
    }

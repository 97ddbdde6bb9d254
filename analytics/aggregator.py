"""
Rolling per-emotion history and the latest classification snapshot.
"""
from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Deque, Dict, Iterable, Optional

from analytics.models import EMOTIONS, AggregatorState, ClassificationResult, CurrentSnapshot

logger = logging.getLogger(__name__)


class Aggregator:
    """
    Sole owner of the history buffers and the current snapshot.

    Every buffer is a deque bounded to `window` samples, oldest first. A merge
    appends one value to every category (0.0 when the result has none), so all
    buffers always share the same length. Once closed, writes are ignored.
    """
    def __init__(self, window: int = 30, categories: Iterable[str] = EMOTIONS,
                 discard_stale: bool = False):
        self.window = int(window)
        self.categories = tuple(categories)
        self.discard_stale = bool(discard_stale)
        self._lock = threading.Lock()
        self._history: Dict[str, Deque[float]] = {c: deque(maxlen=self.window) for c in self.categories}
        self._snapshot = CurrentSnapshot()
        self._last_seq: Optional[int] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def merge(self, result: ClassificationResult, seq: Optional[int] = None) -> bool:
        """
        Apply one classification result. Returns False when the merge was dropped
        (aggregator closed, or a stale tick with discard_stale enabled).
        """
        with self._lock:
            if self._closed:
                logger.debug(f"[aggregator] merge after close ignored seq={seq}")
                return False
            if self.discard_stale and seq is not None:
                if self._last_seq is not None and seq <= self._last_seq:
                    logger.debug(f"[aggregator] stale result dropped seq={seq} last={self._last_seq}")
                    return False
                self._last_seq = seq

            self._snapshot = CurrentSnapshot(
                status="Labeled",
                label=result.label,
                confidence=result.confidence,
                distribution=dict(result.distribution),
            )
            for c in self.categories:
                self._history[c].append(float(result.distribution.get(c, 0.0)))
            return True

    def record_no_face(self) -> bool:
        """Mark the snapshot as NoFace; distribution and history stay as they are."""
        with self._lock:
            if self._closed:
                return False
            self._snapshot = CurrentSnapshot(
                status="NoFace",
                label=None,
                confidence=0.0,
                distribution=dict(self._snapshot.distribution),
            )
            return True

    def close(self) -> None:
        with self._lock:
            self._closed = True

    def state(self) -> AggregatorState:
        with self._lock:
            return AggregatorState(
                history={c: list(buf) for c, buf in self._history.items()},
                snapshot=self._snapshot.model_copy(deep=True),
            )

    def snapshot(self) -> CurrentSnapshot:
        return self.state().snapshot

# analytics/live.py
"""
Live (real-time) emotion session.

Once per DETECT_INTERVAL the detection tick:
- grabs the current webcam frame (skips the tick if the camera is not ready)
- locates at most one face; on a miss the snapshot goes to NoFace
- crops the face and submits it to the remote classifier without waiting

Finished classifications are queued and applied by a single merge worker, so
history and snapshot updates never interleave. A separate 1 s clock counts
session seconds. Projections and the overlay are read on demand.
"""

from __future__ import annotations

import itertools
import logging
import queue
import threading
import time
from concurrent.futures import Future
from typing import Dict, Optional, Tuple

import cv2
import numpy as np

from analytics.aggregator import Aggregator
from analytics.classifier import ClassifierClient, ClassifierError, crop_region
from analytics.config import Settings
from analytics.frames import CameraFrameSource
from analytics.locator import build_locator
from analytics.models import (
    AggregatorState,
    ClassificationResult,
    DistributionProjection,
    LiveStatus,
    Region,
    TimeSeriesProjection,
)
from analytics.projection import chart_payload, distribution_projection, time_series_projection
from analytics.scheduler import Scheduler, SessionClock
from analytics.visual import display_color, display_text, draw_overlay

logger = logging.getLogger(__name__)


class LiveSession:
    """Owns the per-session state and wires frame source, locator, classifier and aggregator."""
    def __init__(self, settings: Settings, frame_source=None, locator=None, classifier=None):
        self.s = settings
        self.frames = frame_source if frame_source is not None else CameraFrameSource(settings.CAMERA_INDEX)
        self.locator = locator if locator is not None else build_locator(settings)
        self.classifier = classifier if classifier is not None else ClassifierClient(settings)
        self.aggregator = Aggregator(
            window=settings.HISTORY_WINDOW,
            discard_stale=settings.DISCARD_STALE_RESULTS,
        )
        self.clock = SessionClock()
        self.scheduler = Scheduler(
            self.tick,
            self.clock,
            detect_interval=settings.DETECT_INTERVAL,
            clock_interval=settings.CLOCK_INTERVAL,
        )

        self._seq = itertools.count(1)
        self._results: "queue.Queue[Tuple[int, Future]]" = queue.Queue()
        self._merge_lock = threading.Lock()
        self._merge_thread: Optional[threading.Thread] = None

        self._overlay_lock = threading.Lock()
        self._overlay_seq = 0
        self._overlay_frame: Optional[np.ndarray] = None
        self._overlay_region: Optional[Region] = None
        self._overlay: Optional[np.ndarray] = None

        self._run = False
        self._stopped = False
        self._started_at: Optional[float] = None

    # ---- lifecycle ----
    @property
    def running(self) -> bool:
        return self._run

    def start(self) -> None:
        """Load the face locator, open the camera, then start ticking. Raises RuntimeError on startup failure."""
        if self._run:
            return
        if self._stopped:
            raise RuntimeError("Session already stopped; create a new one")
        if not self.locator.ready:
            self.locator.load()
        if not self.frames.ready:
            self.frames.open()

        self._run = True
        self._started_at = time.time()
        self._merge_thread = threading.Thread(target=self._merge_loop, name="merge-worker", daemon=True)
        self._merge_thread.start()
        self.scheduler.start()
        logger.info(f"[live] session started camera={self.s.CAMERA_INDEX} detector={self.s.FACE_DETECTOR}")

    def stop(self) -> None:
        """Cancel ticks and close the aggregator; in-flight classifications are discarded."""
        if self._stopped:
            return
        self._stopped = True
        was_running = self._run
        self._run = False
        self.scheduler.stop()
        self.aggregator.close()
        if self._merge_thread is not None:
            self._merge_thread.join(timeout=2.0)
            self._merge_thread = None
        self.classifier.close()
        self.frames.release()
        if was_running:
            logger.info(f"[live] session stopped after {self.clock.seconds}s")

    # ---- tick pipeline ----
    def tick(self) -> Optional[Future]:
        """
        One detection tick. Returns the pending classification future, or None when
        the tick ended early (camera/locator not ready, or no face).
        """
        if not self.locator.ready:
            return None
        frame = self.frames.read()
        if frame is None:
            logger.debug("[live] frame not ready; tick skipped")
            return None

        seq = next(self._seq)
        region = self.locator.detect(frame)
        if region is not None:
            h, w = frame.shape[:2]
            region = region.clamp(w, h)

        if region is None:
            logger.debug(f"[live] tick {seq} no face")
            self.aggregator.record_no_face()
            self._set_overlay(seq, frame, None)
            return None

        self._set_overlay(seq, frame, region)
        crop = crop_region(frame, region).copy()
        logger.debug(f"[live] tick {seq} face=({region.x},{region.y},{region.width},{region.height}) -> classify")
        future = self.classifier.submit(crop)
        future.add_done_callback(lambda f, seq=seq: self._results.put((seq, f)))
        return future

    # ---- merge handler (single writer) ----
    def _merge_loop(self) -> None:
        while self._run:
            try:
                seq, fut = self._results.get(timeout=0.1)
            except queue.Empty:
                continue
            self._apply(seq, fut)

    def drain(self) -> int:
        """Apply all queued classification outcomes in the caller's thread; returns how many."""
        n = 0
        while True:
            try:
                seq, fut = self._results.get_nowait()
            except queue.Empty:
                return n
            self._apply(seq, fut)
            n += 1

    def _apply(self, seq: int, future: Future) -> bool:
        with self._merge_lock:
            if future.cancelled():
                return False
            exc = future.exception()
            if exc is not None:
                if isinstance(exc, ClassifierError):
                    logger.warning(f"[live] tick {seq} abandoned: {exc}")
                else:
                    logger.error(f"[live] tick {seq} classification crashed: {exc!r}", exc_info=exc)
                return False

            result: Optional[ClassificationResult] = future.result()
            if result is None:
                logger.debug(f"[live] tick {seq} returned no probabilities; abandoned")
                return False

            merged = self.aggregator.merge(result, seq=seq)
            if merged:
                self._label_overlay(seq, result)
            return merged

    # ---- overlay ----
    def _set_overlay(self, seq: int, frame: np.ndarray, region: Optional[Region]) -> None:
        annotated = draw_overlay(frame, region)
        with self._overlay_lock:
            self._overlay_seq = seq
            self._overlay_frame = frame
            self._overlay_region = region
            self._overlay = annotated

    def _label_overlay(self, seq: int, result: ClassificationResult) -> None:
        with self._overlay_lock:
            # only the tick currently on screen may be labeled
            if seq != self._overlay_seq or self._overlay_frame is None or self._overlay_region is None:
                return
            self._overlay = draw_overlay(self._overlay_frame, self._overlay_region, result)

    def overlay(self) -> Optional[np.ndarray]:
        with self._overlay_lock:
            return None if self._overlay is None else self._overlay.copy()

    def overlay_jpeg(self, quality: int = 85) -> Optional[bytes]:
        img = self.overlay()
        if img is None:
            return None
        ok, buf = cv2.imencode(".jpg", img, [int(cv2.IMWRITE_JPEG_QUALITY), int(quality)])
        return buf.tobytes() if ok else None

    # ---- reads ----
    def state(self) -> AggregatorState:
        return self.aggregator.state()

    def time_series(self) -> TimeSeriesProjection:
        return time_series_projection(self.state(), self.s.HISTORY_WINDOW)

    def distribution(self) -> DistributionProjection:
        return distribution_projection(self.state())

    def chart(self) -> Dict:
        return chart_payload(self.state(), self.s.HISTORY_WINDOW)

    def status(self) -> LiveStatus:
        snap = self.aggregator.snapshot()
        return LiveStatus(
            running=self._run,
            started_at=self._started_at,
            session_seconds=self.clock.seconds,
            snapshot=snap,
            display=display_text(snap),
            color=display_color(snap),
        )

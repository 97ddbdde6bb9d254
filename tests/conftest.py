import pytest
import numpy as np
from concurrent.futures import Future

from analytics.config import Settings
from analytics.models import ClassificationResult, EMOTIONS, Region


class FakeFrames:
    """Frame source that hands out a fixed frame (or None while not ready)."""
    def __init__(self, frame=None):
        self.frame = frame if frame is not None else np.full((120, 160, 3), 40, dtype=np.uint8)
        self.ready = True
        self.released = False
    def open(self): self.ready = True
    def read(self): return None if self.frame is None else self.frame.copy()
    def release(self): self.released = True


class FakeLocator:
    """Locator returning queued regions, then the last one forever."""
    def __init__(self, *regions):
        self.regions = list(regions) or [Region(x=40, y=20, width=60, height=60)]
        self.ready = True
        self.loaded = 0
    def load(self):
        self.loaded += 1
        self.ready = True
    def detect(self, frame):
        if len(self.regions) > 1:
            return self.regions.pop(0)
        return self.regions[0]


class FakeClassifier:
    """Each submit() returns a fresh, unresolved Future the test resolves by hand."""
    def __init__(self):
        self.futures = []
        self.crops = []
        self.closed = False
    def submit(self, crop):
        f = Future()
        self.crops.append(crop)
        self.futures.append(f)
        return f
    def close(self): self.closed = True


def make_result(label="Happy", confidence=None, **probs) -> ClassificationResult:
    if not probs:
        probs = {label: 0.8}
    conf = probs.get(label, 0.0) if confidence is None else confidence
    return ClassificationResult(label=label, confidence=conf, distribution=probs)


@pytest.fixture
def settings():
    return Settings(DETECT_INTERVAL=0.02, CLOCK_INTERVAL=0.02, HISTORY_WINDOW=30)

@pytest.fixture
def frames():
    return FakeFrames()

@pytest.fixture
def locator():
    return FakeLocator()

@pytest.fixture
def classifier():
    return FakeClassifier()

@pytest.fixture
def session(settings, frames, locator, classifier):
    from analytics.live import LiveSession
    s = LiveSession(settings, frame_source=frames, locator=locator, classifier=classifier)
    yield s
    s.stop()

@pytest.fixture
def all_emotions():
    return EMOTIONS

@pytest.fixture
def result_factory():
    return make_result

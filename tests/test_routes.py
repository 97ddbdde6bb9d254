
import pytest
from fastapi.testclient import TestClient

from analytics.live import LiveSession
from analytics.models import EMOTIONS
from api.main import app
import api.routes as routes


@pytest.fixture
def fake_session_factory(monkeypatch, settings, frames, locator, classifier):
    created = []
    def build(s):
        sess = LiveSession(settings, frame_source=frames, locator=locator, classifier=classifier)
        created.append(sess)
        return sess
    monkeypatch.setattr(routes, "build_session", build)
    monkeypatch.setitem(routes.live_session, "session", None)
    yield created
    for sess in created:
        sess.stop()


def test_health():
    client = TestClient(app)
    r = client.get("/health")
    assert r.status_code == 200 and r.json() == {"status": "ok"}


def test_status_without_session(monkeypatch):
    monkeypatch.setitem(routes.live_session, "session", None)
    client = TestClient(app)
    r = client.get("/live/status")
    assert r.status_code == 200
    assert r.json()["running"] is False
    assert client.get("/live/timeseries").status_code == 404
    assert client.get("/live/overlay").status_code == 404


def test_live_start_stop(fake_session_factory):
    client = TestClient(app)
    r = client.post("/live/start")
    assert r.status_code == 200 and r.json()["status"] == "started"
    assert client.post("/live/start").json()["status"] == "already_running"
    assert len(fake_session_factory) == 1

    body = client.get("/live/status").json()
    assert body["running"] is True
    assert isinstance(body["session_seconds"], int)

    assert client.post("/live/stop").json()["status"] == "stopped"
    assert client.post("/live/stop").json()["status"] == "not_running"


def test_live_start_failure_maps_to_503(monkeypatch, settings, frames, classifier):
    class BrokenLocator:
        ready = False
        def load(self):
            raise RuntimeError("Could not load Haar cascade")
        def detect(self, frame):
            return None

    monkeypatch.setattr(routes, "build_session",
                        lambda s: LiveSession(settings, frame_source=frames, locator=BrokenLocator(), classifier=classifier))
    monkeypatch.setitem(routes.live_session, "session", None)
    client = TestClient(app)
    r = client.post("/live/start")
    assert r.status_code == 503
    assert "Haar" in r.json()["detail"]


def test_projection_endpoints(monkeypatch, session, result_factory):
    monkeypatch.setitem(routes.live_session, "session", session)
    session.tick().set_result(result_factory("Happy", Happy=0.8, Sad=0.1))
    session.drain()

    client = TestClient(app)
    ts = client.get("/live/timeseries").json()
    assert ts["labels"] == list(range(1, 31))
    assert ts["series"]["Happy"] == [0.8]

    dist = client.get("/live/distribution").json()
    assert dist["labels"] == list(EMOTIONS)
    assert dict(zip(dist["labels"], dist["values"]))["Sad"] == 0.1

    chart = client.get("/live/chart").json()
    assert set(chart) == {"line", "pie"}

    status = client.get("/live/status").json()
    assert status["display"] == "Happy (80.0%)"
    assert status["snapshot"]["status"] == "Labeled"

    r = client.get("/live/overlay")
    assert r.status_code == 200
    assert r.headers["content-type"] == "image/jpeg"


def test_live_start_does_not_block_other_requests(monkeypatch, settings, frames, locator, classifier):
    import threading, time

    entered = threading.Event()
    release = threading.Event()

    class SlowStartSession(LiveSession):
        def start(self):
            entered.set()
            release.wait(5.0)
            super().start()

    created = []
    def build(s):
        sess = SlowStartSession(settings, frame_source=frames, locator=locator, classifier=classifier)
        created.append(sess)
        return sess
    monkeypatch.setattr(routes, "build_session", build)
    monkeypatch.setitem(routes.live_session, "session", None)

    with TestClient(app) as client:
        responses = {}
        t = threading.Thread(target=lambda: responses.setdefault("start", client.post("/live/start")))
        t.start()
        try:
            assert entered.wait(2.0)
            t0 = time.time()
            r = client.get("/health")
            elapsed = time.time() - t0
            # start() is still blocked while /health answers
            assert not release.is_set()
            assert r.status_code == 200
            assert elapsed < 2.0
        finally:
            release.set()
            t.join(5.0)
        assert responses["start"].json()["status"] == "started"
    # leaving the client runs the lifespan shutdown, which stops the session
    assert not created[0].running


def test_shutdown_stops_live_session(monkeypatch, session):
    monkeypatch.setitem(routes.live_session, "session", session)
    with TestClient(app) as client:
        assert client.get("/health").status_code == 200
    assert session.aggregator.closed

"""
Tests for the HTTP API.
"""

import pytest
from fastapi.testclient import TestClient

from models.crowd import DetectionResult
from models.connection import TransportMode
from runtime.context import RuntimeContext
from runtime.file_analysis import FileAnalyzer
from runtime.session import StreamSession
from web.app import create_app

from conftest import FakeDetector, FakeSource, make_frame


@pytest.fixture
def sources():
    return {
        TransportMode.PRIMARY: FakeSource(source_id="primary"),
        TransportMode.FALLBACK: FakeSource(source_id="fallback", has_pixels=False),
    }


@pytest.fixture
def upload_source():
    return FakeSource(frames=[make_frame(100)] * 10, seekable=True, source_id="upload")


@pytest.fixture
def ctx(valid_config, idle_sampling, sources, upload_source):
    session = StreamSession(
        detector=FakeDetector(),
        source_factory=lambda url, mode: sources[mode],
        sampling=idle_sampling,
    )
    analyzer = FileAnalyzer(
        detector=FakeDetector(results=[DetectionResult(people_count=25, confidence=0.87)]),
        source_factory=lambda path: upload_source,
    )
    return RuntimeContext(config=valid_config, session=session, file_analyzer=analyzer)


@pytest.fixture
def client(ctx):
    with TestClient(create_app(ctx)) as c:
        yield c


class TestStatus:
    def test_initial_status(self, client):
        r = client.get("/api/status")

        assert r.status_code == 200
        body = r.json()
        assert body["connection"]["state"] == "idle"
        assert body["stream"] is None
        assert body["detector_ready"] is True
        assert body["file_analysis"] == {"busy": False, "progress": 0}


class TestStreamEndpoints:
    def test_connect(self, client):
        r = client.post("/api/stream/connect", json={"url": "http://cam:8080", "kind": "http"})

        assert r.status_code == 200
        body = r.json()
        assert body["connection"]["state"] == "connected_primary"
        assert body["stream"]["canonical_url"] == "http://cam:8080/videofeed"
        assert body["stream"]["transport_mode"] == "primary"

    def test_connect_blank_url(self, client):
        r = client.post("/api/stream/connect", json={"url": "  "})

        assert r.status_code == 400
        assert client.get("/api/status").json()["connection"]["state"] == "idle"

    def test_connect_bad_kind(self, client):
        r = client.post("/api/stream/connect", json={"url": "http://cam", "kind": "ftp"})

        assert r.status_code == 400

    def test_connect_twice_conflicts(self, client):
        client.post("/api/stream/connect", json={"url": "http://cam:8080"})
        r = client.post("/api/stream/connect", json={"url": "http://cam:9090"})

        assert r.status_code == 409

    def test_connect_unreachable(self, client, sources):
        sources[TransportMode.PRIMARY].fail_open = True

        r = client.post("/api/stream/connect", json={"url": "http://cam:8080"})

        assert r.status_code == 200
        connection = r.json()["connection"]
        assert connection["state"] == "error"
        assert connection["reason"] == "unreachable"
        assert connection["error_message"]

    def test_media_error_switches_to_fallback(self, client):
        client.post("/api/stream/connect", json={"url": "http://cam:8080"})

        r = client.post("/api/stream/media-error")

        assert r.status_code == 200
        assert r.json()["connection"]["state"] == "connected_fallback"
        view = client.get("/api/stream/view").json()
        assert view["url"] == "http://cam:8080/video"
        assert view["transport_mode"] == "fallback"
        assert view["preview_url"] is None

    def test_view_primary(self, client):
        client.post("/api/stream/connect", json={"url": "http://cam:8080/video"})

        view = client.get("/api/stream/view").json()

        assert view["url"] == "http://cam:8080/videofeed"
        assert view["preview_url"] == "/api/stream/live.mjpg"

    def test_view_without_stream(self, client):
        assert client.get("/api/stream/view").status_code == 404

    def test_live_preview_without_stream(self, client):
        assert client.get("/api/stream/live.mjpg").status_code == 404

    def test_disconnect(self, client):
        client.post("/api/stream/connect", json={"url": "http://cam:8080"})

        r = client.post("/api/stream/disconnect")

        assert r.status_code == 200
        body = r.json()
        assert body["connection"]["state"] == "disconnected"
        assert body["stream"] is None
        assert body["crowd_status"] is None


class TestAlertsEndpoints:
    def test_toggle_alerts(self, client):
        r = client.put("/api/alerts", json={"enabled": False})

        assert r.status_code == 200
        assert r.json() == {"alerts_enabled": False}
        assert client.get("/api/status").json()["alerts_enabled"] is False

    def test_file_alert_pushed_over_websocket(self, client):
        with client.websocket_connect("/api/alerts/ws") as ws:
            r = client.post("/api/analyze", files={"file": ("clip.mp4", b"not really a video", "video/mp4")})
            assert r.status_code == 200
            message = ws.receive_json()

        assert message["origin"] == "file"
        assert message["people_count"] == 25


class TestAnalyze:
    def test_analyze_upload(self, client):
        r = client.post("/api/analyze", files={"file": ("clip.mp4", b"data", "video/mp4")})

        assert r.status_code == 200
        body = r.json()
        assert body["frames_sampled"] == 5
        assert body["status"]["people_count"] == 25
        assert body["status"]["label"] == "Crowded"
        assert body["alert"]["origin"] == "file"

    def test_analyze_respects_alert_toggle(self, client):
        client.put("/api/alerts", json={"enabled": False})

        body = client.post("/api/analyze", files={"file": ("clip.mp4", b"data", "video/mp4")}).json()

        assert body["alert"] is None

    def test_analyze_unreadable(self, client, upload_source):
        upload_source.fail_open = True

        r = client.post("/api/analyze", files={"file": ("clip.mp4", b"data", "video/mp4")})

        assert r.status_code == 422

    def test_analyze_does_not_touch_session(self, client):
        client.post("/api/analyze", files={"file": ("clip.mp4", b"data", "video/mp4")})

        body = client.get("/api/status").json()
        assert body["connection"]["state"] == "idle"
        assert body["crowd_status"] is None


class TestInfoEndpoints:
    def test_demo_streams(self, client):
        body = client.get("/api/streams/demo").json()

        assert body["default_kind"] == "http"
        assert body["streams"] == [{"id": "cam1", "name": "Main Entrance", "url": "http://demo/cam1"}]

    def test_health(self, client):
        body = client.get("/api/health").json()

        assert body["detector_backend"] == "simulated"
        assert body["detector_ready"] is True
        assert body["uptime_seconds"] >= 0

    def test_unknown_api_path(self, client):
        assert client.get("/api/nope").status_code == 404

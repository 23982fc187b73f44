from fastapi.testclient import TestClient

from conftest import wait_until
from readaloud.adapters.camera.mock_camera import MockCamera
from readaloud.adapters.recognition.mock_recognizer import MockRecognizer
from readaloud.adapters.tts.mock_speech import MockSpeech
from readaloud.services.api import create_app


def make_client(status, frames=(), script=None, fail_open=False):
    speech = MockSpeech(status)
    app = create_app(
        status=status,
        camera_factory=lambda: MockCamera(status, images=frames, fail_open=fail_open),
        recognizer=MockRecognizer(status, script or {}),
        speech=speech,
    )
    return TestClient(app), speech


def scan_state(client, sid):
    return client.get(f"/scan/{sid}").json()["state"]


def test_scan_completes_and_text_can_be_read_aloud(status):
    client, speech = make_client(status, frames=["blank", "sign"], script={"sign": "EXIT\nONLY"})
    with client:
        r = client.post("/scan/start").json()
        assert r["ok"] is True
        sid = r["session_id"]

        r = client.get(f"/scan/{sid}", params={"wait": 5}).json()
        assert r["ok"] is True
        assert r["result"] == {"kind": "completed", "text": "EXIT\nONLY", "reason": None}
        assert wait_until(lambda: scan_state(client, sid) == "stopped")

        s = client.get("/status").json()
        assert s["busy"] is False
        assert s["last_text"] == "EXIT\nONLY"
        assert s["counters"]["submitted"] == 2

        r = client.post("/playback/toggle", json={}).json()
        assert r == {"ok": True, "state": "speaking", "text": "EXIT\nONLY", "error_code": None}
        r = client.post("/playback/toggle", json={}).json()
        assert r["state"] == "idle"
        assert speech.spoken == ["EXIT\nONLY"]
        assert client.get("/status").json()["playback"] == "idle"


def test_second_scan_is_busy_until_cancelled(status):
    client, _ = make_client(status, frames=["blank"])
    with client:
        sid = client.post("/scan/start").json()["session_id"]

        r = client.post("/scan/start").json()
        assert r["ok"] is False
        assert r["error_code"] == "ERR_BUSY"
        assert r["session_id"] == sid

        r = client.post(f"/scan/{sid}/cancel").json()
        assert r["ok"] is True and r["cancelled"] is True
        r = client.post(f"/scan/{sid}/cancel").json()
        assert r["ok"] is True and r["cancelled"] is False

        r = client.get(f"/scan/{sid}", params={"wait": 1}).json()
        assert r["result"] == {"kind": "cancelled", "text": None, "reason": "user"}

        assert wait_until(lambda: scan_state(client, sid) == "stopped")
        r = client.post("/scan/start").json()
        assert r["ok"] is True
        assert r["session_id"] != sid


def test_camera_failure_is_reported_as_cancelled(status):
    client, _ = make_client(status, frames=["sign"], fail_open=True)
    with client:
        r = client.post("/scan/start").json()
        assert r["ok"] is False
        assert r["error_code"] == "ERR_DEVICE_UNAVAILABLE"
        assert r["result"]["reason"] == "device_unavailable"


def test_unknown_session(status):
    client, _ = make_client(status)
    with client:
        assert client.get("/scan/nope").json()["error_code"] == "ERR_NOT_FOUND"
        assert client.post("/scan/nope/cancel").json()["error_code"] == "ERR_NOT_FOUND"


def test_playback_without_text(status):
    client, speech = make_client(status)
    with client:
        r = client.post("/playback/toggle", json={}).json()
        assert r["ok"] is False
        assert r["error_code"] == "ERR_NO_TEXT"
        assert speech.spoken == []


def test_health(status):
    client, _ = make_client(status)
    with client:
        r = client.get("/health").json()
        assert r["api"] is True
        assert r["recognizer"] == "MockRecognizer"
        assert r["speech"] == "MockSpeech"


def test_web_front_end_serves_page_and_api():
    from readaloud.web.app import app as web_app

    client = TestClient(web_app)
    page = client.get("/")
    assert page.status_code == 200
    assert 'id="scan"' in page.text
    assert client.get("/static/app.js").status_code == 200
    assert client.get("/scan/nope").json()["error_code"] == "ERR_NOT_FOUND"


def test_web_front_end_routes_scans_to_the_given_service(status):
    from readaloud.web.app import create_web_app

    api = create_app(status=status,
                     camera_factory=lambda: MockCamera(status, images=["sign"]),
                     recognizer=MockRecognizer(status, {"sign": "PUSH"}),
                     speech=MockSpeech(status))
    client = TestClient(create_web_app(api))

    page = client.get("/")
    assert page.headers["content-type"].startswith("text/html")
    sid = client.post("/scan/start").json()["session_id"]
    r = client.get(f"/scan/{sid}", params={"wait": 5}).json()
    assert r["result"]["text"] == "PUSH"


def test_new_scan_waits_until_previous_camera_is_released(status):
    recognizer = MockRecognizer(status, {"text": "TEXT"})
    recognizer.release.clear()
    cameras = []

    def factory():
        cameras.append(MockCamera(status, images=["text"]))
        return cameras[-1]

    app = create_app(status=status, camera_factory=factory, recognizer=recognizer,
                     speech=MockSpeech(status))
    with TestClient(app) as client:
        sid = client.post("/scan/start").json()["session_id"]
        assert recognizer.entered.wait(2)
        assert client.post(f"/scan/{sid}/cancel").json()["cancelled"] is True

        r = client.post("/scan/start").json()
        assert r["ok"] is False
        assert r["error_code"] == "ERR_BUSY"
        assert r["state"] == "finishing"
        assert len(cameras) == 1

        recognizer.release.set()
        assert app.state.sessions[sid].wait_stopped(timeout=2)
        assert cameras[0].released.is_set()
        recognizer.release.clear()
        r = client.post("/scan/start").json()
        assert r["ok"] is True
        client.post(f"/scan/{r['session_id']}/cancel")
        recognizer.release.set()


def test_camera_configure_error_does_not_leave_the_service_busy(status):
    class BrokenOpenCamera(MockCamera):
        def _open(self):
            raise RuntimeError("cannot set format")

    app = create_app(status=status, camera_factory=lambda: BrokenOpenCamera(status),
                     recognizer=MockRecognizer(status), speech=MockSpeech(status))
    with TestClient(app) as client:
        first = client.post("/scan/start")
        assert first.status_code == 200
        assert first.json()["error_code"] == "ERR_DEVICE_UNAVAILABLE"
        assert app.state.sessions[first.json()["session_id"]].wait_stopped(timeout=2)
        second = client.post("/scan/start").json()
        assert second["error_code"] == "ERR_DEVICE_UNAVAILABLE"

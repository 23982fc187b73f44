import os
import threading
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager
from fastapi import FastAPI
from dotenv import load_dotenv
from readaloud.services.models import (
    ScanResultOut, ScanStartResponse, ScanCancelResponse, ScanStatusResponse,
    PlaybackRequest, PlaybackResponse, PipelineCounters, StatusResponse,
)
from readaloud.services.status_store import StatusStore
from readaloud.orchestrator import errors
from readaloud.orchestrator.contracts import PlaybackState, ScanResult, SessionState
from readaloud.orchestrator.playback import PlaybackController
from readaloud.orchestrator.state_machine import ScanController

load_dotenv(override=False)

# Polled sessions kept for GET /scan/{id}; older ones are forgotten
MAX_TRACKED_SESSIONS = 8


def build_recognizer(status: StatusStore):
    """RECOGNIZER_ADAPTER: tesseract | claude | kimi | mock  (default: tesseract)"""
    name = os.getenv("RECOGNIZER_ADAPTER", "tesseract").lower()
    recognizer = None
    if name == "claude":
        from readaloud.adapters.recognition.claude_recognizer import ClaudeRecognizer
        recognizer = ClaudeRecognizer(status)
    elif name == "kimi":
        from readaloud.adapters.recognition.kimi_recognizer import KimiRecognizer
        recognizer = KimiRecognizer(status)
    elif name == "mock":
        from readaloud.adapters.recognition.mock_recognizer import MockRecognizer
        recognizer = MockRecognizer(status)

    if recognizer is not None and not recognizer.ready:
        status.log(f"recognizer: {type(recognizer).__name__} not ready, falling back to tesseract")
        recognizer = None
    if recognizer is None:
        from readaloud.adapters.recognition.tesseract_recognizer import TesseractRecognizer
        recognizer = TesseractRecognizer(status)
    status.log(f"recognizer adapter: {type(recognizer).__name__}")
    return recognizer


def build_camera_factory(status: StatusStore):
    """CAMERA_ADAPTER: cv2 | mock  (default: cv2). Returns a new session per scan."""
    name = os.getenv("CAMERA_ADAPTER", "cv2").lower()
    if name == "mock":
        from readaloud.adapters.camera.mock_camera import MockCamera, blank_image
        frames_dir = os.getenv("MOCK_FRAMES_DIR")
        status.log(f"camera adapter: mock ({frames_dir or 'blank frames'})")
        if frames_dir:
            return lambda: MockCamera.from_dir(status, frames_dir, interval_s=0.2)
        return lambda: MockCamera(status, images=[blank_image()], interval_s=0.2)
    from readaloud.adapters.camera.cv2_camera import CV2Camera
    status.log("camera adapter: cv2")
    return lambda: CV2Camera(status)


def build_speech(status: StatusStore):
    """SPEECH_ADAPTER: local | edge | mock  (default: local)"""
    name = os.getenv("SPEECH_ADAPTER", "local").lower()
    if name == "edge":
        from readaloud.adapters.tts.edge_speech import EdgeSpeech
        speech = EdgeSpeech(status)
    elif name == "mock":
        from readaloud.adapters.tts.mock_speech import MockSpeech
        speech = MockSpeech(status)
    else:
        from readaloud.adapters.tts.player_local import LocalSpeech
        speech = LocalSpeech(status)
    status.log(f"speech adapter: {type(speech).__name__}")
    return speech


def _result_out(result: ScanResult | None) -> ScanResultOut | None:
    if result is None:
        return None
    return ScanResultOut(kind=result.kind, text=result.text, reason=result.reason)


def create_app(status: StatusStore | None = None, camera_factory=None,
               recognizer=None, speech=None) -> FastAPI:
    status = status or StatusStore()
    camera_factory = camera_factory or build_camera_factory(status)
    recognizer = recognizer or build_recognizer(status)
    speech = speech or build_speech(status)
    playback = PlaybackController(speech, status)
    wait_max_s = float(os.getenv("SCAN_WAIT_MAX_S", "30"))

    # terminal results land here, one at a time, off the capture thread
    foreground = ThreadPoolExecutor(max_workers=1, thread_name_prefix="foreground")
    sessions: "OrderedDict[str, ScanController]" = OrderedDict()
    start_lock = threading.Lock()

    def active() -> ScanController | None:
        return next(reversed(sessions.values()), None)

    def on_result(result: ScanResult):
        status.record_result(result)
        status.set_busy(False)
        if result.is_completed:
            status.log(f"RESULT: completed ({len(result.text)} chars)")
        else:
            status.log(f"RESULT: cancelled reason={result.reason}")

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        scan = active()
        if scan is not None:
            scan.cancel()
        playback.speech.stop_speaking()
        foreground.shutdown(wait=False)

    app = FastAPI(title="readaloud", lifespan=lifespan)
    app.state.status = status
    app.state.playback = playback
    app.state.sessions = sessions

    @app.post("/scan/start", response_model=ScanStartResponse)
    def scan_start():
        with start_lock:
            current = active()
            if current is not None and current.state in (SessionState.RUNNING, SessionState.FINISHING):
                status.log(f"SCAN_START rejected: {current.session_id} busy")
                return ScanStartResponse(ok=False, session_id=current.session_id,
                                         state=current.state.value, error_code=errors.ERR_BUSY)
            scan = ScanController(camera_factory(), recognizer, status,
                                  on_result=on_result, dispatch=foreground.submit)
            sessions[scan.session_id] = scan
            while len(sessions) > MAX_TRACKED_SESSIONS:
                sessions.popitem(last=False)
            status.session_id = scan.session_id
            status.set_busy(True)
            handle = scan.begin_scan()

        result = handle.result(timeout=0)
        if result is not None and result.reason == "device_unavailable":
            return ScanStartResponse(ok=False, session_id=scan.session_id, state=scan.state.value,
                                     error_code=errors.ERR_DEVICE_UNAVAILABLE,
                                     result=_result_out(result))
        return ScanStartResponse(ok=True, session_id=scan.session_id, state=scan.state.value)

    @app.post("/scan/{session_id}/cancel", response_model=ScanCancelResponse)
    def scan_cancel(session_id: str):
        scan = sessions.get(session_id)
        if scan is None:
            return ScanCancelResponse(ok=False, error_code=errors.ERR_NOT_FOUND)
        won = scan.cancel()
        status.log(f"SCAN_CANCEL: {session_id} won={won}")
        return ScanCancelResponse(ok=True, cancelled=won, state=scan.state.value)

    @app.get("/scan/{session_id}", response_model=ScanStatusResponse)
    def scan_status(session_id: str, wait: float = 0.0):
        """Poll a session. wait>0 long-polls until the result exists (capped by SCAN_WAIT_MAX_S)."""
        scan = sessions.get(session_id)
        if scan is None:
            return ScanStatusResponse(ok=False, session_id=session_id, error_code=errors.ERR_NOT_FOUND)
        result = scan.slot.get(timeout=max(0.0, min(wait, wait_max_s)))
        return ScanStatusResponse(ok=True, session_id=session_id, state=scan.state.value,
                                  result=_result_out(result))

    @app.post("/playback/toggle", response_model=PlaybackResponse)
    def playback_toggle(req: PlaybackRequest | None = None):
        text = (req.text if req is not None else None) or status.last_text
        if playback.state == PlaybackState.IDLE and not (text and text.strip()):
            return PlaybackResponse(ok=False, state=playback.state.value, error_code=errors.ERR_NO_TEXT)
        try:
            state = playback.toggle(text)
        except Exception as e:
            status.log(f"PLAYBACK error {type(e).__name__}: {e}")
            return PlaybackResponse(ok=False, state=playback.state.value, error_code=errors.ERR_UNKNOWN)
        return PlaybackResponse(ok=True, state=state.value, text=text)

    @app.get("/status", response_model=StatusResponse)
    def get_status():
        scan = active()
        counters = PipelineCounters(**scan.pipeline.counters()) if scan else None
        return StatusResponse(
            busy=status.busy,
            session_id=scan.session_id if scan else None,
            state=scan.state.value if scan else None,
            last_result=_result_out(status.last_result),
            last_text=status.last_text,
            playback=playback.state.value,
            counters=counters,
            logs=status.snapshot_logs(),
        )

    @app.get("/health")
    def health():
        """Adapter names and readiness."""
        sample_camera = active().camera if active() else None
        checks = {
            "api": True,
            "recognizer": type(recognizer).__name__,
            "recognizer_ready": bool(getattr(recognizer, "ready", True)),
            "speech": type(speech).__name__,
            "camera": sample_camera.name if sample_camera else os.getenv("CAMERA_ADAPTER", "cv2"),
        }
        checks["all_ok"] = checks["api"] and checks["recognizer_ready"]
        return checks

    return app


app = create_app()

import threading
import time
import uuid
from typing import Callable, Optional

from readaloud.orchestrator.contracts import ScanResult, SessionState, CancelReason
from readaloud.orchestrator.errors import DeviceUnavailable, ScanStateError
from readaloud.orchestrator.pipeline import FramePipeline

ResultCallback = Callable[[ScanResult], None]


def run_inline(fn, *args):
    fn(*args)


class ResultSlot:
    """Single-shot terminal result: written at most once, readable by waiters."""

    def __init__(self):
        self._lock = threading.Lock()
        self._ready = threading.Event()
        self._value: Optional[ScanResult] = None

    def put(self, result: ScanResult) -> bool:
        with self._lock:
            if self._ready.is_set():
                return False
            self._value = result
            self._ready.set()
            return True

    def get(self, timeout: float | None = None) -> Optional[ScanResult]:
        self._ready.wait(timeout)
        return self._value

    @property
    def filled(self) -> bool:
        return self._ready.is_set()


class ScanHandle:
    def __init__(self, controller: "ScanController"):
        self._controller = controller

    @property
    def session_id(self) -> str:
        return self._controller.session_id

    @property
    def state(self) -> SessionState:
        return self._controller.state

    def cancel(self) -> bool:
        return self._controller.cancel(self)

    def result(self, timeout: float | None = None) -> Optional[ScanResult]:
        """Block until the terminal result exists (or timeout). None on timeout."""
        return self._controller.slot.get(timeout)


class ScanController:
    """
    One scan session: camera -> pipeline -> exactly one ScanResult.

    Idle --begin_scan--> Running --(candidate | cancel, first wins)--> Finishing --> Stopped

    `dispatch(fn, *args)` schedules the terminal callback on the caller's
    foreground context (e.g. executor.submit, loop.call_soon_threadsafe).
    A controller is single-use; start a new one for the next scan.
    """

    def __init__(self, camera, recognizer, status_store,
                 on_result: Optional[ResultCallback] = None, dispatch=None):
        self.camera = camera
        self.status = status_store
        self.on_result = on_result
        self.dispatch = dispatch or run_inline
        self.session_id = str(uuid.uuid4())[:8]
        self.slot = ResultSlot()
        self.pipeline = FramePipeline(recognizer, self, status_store)
        self._lock = threading.Lock()
        self._state = SessionState.IDLE
        self._delivered = False
        self._capture_halted = False
        self._stopped = threading.Event()
        self._t0: float | None = None

    @property
    def state(self) -> SessionState:
        return self._state

    def wait_stopped(self, timeout: float | None = None) -> bool:
        """Block until the result is delivered and the camera is released."""
        return self._stopped.wait(timeout)

    def begin_scan(self) -> ScanHandle:
        with self._lock:
            if self._state != SessionState.IDLE:
                raise ScanStateError(f"scan {self.session_id} already {self._state.value}")
            self._state = SessionState.RUNNING
        self._t0 = time.time()
        self.status.log(f"scan {self.session_id}: start camera={self.camera.name}")
        handle = ScanHandle(self)
        try:
            self.camera.start(self.pipeline.on_frame, on_lost=self._on_camera_lost,
                              on_stopped=self._on_capture_stopped)
        except DeviceUnavailable as e:
            self.status.log(f"scan {self.session_id}: device unavailable: {e}")
            # no capture thread was started, so nothing is left to halt
            with self._lock:
                self._capture_halted = True
            self._finish(ScanResult.cancelled("device_unavailable"))
        return handle

    def report_candidate(self, text: str) -> bool:
        return self._finish(ScanResult.completed(text))

    def cancel(self, handle: Optional[ScanHandle] = None, reason: CancelReason = "user") -> bool:
        """Returns True if this cancel decided the session's outcome."""
        won = self._finish(ScanResult.cancelled(reason))
        if not won:
            self.status.log(f"scan {self.session_id}: cancel ignored ({self._state.value})")
        return won

    def _on_camera_lost(self):
        self._finish(ScanResult.cancelled("device_unavailable"))

    def _on_capture_stopped(self):
        with self._lock:
            self._capture_halted = True
        # capture thread died on its own while the scan was still live
        self._finish(ScanResult.cancelled("device_unavailable"))
        self._settle()

    def _finish(self, result: ScanResult) -> bool:
        with self._lock:
            if self._state != SessionState.RUNNING:
                return False
            self._state = SessionState.FINISHING
        self.camera.stop()
        self.slot.put(result)
        dt = int((time.time() - (self._t0 or time.time())) * 1000)
        self.status.log(f"scan {self.session_id}: {result.kind} dt={dt}ms")
        try:
            self.dispatch(self._deliver, result)
        except Exception as e:
            self.status.log(f"scan {self.session_id}: dispatch failed {type(e).__name__}: {e}, delivering inline")
            self._deliver(result)
        return True

    def _deliver(self, result: ScanResult):
        try:
            if self.on_result is not None:
                self.on_result(result)
        except Exception as e:
            self.status.log(f"scan {self.session_id}: result callback error {type(e).__name__}: {e}")
        finally:
            with self._lock:
                self._delivered = True
            self._settle()

    def _settle(self):
        # Stopped needs both the delivered result and a released camera
        with self._lock:
            if self._state != SessionState.FINISHING or not (self._delivered and self._capture_halted):
                return
            self._state = SessionState.STOPPED
        self._stopped.set()
        self.status.log(f"scan {self.session_id}: stopped")

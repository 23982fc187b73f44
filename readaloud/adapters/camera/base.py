"""
Capture session base class.

Single in-flight frame contract: every adapter delivers frames to its consumer
synchronously on one background thread and does not read the next frame until
the consumer returns. Frames the device produces in the meantime are skipped,
never queued. This is the pipeline's only backpressure.
"""
import threading
from abc import ABC, abstractmethod
from typing import Callable, Optional

from readaloud.orchestrator.contracts import Frame
from readaloud.orchestrator.errors import DeviceUnavailable

FrameConsumer = Callable[[Frame], None]
LostCallback = Callable[[], None]
StoppedCallback = Callable[[], None]


class CaptureSession(ABC):
    name = "capture"

    def __init__(self, status_store):
        self.status = status_store
        self._consumer: Optional[FrameConsumer] = None
        self._on_lost: Optional[LostCallback] = None
        self._on_stopped: Optional[StoppedCallback] = None
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._frames_delivered = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop.is_set()

    @property
    def frames_delivered(self) -> int:
        return self._frames_delivered

    def start(self, consumer: FrameConsumer, on_lost: Optional[LostCallback] = None,
              on_stopped: Optional[StoppedCallback] = None):
        """Acquire the device and begin delivering frames to `consumer`.

        Raises DeviceUnavailable if the device cannot be opened or configured,
        or the capture thread cannot be started; the device is released and
        nothing is left running in that case.
        `on_lost` is called on the capture thread if the source ends without
        stop() having been requested. `on_stopped` is called on the capture
        thread as its last act, after the device has been released.
        """
        if self._thread is not None:
            raise RuntimeError(f"{self.name}: session already started")
        try:
            self._open()
        except DeviceUnavailable:
            self._release()
            raise
        except Exception as e:
            self._release()
            self.status.log(f"{self.name}: open failed {type(e).__name__}: {e}")
            raise DeviceUnavailable(f"{self.name}: {e}") from e

        self._consumer = consumer
        self._on_lost = on_lost
        self._on_stopped = on_stopped
        thread = threading.Thread(target=self._run, name=f"{self.name}-capture", daemon=True)
        try:
            thread.start()
        except RuntimeError as e:
            self._consumer = self._on_lost = self._on_stopped = None
            self._release()
            self.status.log(f"{self.name}: capture thread failed to start: {e}")
            raise DeviceUnavailable(f"{self.name}: {e}") from e
        self._thread = thread
        self.status.log(f"{self.name}: started")

    def stop(self):
        """Halt delivery. Idempotent and never waits on an in-flight frame;
        the capture thread releases the device when it unwinds."""
        if self._stop.is_set():
            return
        self._stop.set()
        self.status.log(f"{self.name}: stop requested")
        if self._thread is None:
            self._release()

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the capture thread to exit. Returns True if it has."""
        if self._thread is None or self._thread is threading.current_thread():
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def _run(self):
        try:
            self._loop()
        except Exception as e:
            self.status.log(f"{self.name}: capture error {type(e).__name__}: {e}")
        finally:
            self._release()
            on_stopped = self._on_stopped
            self._consumer = None
            self._on_lost = None
            self._on_stopped = None
            self.status.log(f"{self.name}: stopped after {self._frames_delivered} frame(s)")
            if on_stopped is not None:
                on_stopped()

    def _loop(self):
        while not self._stop.is_set():
            frame = self._read()
            if frame is None:
                if self._exhausted():
                    self.status.log(f"{self.name}: source exhausted")
                    if self._on_lost is not None:
                        self._on_lost()
                    break
                continue
            if self._stop.is_set():
                break
            self._frames_delivered += 1
            try:
                self._consumer(frame)
            except Exception as e:
                self.status.log(f"{self.name}: consumer error {type(e).__name__}: {e}")

    @abstractmethod
    def _open(self):
        """Acquire the device or raise DeviceUnavailable."""
        ...

    @abstractmethod
    def _read(self) -> Optional[Frame]:
        """Block for the next frame. None means no frame this round."""
        ...

    def _release(self):
        pass

    def _exhausted(self) -> bool:
        return False

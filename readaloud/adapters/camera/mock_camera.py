"""Mock capture session: replays a fixed list of frames (or the images in a directory)."""
import threading
import time
from pathlib import Path
from typing import Any, Iterable, Optional

import numpy as np
from readaloud.adapters.camera.base import CaptureSession
from readaloud.orchestrator.contracts import Frame
from readaloud.orchestrator.errors import DeviceUnavailable

IMAGE_SUFFIXES = (".jpg", ".jpeg", ".png")


def blank_image(width: int = 64, height: int = 48):
    return np.full((height, width, 3), 255, dtype=np.uint8)


class MockCamera(CaptureSession):
    """
    Delivers `images` in order, one per `interval_s`.
    After the last one it idles until stopped (a camera pointed at nothing),
    unless end_when_exhausted is set, in which case the source is reported lost.
    fail_open=True simulates a camera that cannot be acquired.
    """
    name = "mock_camera"

    def __init__(self, status_store, images: Iterable[Any] = (), interval_s: float = 0.0,
                 fail_open: bool = False, end_when_exhausted: bool = False):
        super().__init__(status_store)
        self._images = list(images)
        self._interval_s = interval_s
        self._fail_open = fail_open
        self._end_when_exhausted = end_when_exhausted
        self._pos = 0
        self.released = threading.Event()

    @classmethod
    def from_dir(cls, status_store, frames_dir: str | Path, **kwargs) -> "MockCamera":
        import cv2
        paths = sorted(p for p in Path(frames_dir).iterdir() if p.suffix.lower() in IMAGE_SUFFIXES)
        images = [img for img in (cv2.imread(str(p)) for p in paths) if img is not None]
        status_store.log(f"mock_camera: loaded {len(images)} frame(s) from {frames_dir}")
        return cls(status_store, images=images, **kwargs)

    def _open(self):
        if self._fail_open:
            self.status.log("mock_camera: simulated open failure")
            raise DeviceUnavailable("mock camera configured to fail")

    def _read(self) -> Optional[Frame]:
        if self._pos >= len(self._images):
            if not self._end_when_exhausted:
                self._stop.wait(0.05)
            return None
        if self._interval_s and self._pos > 0:
            if self._stop.wait(self._interval_s):
                return None
        image = self._images[self._pos]
        self._pos += 1
        return Frame(image=image, index=self._pos, timestamp=time.monotonic())

    def _exhausted(self) -> bool:
        return self._end_when_exhausted and self._pos >= len(self._images)

    def _release(self):
        self.released.set()

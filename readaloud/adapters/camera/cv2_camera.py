"""
OpenCV webcam capture session.
CAMERA_INDEX env var (default 0) selects the webcam device;
CAMERA_WIDTH / CAMERA_HEIGHT optionally request a resolution.
"""
import os
import time
from typing import Optional

import cv2
from readaloud.adapters.camera.base import CaptureSession
from readaloud.orchestrator.contracts import Frame
from readaloud.orchestrator.errors import DeviceUnavailable

# Consecutive failed reads before the device is considered lost
MAX_READ_FAILURES = 50
_READ_RETRY_S = 0.02


def _env_int(name: str) -> int | None:
    raw = os.getenv(name)
    return int(raw) if raw else None


class CV2Camera(CaptureSession):
    name = "cv2_camera"

    def __init__(self, status_store, index: int | None = None,
                 width: int | None = None, height: int | None = None):
        super().__init__(status_store)
        self._index = index if index is not None else int(os.getenv("CAMERA_INDEX", "0"))
        self._width = width if width is not None else _env_int("CAMERA_WIDTH")
        self._height = height if height is not None else _env_int("CAMERA_HEIGHT")
        self._cap = None
        self._failures = 0
        self._seq = 0

    def _open(self):
        cap = cv2.VideoCapture(self._index)
        if not cap.isOpened():
            cap.release()
            self.status.log(f"cv2_camera: failed to open device {self._index}")
            raise DeviceUnavailable(f"camera {self._index} could not be opened")
        self._cap = cap
        # Keep only the newest frame in the driver so slow recognition skips frames instead of lagging
        cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)
        if self._width:
            cap.set(cv2.CAP_PROP_FRAME_WIDTH, self._width)
        if self._height:
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self._height)
        self.status.log(f"cv2_camera: opened device {self._index}")

    def _read(self) -> Optional[Frame]:
        ret, image = self._cap.read()
        if not ret or image is None:
            self._failures += 1
            if self._failures == 1:
                self.status.log("cv2_camera: frame capture failed")
            time.sleep(_READ_RETRY_S)
            return None
        self._failures = 0
        self._seq += 1
        return Frame(image=image, index=self._seq)

    def _exhausted(self) -> bool:
        return self._failures >= MAX_READ_FAILURES

    def _release(self):
        if self._cap is not None:
            self._cap.release()
            self._cap = None
            self.status.log(f"cv2_camera: released device {self._index}")

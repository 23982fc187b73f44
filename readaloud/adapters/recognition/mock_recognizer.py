import threading
import time
from readaloud.adapters.recognition.base import RecognitionAdapter
from readaloud.orchestrator.contracts import RecognitionOutcome
from readaloud.orchestrator.errors import RecognitionError


class MockRecognizer(RecognitionAdapter):
    """
    Scripted recognizer.

    `script` maps frame images to replies: a string becomes its lines, a list
    is taken as lines, None means no text, an Exception instance is raised as
    a RecognitionError. Images missing from the script yield no text.
    Every submitted image is appended to `calls`.
    """
    name = "mock"

    def __init__(self, status_store, script: dict | None = None, delay_s: float = 0.0):
        self.status = status_store
        self._script = script or {}
        self._delay_s = delay_s
        self.calls: list = []
        self.entered = threading.Event()   # set when a recognition starts
        self.release = threading.Event()   # cleared to hold recognitions mid-flight
        self.release.set()

    def recognize(self, image) -> RecognitionOutcome:
        self.calls.append(image)
        self.entered.set()
        self.release.wait()
        if self._delay_s:
            time.sleep(self._delay_s)
        reply = self._script.get(image) if isinstance(image, (str, bytes, int)) else None
        if isinstance(reply, Exception):
            self.status.log(f"mock_recognizer: {image!r} -> error")
            raise RecognitionError(str(reply)) from reply
        if reply is None:
            return RecognitionOutcome.no_text()
        if isinstance(reply, str):
            reply = reply.split("\n")
        self.status.log(f"mock_recognizer: {image!r} -> {len(reply)} line(s)")
        return RecognitionOutcome.text(reply)

"""
Local Tesseract text reader (needs the `tesseract` binary on PATH).

Frames are converted to grayscale and Otsu-thresholded before OCR, which is
enough for printed text held in front of a webcam. ~100ms per 640x480 frame.
TESSERACT_LANG selects the language pack (default: eng).
"""
import os
import cv2
import numpy as np
import pytesseract
from readaloud.adapters.recognition.base import RecognitionAdapter
from readaloud.orchestrator.contracts import RecognitionOutcome
from readaloud.orchestrator.errors import RecognitionError

# Page segmentation mode 6: assume a single uniform block of text
TESSERACT_CONFIG = "--psm 6"


def _bytes_to_bgr(image_bytes: bytes):
    arr = np.frombuffer(image_bytes, dtype=np.uint8)
    return cv2.imdecode(arr, cv2.IMREAD_COLOR)


def preprocess(bgr_img):
    gray = cv2.cvtColor(bgr_img, cv2.COLOR_BGR2GRAY)
    _, thresh = cv2.threshold(gray, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
    return thresh


class TesseractRecognizer(RecognitionAdapter):
    name = "tesseract"

    def __init__(self, status_store, lang: str | None = None):
        self.status = status_store
        self._lang = lang or os.getenv("TESSERACT_LANG", "eng")

    def recognize(self, image) -> RecognitionOutcome:
        if isinstance(image, (bytes, bytearray)):
            image = _bytes_to_bgr(bytes(image))
        if image is None:
            raise RecognitionError("tesseract_recognizer: undecodable frame")
        try:
            raw = pytesseract.image_to_string(preprocess(image), lang=self._lang, config=TESSERACT_CONFIG)
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError, cv2.error) as e:
            raise RecognitionError(str(e)) from e
        return RecognitionOutcome.text(raw.splitlines())

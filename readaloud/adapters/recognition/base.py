from readaloud.orchestrator.contracts import RecognitionOutcome
from readaloud.orchestrator.errors import RecognitionError

NO_TEXT_MARKER = "NO_TEXT"

TRANSCRIBE_PROMPT = (
    "You are reading printed text for a visually impaired user. "
    "Transcribe all legible printed text in this camera image, top to bottom, "
    "one line of the original per line of your reply. "
    "Do not add commentary, quotes or formatting.\n\n"
    f"If there is no legible text, reply with exactly: {NO_TEXT_MARKER}"
)


class RecognitionAdapter:
    name = "recognizer"

    def recognize(self, image) -> RecognitionOutcome:
        """Return the text lines found in `image`.

        Raises RecognitionError when the attempt itself failed.
        """
        raise NotImplementedError

    @property
    def ready(self) -> bool:
        return True


def encode_jpeg(image, quality: int = 85) -> bytes:
    """JPEG bytes for a BGR frame; bytes pass through unchanged."""
    if isinstance(image, (bytes, bytearray)):
        return bytes(image)
    import cv2
    try:
        ok, buf = cv2.imencode(".jpg", image, [cv2.IMWRITE_JPEG_QUALITY, quality])
    except cv2.error as e:
        raise RecognitionError(f"jpeg encode failed: {e}") from e
    if not ok:
        raise RecognitionError("jpeg encode failed")
    return bytes(buf)


def outcome_from_reply(raw: str) -> RecognitionOutcome:
    """Turn a free-form model transcription into an outcome."""
    text = raw.strip()
    if not text or text.strip("`'\". ").upper() == NO_TEXT_MARKER:
        return RecognitionOutcome.no_text()
    return RecognitionOutcome.text(line.rstrip() for line in text.splitlines())

from readaloud.orchestrator.contracts import Frame, SessionState
from readaloud.orchestrator.errors import RecognitionError


class FramePipeline:
    """
    Runs each delivered frame through the recognizer and reports the first
    usable text to its session. Runs on the capture thread.

    `session` is the owning ScanController: read for `state`, called back
    through `report_candidate(text)`.
    """

    def __init__(self, recognizer, session, status_store):
        self.recognizer = recognizer
        self.session = session
        self.status = status_store
        self.frames_seen = 0
        self.frames_submitted = 0
        self.frames_dropped = 0

    def on_frame(self, frame: Frame):
        self.frames_seen += 1
        if self.session.state != SessionState.RUNNING:
            self.frames_dropped += 1
            return

        self.frames_submitted += 1
        try:
            outcome = self.recognizer.recognize(frame.image)
        except RecognitionError as e:
            # one blurred frame must not end the scan
            self.frames_dropped += 1
            self.status.log(f"pipeline: frame {frame.index} recognition error: {e}")
            return

        if not outcome.has_text:
            self.frames_dropped += 1
            return

        text = outcome.joined()
        self.status.log(f"pipeline: frame {frame.index} candidate ({len(outcome.usable_lines())} line(s))")
        self.session.report_candidate(text)

    def counters(self) -> dict:
        return {
            "seen": self.frames_seen,
            "submitted": self.frames_submitted,
            "dropped": self.frames_dropped,
        }

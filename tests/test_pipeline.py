from readaloud.adapters.recognition.mock_recognizer import MockRecognizer
from readaloud.orchestrator.contracts import Frame, RecognitionOutcome, SessionState
from readaloud.orchestrator.pipeline import FramePipeline


class FakeSession:
    def __init__(self, state=SessionState.RUNNING):
        self.state = state
        self.reported = []

    def report_candidate(self, text):
        self.reported.append(text)


def make_pipeline(status, script, state=SessionState.RUNNING):
    recognizer = MockRecognizer(status, script)
    session = FakeSession(state)
    return FramePipeline(recognizer, session, status), recognizer, session


def test_frame_dropped_when_not_running(status):
    for state in (SessionState.IDLE, SessionState.FINISHING, SessionState.STOPPED):
        pipeline, recognizer, session = make_pipeline(status, {"a": "TEXT"}, state)
        pipeline.on_frame(Frame(image="a"))
        assert recognizer.calls == []
        assert session.reported == []
        assert pipeline.counters() == {"seen": 1, "submitted": 0, "dropped": 1}


def test_no_text_and_blank_lines_are_dropped(status):
    pipeline, recognizer, session = make_pipeline(status, {"empty": None, "blank": ["", "   ", "\t"]})
    pipeline.on_frame(Frame(image="empty"))
    pipeline.on_frame(Frame(image="blank"))
    assert recognizer.calls == ["empty", "blank"]
    assert session.reported == []
    assert session.state == SessionState.RUNNING


def test_recognition_error_is_absorbed(status):
    pipeline, recognizer, session = make_pipeline(status, {"bad": RuntimeError("blurred"), "ok": "EXIT"})
    pipeline.on_frame(Frame(image="bad", index=1))
    assert session.reported == []
    assert any("recognition error" in line for line in status.logs)
    pipeline.on_frame(Frame(image="ok", index=2))
    assert session.reported == ["EXIT"]


def test_candidate_joins_non_empty_lines(status):
    pipeline, _, session = make_pipeline(status, {"page": ["HELLO", "  ", "WORLD"]})
    pipeline.on_frame(Frame(image="page"))
    assert session.reported == ["HELLO\nWORLD"]
    assert pipeline.counters() == {"seen": 1, "submitted": 1, "dropped": 0}


def test_outcome_helpers():
    assert not RecognitionOutcome.no_text().has_text
    assert not RecognitionOutcome.text([" ", ""]).has_text
    outcome = RecognitionOutcome.text(["A", "", "B "])
    assert outcome.usable_lines() == ["A", "B "]
    assert outcome.joined() == "A\nB "


def test_encode_failure_counts_as_dropped_frame(status, monkeypatch):
    import cv2
    import numpy as np
    from types import SimpleNamespace
    from readaloud.adapters.recognition.claude_recognizer import ClaudeRecognizer

    def broken_imencode(*args, **kwargs):
        raise cv2.error("bad depth")

    monkeypatch.setattr(cv2, "imencode", broken_imencode)
    recognizer = ClaudeRecognizer(status, client=SimpleNamespace(messages=None))
    session = FakeSession()
    pipeline = FramePipeline(recognizer, session, status)
    pipeline.on_frame(Frame(image=np.zeros((4, 4, 3), dtype=np.uint8)))
    assert session.reported == []
    assert pipeline.counters() == {"seen": 1, "submitted": 1, "dropped": 1}

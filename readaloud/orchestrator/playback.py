import threading
from typing import Callable, Optional

from readaloud.orchestrator.contracts import PlaybackState


class PlaybackController:
    """
    Read-aloud toggle over the last scanned text.

    Idle -> Speaking starts a fresh utterance; Speaking -> Idle stops it
    immediately, dropping whatever was not spoken yet. One utterance at most.
    """

    def __init__(self, speech, status_store,
                 on_change: Optional[Callable[[PlaybackState], None]] = None):
        self.speech = speech
        self.status = status_store
        self.on_change = on_change
        self._lock = threading.Lock()
        self._state = PlaybackState.IDLE

    @property
    def state(self) -> PlaybackState:
        return self._state

    def toggle(self, text: Optional[str]) -> PlaybackState:
        with self._lock:
            if self._state == PlaybackState.SPEAKING:
                self.speech.stop_speaking()
                self._state = PlaybackState.IDLE
            elif text and text.strip():
                self.speech.speak(text)
                self._state = PlaybackState.SPEAKING
            else:
                self.status.log("playback: nothing to read")
                return self._state
            state = self._state
        self.status.log(f"playback: {state.value}")
        if self.on_change is not None:
            self.on_change(state)
        return state

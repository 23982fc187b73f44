"""
Neural voices via edge-tts.

The utterance is synthesized to a temporary mp3 on a worker thread, then
played through the local audio player. stop_speaking() abandons a pending
synthesis and kills playback.

EDGE_TTS_VOICE selects the voice (default en-US-AriaNeural).
"""

import asyncio
import os
import tempfile
import threading

import edge_tts
from readaloud.adapters.tts.player_local import ProcessSpeech, player_command

DEFAULT_VOICE = "en-US-AriaNeural"


class EdgeSpeech(ProcessSpeech):
    name = "edge_tts"

    def __init__(self, status_store, voice: str | None = None):
        super().__init__(status_store)
        self.voice = voice or os.getenv("EDGE_TTS_VOICE", DEFAULT_VOICE)
        self._generation = 0
        self._worker: threading.Thread | None = None

    def speak(self, text: str):
        with self._lock:
            self._generation += 1
            gen = self._generation
        self._worker = threading.Thread(target=self._synthesize_and_play, args=(text, gen),
                                        name="edge-tts", daemon=True)
        self._worker.start()

    def stop_speaking(self):
        with self._lock:
            self._generation += 1
        super().stop_speaking()

    def _current(self, gen: int) -> bool:
        with self._lock:
            return gen == self._generation

    def _synthesize_and_play(self, text: str, gen: int):
        fd, path = tempfile.mkstemp(suffix=".mp3", prefix="readaloud-")
        os.close(fd)
        try:
            try:
                asyncio.run(edge_tts.Communicate(text, self.voice).save(path))
            except Exception as e:
                self.status.log(f"edge_tts: synthesis failed: {e}")
                return
            if not self._current(gen):
                return
            cmd = player_command(path)
            if cmd is None:
                self.status.log("edge_tts: no audio player found, skipping playback")
                return
            self.status.log(f"edge_tts: playing via {cmd[0]} voice={self.voice}")
            proc = self._spawn(cmd)
            if not self._current(gen):
                # stop arrived between the check and the spawn
                self.stop_speaking()
            proc.wait()
        finally:
            os.unlink(path)

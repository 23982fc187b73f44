"""
Local speech, cross-platform, no network.

Speaks through the first available command-line synthesizer:
  1. macOS `say`
  2. espeak / espeak-ng (Linux)
  3. Silent log if no TTS tool is available

Each utterance is a child process so stop_speaking() can cut it off mid-sentence.
"""

import os
import shutil
import subprocess
import sys
import threading


def speech_command(text: str, voice: str | None = None) -> list[str] | None:
    if sys.platform == "darwin":
        return ["say", "-v", voice, text] if voice else ["say", text]
    for tool in ("espeak", "espeak-ng"):
        if shutil.which(tool):
            return [tool, "-v", voice, text] if voice else [tool, text]
    return None


def player_command(path: str) -> list[str] | None:
    if sys.platform == "darwin":
        return ["afplay", path]
    if shutil.which("ffplay"):
        return ["ffplay", "-nodisp", "-autoexit", "-loglevel", "quiet", path]
    if shutil.which("mpv"):
        return ["mpv", "--no-video", path]
    if shutil.which("aplay"):
        return ["aplay", "-q", path]
    if shutil.which("paplay"):
        return ["paplay", path]
    return None


class ProcessSpeech:
    """Tracks the one child process currently producing audio."""
    name = "process"

    def __init__(self, status_store):
        self.status = status_store
        self._lock = threading.Lock()
        self._proc: subprocess.Popen | None = None

    @property
    def speaking(self) -> bool:
        with self._lock:
            return self._proc is not None and self._proc.poll() is None

    def _spawn(self, cmd: list[str]):
        proc = subprocess.Popen(cmd, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
        with self._lock:
            self._proc = proc
        return proc

    def stop_speaking(self):
        with self._lock:
            proc, self._proc = self._proc, None
        if proc is not None and proc.poll() is None:
            proc.terminate()
            try:
                proc.wait(timeout=1.0)
            except subprocess.TimeoutExpired:
                proc.kill()
            self.status.log(f"{self.name}: stopped")


class LocalSpeech(ProcessSpeech):
    name = "local_tts"

    def __init__(self, status_store, voice: str | None = None):
        super().__init__(status_store)
        self.voice = voice or os.getenv("LOCAL_TTS_VOICE") or None

    def speak(self, text: str):
        cmd = speech_command(text, self.voice)
        if cmd is None:
            self.status.log(f"local_tts: no speech tool available, would say: {text}")
            return
        self.status.log(f"local_tts: {cmd[0]} ({len(text)} chars)")
        self._spawn(cmd)

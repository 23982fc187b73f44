"""
Scan text from the local camera once, print it, and read it aloud.

Usage:
    python -m readaloud.scripts.scan_once

Ctrl+C during the scan cancels it. After a result, press Enter to toggle
reading on/off, or type q + Enter to quit. Adapters are chosen through the
same env vars as the API server (CAMERA_ADAPTER, RECOGNIZER_ADAPTER, SPEECH_ADAPTER).
"""

import queue
import sys

from readaloud.services.api import build_camera_factory, build_recognizer, build_speech
from readaloud.services.status_store import StatusStore
from readaloud.orchestrator.playback import PlaybackController
from readaloud.orchestrator.state_machine import ScanController


def main() -> int:
    status = StatusStore()
    camera = build_camera_factory(status)()
    recognizer = build_recognizer(status)
    speech = build_speech(status)

    # this thread is the foreground: terminal results are queued to it
    inbox: queue.Queue = queue.Queue()
    results = []
    scan = ScanController(camera, recognizer, status,
                          on_result=results.append,
                          dispatch=lambda fn, *args: inbox.put((fn, args)))

    print("Point the camera at some text... (Ctrl+C to cancel)")
    scan.begin_scan()
    while not results:
        try:
            fn, args = inbox.get(timeout=0.2)
        except queue.Empty:
            continue
        except KeyboardInterrupt:
            scan.cancel()
            continue
        fn(*args)
    camera.join(timeout=2.0)

    result = results[0]
    if result.is_cancelled:
        print(f"Cancelled ({result.reason}).")
        return 1

    print("\n" + result.text + "\n")
    playback = PlaybackController(speech, status)
    playback.toggle(result.text)
    try:
        while input("[Enter] toggle reading, q to quit: ").strip().lower() != "q":
            playback.toggle(result.text)
    except (EOFError, KeyboardInterrupt):
        pass
    speech.stop_speaking()
    return 0


if __name__ == "__main__":
    sys.exit(main())

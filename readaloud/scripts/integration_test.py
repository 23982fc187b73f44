"""
Integration test script: hits all endpoints of a running server and verifies responses.

Usage:
    # Mock camera + mock recognizer + mock speech:
    CAMERA_ADAPTER=mock RECOGNIZER_ADAPTER=mock SPEECH_ADAPTER=mock \
        uvicorn readaloud.web.app:app --port 8000
    python -m readaloud.scripts.integration_test

With the mock recognizer the scan never finds text, so the scan is cancelled.
"""

import sys
import httpx

BASE = "http://localhost:8000"
TIMEOUT = 60.0
passed = 0
failed = 0


def test(name: str, method: str, path: str, body: dict | None = None, checks: dict | None = None) -> dict:
    global passed, failed
    url = f"{BASE}{path}"
    checks = checks or {}
    try:
        if method == "GET":
            r = httpx.get(url, timeout=TIMEOUT)
        else:
            r = httpx.post(url, json=body or {}, timeout=TIMEOUT)

        if r.status_code != 200:
            print(f"  FAIL  {name} - HTTP {r.status_code}")
            failed += 1
            return {}

        data = r.json()
        for key, expected in checks.items():
            actual = data.get(key)
            if actual != expected:
                print(f"  FAIL  {name} - {key}: expected {expected!r}, got {actual!r}")
                failed += 1
                return data

        print(f"  OK    {name}")
        passed += 1
        return data

    except httpx.ConnectError:
        print(f"  FAIL  {name} - connection refused (is the server running?)")
        failed += 1
    except Exception as e:
        print(f"  FAIL  {name} - {type(e).__name__}: {e}")
        failed += 1
    return {}


def main():
    print(f"\nIntegration tests against {BASE}\n")
    print("--- Health & Status ---")
    test("GET /health", "GET", "/health", None, {"api": True})
    test("GET /status", "GET", "/status")

    print("\n--- Scan ---")
    started = test("POST /scan/start", "POST", "/scan/start", None, {"ok": True, "state": "running"})
    sid = started.get("session_id")
    if sid:
        test("POST /scan/start (busy)", "POST", "/scan/start", None, {"ok": False, "error_code": "ERR_BUSY"})
        test("GET /scan/{id}", "GET", f"/scan/{sid}", None, {"ok": True})
        test("POST /scan/{id}/cancel", "POST", f"/scan/{sid}/cancel", None, {"ok": True, "cancelled": True})
        test("POST /scan/{id}/cancel (again)", "POST", f"/scan/{sid}/cancel", None, {"ok": True, "cancelled": False})
        test("GET /scan/{id} (result)", "GET", f"/scan/{sid}?wait=5", None, {"ok": True})
    test("GET /scan/unknown", "GET", "/scan/nope", None, {"ok": False, "error_code": "ERR_NOT_FOUND"})

    print("\n--- Playback ---")
    test("POST /playback/toggle (start)", "POST", "/playback/toggle", {"text": "hello world"},
         {"ok": True, "state": "speaking"})
    test("POST /playback/toggle (stop)", "POST", "/playback/toggle", {"text": "hello world"},
         {"ok": True, "state": "idle"})

    print("\n--- Final Status ---")
    test("GET /status (final)", "GET", "/status")

    # Summary
    total = passed + failed
    print(f"\n{'='*40}")
    print(f"  {passed}/{total} passed, {failed} failed")
    print(f"{'='*40}\n")

    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    main()

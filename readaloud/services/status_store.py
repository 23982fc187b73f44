import threading
from dataclasses import dataclass, field
from typing import Optional, List
from readaloud.orchestrator.contracts import ScanResult

MAX_LOGS = 200

@dataclass
class StatusStore:
    busy: bool = False
    session_id: Optional[str] = None
    last_result: Optional[ScanResult] = None
    last_text: Optional[str] = None      # text of the last Completed scan, used as playback default
    last_error: Optional[str] = None
    logs: List[str] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def set_busy(self, v: bool):
        self.busy = v

    def record_result(self, result: ScanResult):
        self.last_result = result
        if result.is_completed:
            self.last_text = result.text

    def log(self, msg: str):
        # capture thread, foreground dispatcher and request threads all log here
        with self._lock:
            self.logs.append(msg)
            if len(self.logs) > MAX_LOGS:
                self.logs = self.logs[-MAX_LOGS:]

    def snapshot_logs(self) -> List[str]:
        with self._lock:
            return list(self.logs)

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal, Optional
import time

CancelReason = Literal["user", "device_unavailable"]

LINE_SEPARATOR = "\n"


class SessionState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    FINISHING = "finishing"
    STOPPED = "stopped"


class PlaybackState(str, Enum):
    IDLE = "idle"
    SPEAKING = "speaking"


@dataclass(frozen=True)
class Frame:
    image: Any                 # BGR ndarray from cv2, or whatever the capture adapter yields
    index: int = 0
    timestamp: float = field(default_factory=time.monotonic)


@dataclass(frozen=True)
class RecognitionOutcome:
    lines: tuple[str, ...] = ()

    @classmethod
    def no_text(cls) -> "RecognitionOutcome":
        return cls()

    @classmethod
    def text(cls, lines) -> "RecognitionOutcome":
        return cls(lines=tuple(lines))

    def usable_lines(self) -> list[str]:
        """Lines that still carry something after trimming whitespace."""
        return [line for line in self.lines if line.strip()]

    @property
    def has_text(self) -> bool:
        return bool(self.usable_lines())

    def joined(self) -> str:
        return LINE_SEPARATOR.join(self.usable_lines())


@dataclass(frozen=True)
class ScanResult:
    kind: Literal["completed", "cancelled"]
    text: Optional[str] = None
    reason: Optional[CancelReason] = None

    @classmethod
    def completed(cls, text: str) -> "ScanResult":
        return cls(kind="completed", text=text)

    @classmethod
    def cancelled(cls, reason: CancelReason = "user") -> "ScanResult":
        return cls(kind="cancelled", reason=reason)

    @property
    def is_completed(self) -> bool:
        return self.kind == "completed"

    @property
    def is_cancelled(self) -> bool:
        return self.kind == "cancelled"

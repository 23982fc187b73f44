from pydantic import BaseModel
from typing import Literal, Optional

SessionStateName = Literal["idle", "running", "finishing", "stopped"]
PlaybackStateName = Literal["idle", "speaking"]

class ScanResultOut(BaseModel):
    kind: Literal["completed", "cancelled"]
    text: Optional[str] = None
    reason: Optional[Literal["user", "device_unavailable"]] = None

class ScanStartResponse(BaseModel):
    ok: bool
    session_id: Optional[str] = None
    state: Optional[SessionStateName] = None
    error_code: Optional[str] = None
    # set when the camera could not be opened: the session is already over
    result: Optional[ScanResultOut] = None

class ScanCancelResponse(BaseModel):
    ok: bool
    cancelled: bool = False    # True only if this cancel decided the outcome
    state: Optional[SessionStateName] = None
    error_code: Optional[str] = None

class ScanStatusResponse(BaseModel):
    ok: bool
    session_id: str
    state: Optional[SessionStateName] = None
    result: Optional[ScanResultOut] = None
    error_code: Optional[str] = None

class PlaybackRequest(BaseModel):
    # defaults to the last completed scan text
    text: Optional[str] = None

class PlaybackResponse(BaseModel):
    ok: bool
    state: PlaybackStateName
    text: Optional[str] = None
    error_code: Optional[str] = None

class PipelineCounters(BaseModel):
    seen: int = 0
    submitted: int = 0
    dropped: int = 0

class StatusResponse(BaseModel):
    busy: bool
    session_id: Optional[str] = None
    state: Optional[SessionStateName] = None
    last_result: Optional[ScanResultOut] = None
    last_text: Optional[str] = None
    playback: PlaybackStateName = "idle"
    counters: Optional[PipelineCounters] = None
    logs: list[str]

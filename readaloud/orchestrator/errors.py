# Error codes returned in API response bodies
ERR_BUSY = "ERR_BUSY"
ERR_NOT_FOUND = "ERR_NOT_FOUND"
ERR_NO_TEXT = "ERR_NO_TEXT"
ERR_DEVICE_UNAVAILABLE = "ERR_DEVICE_UNAVAILABLE"
ERR_UNKNOWN = "ERR_UNKNOWN"


class DeviceUnavailable(Exception):
    """Camera could not be opened or configured."""


class RecognitionError(Exception):
    """A single recognition attempt failed inside the recognizer."""


class ScanStateError(Exception):
    """Controller used outside its lifecycle (e.g. begin_scan twice)."""

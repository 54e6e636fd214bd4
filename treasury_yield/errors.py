from __future__ import annotations

from typing import Any, Dict, Optional


class YieldEngineError(Exception):
    """Base for failures that are reported to the caller as structured errors."""

    code = "UNKNOWN_ERROR"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

    def to_dict(self) -> Dict[str, Any]:
        return {"status": "error", "message": self.message, "code": self.code}


class NetworkError(YieldEngineError):
    """Aggregator unreachable or answered with a non-2xx status."""

    code = "NETWORK_ERROR"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class DataFormatError(YieldEngineError):
    """Aggregator body is not the expected array-of-records shape."""

    code = "DATA_FORMAT_ERROR"


class FetchTimeoutError(YieldEngineError):
    code = "TIMEOUT"

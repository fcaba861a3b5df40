"""Error taxonomy shared by every step of the capture-to-text pipeline."""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Dict, Optional


class ErrorKind(str, enum.Enum):
    """Closed set of failure kinds a capture session can end with."""

    CAPTURE_FAILED = "CaptureFailed"
    CROP_BOUNDS = "CropBounds"
    CONFIG_MISSING = "ConfigMissing"
    NETWORK_TIMEOUT = "NetworkTimeout"
    API_ERROR = "ApiError"
    SAFETY_REJECTED = "SafetyRejected"
    RESPONSE_FORMAT = "ResponseFormat"


class OcrError(RuntimeError):
    """Raised by a pipeline step; carries exactly one :class:`ErrorKind`."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        status: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status = status
        self.data = data or {}

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return f"OcrError(kind={self.kind.value!r}, message={self.message!r}, status={self.status!r})"


@dataclass(slots=True, frozen=True)
class OcrResult:
    """Terminal value of a capture session: either text or a typed error."""

    text: Optional[str] = None
    error: Optional[ErrorKind] = None
    message: str = ""
    status: Optional[int] = None

    def __post_init__(self) -> None:
        if (self.text is None) == (self.error is None):
            raise ValueError("OcrResult must carry either text or an error, not both")

    @classmethod
    def success(cls, text: str) -> "OcrResult":
        return cls(text=text)

    @classmethod
    def failure(cls, exc: OcrError) -> "OcrResult":
        return cls(error=exc.kind, message=exc.message, status=exc.status)

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_message(self) -> Dict[str, Any]:
        """Serialize into the reply shape used across the messaging boundary."""

        if self.error is None:
            return {"text": self.text}
        payload: Dict[str, Any] = {"error": self.message, "kind": self.error.value}
        if self.status is not None:
            payload["status"] = self.status
        return payload

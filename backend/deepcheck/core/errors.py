"""
Error types surfaced to callers.

A job that the Analysis Service reports as ``failed`` is NOT an error: it is
delivered as a normal terminal snapshot. Only bad input and transport problems
raise.
"""
from __future__ import annotations
from enum import Enum
from typing import Optional


class DeepcheckError(Exception):
    """Base error with a user-facing message."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationReason(str, Enum):
    UNSUPPORTED_TYPE = "unsupported_type"
    FILE_TOO_LARGE = "file_too_large"


class ValidationError(DeepcheckError):
    """Rejected file; raised before anything touches the network."""

    def __init__(self, reason: ValidationReason, message: str) -> None:
        self.reason = reason
        super().__init__(message)


class TransportError(DeepcheckError):
    """Upload, poll or listing call failed (connection, HTTP status or bad payload)."""

    def __init__(
        self,
        operation: str,
        message: str,
        job_id: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        self.operation = operation
        self.job_id = job_id
        self.status_code = status_code
        super().__init__(message)

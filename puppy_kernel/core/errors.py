"""
Exception hierarchy for the puppy kernel.

Every error carries a machine-readable `code` so API clients can branch on it
without parsing English messages. The engine itself raises none of these:
only the event log and the HTTP layer do.
"""

from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse


class PuppyKernelError(Exception):
    """Base class for all application-level errors."""

    http_status: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class EventNotFoundError(PuppyKernelError):
    http_status = 404
    code = "EVENT_NOT_FOUND"

    def __init__(self, event_id: str):
        super().__init__(
            message=f"Event {event_id} does not exist.",
            details={"event_id": event_id},
        )


class DuplicateEventError(PuppyKernelError):
    http_status = 409
    code = "DUPLICATE_EVENT"

    def __init__(self, event_id: str):
        super().__init__(
            message=f"Event {event_id} is already in the log.",
            details={"event_id": event_id},
        )


async def puppy_kernel_exception_handler(
    request: Request, exc: PuppyKernelError
) -> JSONResponse:
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())

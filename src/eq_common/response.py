"""Error envelope returned for every AppError raised behind the HTTP API.

{
    "code": 4001,                 // AppError.code
    "message": "Invalid order: ...",
    "data": null,
    "timestamp": "...",
    "request_id": "req_..."       // matches the request log line
}

Successful endpoints return their response model directly.
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "success"
    data: Any = None
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    request_id: str = Field(default_factory=lambda: f"req_{uuid.uuid4().hex[:12]}")


def error_response(code: int, message: str, request_id: str | None = None) -> ApiResponse:
    if request_id is None:
        return ApiResponse(code=code, message=message, data=None)
    return ApiResponse(code=code, message=message, data=None, request_id=request_id)

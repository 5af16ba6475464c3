"""
Uniform response envelope.

Success: ``{"success": true, "message": ..., "data": ...}``. Failures are
produced by the handlers in ``app.core.errors``.
"""

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

DataT = TypeVar("DataT")


class ApiResponse(BaseModel, Generic[DataT]):
    success: bool = True
    message: str
    data: Optional[DataT] = None


def ok(message: str, data=None) -> ApiResponse:
    return ApiResponse(success=True, message=message, data=data)

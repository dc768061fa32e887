"""
Uniform response envelope shared by every endpoint
"""
import math

from pydantic import BaseModel
from typing import Any, Optional


class APIResponse(BaseModel):
    success: bool
    message: str
    data: Optional[Any] = None


def envelope(message: str, data: Any = None, success: bool = True) -> dict:
    """Build the response body; `data` is omitted when there is none"""
    body = {"success": success, "message": message}
    if data is not None:
        body["data"] = data
    return body


def page_info(total: int, limit: int, offset: int) -> dict:
    return {
        "totalCount": total,
        "totalPages": math.ceil(total / limit),
        "currentPage": offset // limit + 1,
    }

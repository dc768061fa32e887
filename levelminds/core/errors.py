"""
Domain error taxonomy
Services raise these; the API layer renders them in the response envelope
"""
from typing import Any, Optional


class LevelmindsError(Exception):
    """Base class for errors that map to a client-facing HTTP status"""
    status_code = 500

    def __init__(self, message: str, data: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.data = data


class InvalidInput(LevelmindsError):
    status_code = 400


class Unauthorized(LevelmindsError):
    status_code = 401


class Forbidden(LevelmindsError):
    status_code = 403


class NotFound(LevelmindsError):
    status_code = 404


class Conflict(LevelmindsError):
    status_code = 409

# hrm/core/errors.py
from typing import List, Optional


class HrmError(Exception):
    """Base class for failures a caller is allowed to see."""

    status_code = 500

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.errors = list(errors or [])

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


class Unauthorized(HrmError):
    status_code = 401


class Forbidden(HrmError):
    status_code = 403


class InvalidInput(HrmError):
    status_code = 400

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        # always expose the full violation list, even for a single problem
        super().__init__(message, errors or [message])


class NotFound(HrmError):
    status_code = 404


class Conflict(HrmError):
    status_code = 409

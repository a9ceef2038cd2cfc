# challengeboard/errors.py
from typing import Dict, Optional


class ApiError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        if message:
            self.message = message

    def to_dict(self):
        return {"message": self.message}


class ValidationError(ApiError):
    """
    Malformed or semantically invalid input.
    `errors` maps each failing field to a human readable reason.
    """
    status_code = 400
    message = "Validation failed"

    def __init__(self, errors: Dict[str, str], message: Optional[str] = None):
        super().__init__(message)
        self.errors = dict(errors)

    def to_dict(self):
        return {"message": self.message, "errors": self.errors}


class NotFound(ApiError):
    status_code = 404
    message = "Not found"


class ConflictError(ApiError):
    status_code = 409
    message = "Conflict"


class StoreError(ApiError):
    status_code = 500
    message = "Internal server error"

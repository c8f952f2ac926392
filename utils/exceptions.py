from typing import Any, Optional

from fastapi import HTTPException

class CustomException(HTTPException):
    def __init__(self, code: str, message: str, dev_message: str = "", status_code: int = 400, detail: str = ""):
        super().__init__(status_code=status_code, detail=message)
        self.code = code
        self.message = message
        self.dev_message = dev_message
        self.detail = detail

    def __str__(self):
        return self.message

    def to_dict(self):
        return {
            "code": self.code,
            "message": self.message,
            "detail": self.detail,
            "dev_message": self.dev_message
        }


class StoreError(CustomException):
    """Base class for errors raised by the agenda store."""

    code = "STORE_ERROR"
    status_code = 400

    def __init__(self, message: str, entity: Optional[str] = None, field: Optional[str] = None,
                 value: Any = None, dev_message: str = ""):
        super().__init__(
            code=type(self).code,
            message=message,
            dev_message=dev_message,
            status_code=type(self).status_code,
            detail=field or "",
        )
        self.entity = entity
        self.field = field
        self.value = value


class DuplicateKeyError(StoreError):
    """A unique constraint (username, email, role name) would be violated."""

    code = "DUPLICATE_KEY"
    status_code = 409


class NotFoundError(StoreError):
    """A referenced record does not exist."""

    code = "NOT_FOUND"
    status_code = 404


class ValidationError(StoreError):
    """A field is malformed, e.g. an agenda time that is not HH:MM."""

    code = "VALIDATION_ERROR"
    status_code = 422


class ForbiddenError(StoreError):
    """The requesting user does not own the record."""

    code = "FORBIDDEN"
    status_code = 403

"""Application errors rendered as {"error": ..., "details": ...} JSON responses."""

from typing import Any


class AppError(Exception):
    """Base error carrying an HTTP status, a human message and optional details."""

    status_code = 500

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        body: dict = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class UnsupportedPayload(AppError):
    """No normalization strategy could turn the submitted value into bytes."""

    status_code = 400


class MissingRequiredField(AppError):
    status_code = 400

    def __init__(self, *fields: str) -> None:
        self.fields = list(fields)
        label = "field" if len(fields) == 1 else "fields"
        super().__init__(f"Missing required {label}: {', '.join(fields)}")


class InvalidField(AppError):
    status_code = 400


class EntityValidationError(AppError):
    """A referenced author/category does not exist."""

    status_code = 400


class FileTooLarge(AppError):
    status_code = 413


class NotFoundError(AppError):
    status_code = 404


class StorageError(AppError):
    """The object store rejected an upload or URL request."""

    status_code = 500


class DatabaseError(AppError):
    status_code = 500

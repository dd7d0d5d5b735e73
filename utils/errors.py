"""
Application error taxonomy.

A single exception type, AppError, carries a kind discriminant. Callers that
need to branch do so on `err.kind`, never on the exception class:

    try:
        service.refresh(token)
    except AppError as err:
        if err.kind is ErrorKind.AUTHENTICATION:
            ...

Every kind knows its wire code and HTTP status, so the HTTP layer can turn any
AppError into the uniform error envelope without a lookup table of its own.
"""
from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(Enum):
    VALIDATION = ("VALIDATION_ERROR", 400)
    AUTHENTICATION = ("AUTHENTICATION_ERROR", 401)
    NOT_FOUND = ("NOT_FOUND", 404)
    CONFLICT = ("CONFLICT", 409)
    STORAGE = ("DATABASE_ERROR", 500)
    UNEXPECTED = ("INTERNAL_SERVER_ERROR", 500)

    def __init__(self, code: str, status: int):
        self.code = code
        self.status = status

    @property
    def is_server_error(self) -> bool:
        return self.status >= 500


# Messages clients see for 500-class kinds; the real cause only goes to the log.
PUBLIC_MESSAGES = {
    ErrorKind.STORAGE: "A storage error occurred",
    ErrorKind.UNEXPECTED: "An unexpected error occurred",
}


class AppError(Exception):
    """Tagged application error: kind + message + optional structured details."""

    def __init__(self, kind: ErrorKind, message: str, details: Any = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.details = details

    @property
    def code(self) -> str:
        return self.kind.code

    @property
    def status(self) -> int:
        return self.kind.status

    @property
    def public_message(self) -> str:
        """Message safe to send to a client."""
        return PUBLIC_MESSAGES.get(self.kind, self.message)

    @property
    def public_details(self) -> Any:
        if self.kind.is_server_error:
            return None
        return self.details

    def __repr__(self) -> str:
        return f"<AppError {self.kind.name}: {self.message}>"

    # Constructors for the common kinds
    @classmethod
    def validation(cls, message: str, details: Any = None) -> "AppError":
        return cls(ErrorKind.VALIDATION, message, details)

    @classmethod
    def authentication(cls, message: str) -> "AppError":
        return cls(ErrorKind.AUTHENTICATION, message)

    @classmethod
    def not_found(cls, message: str) -> "AppError":
        return cls(ErrorKind.NOT_FOUND, message)

    @classmethod
    def conflict(cls, message: str) -> "AppError":
        return cls(ErrorKind.CONFLICT, message)

    @classmethod
    def storage(cls, message: str, details: Any = None) -> "AppError":
        return cls(ErrorKind.STORAGE, message, details)

    @classmethod
    def unexpected(cls, message: str, details: Any = None) -> "AppError":
        return cls(ErrorKind.UNEXPECTED, message, details)

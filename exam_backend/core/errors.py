"""
Typed application errors raised by the domain and the repositories.
The HTTP layer turns them into status codes; nothing here knows about HTTP
beyond the numeric code each kind maps to.
"""
from typing import Any, Dict, Optional


class AppError(Exception):
    """Base error carrying a kind, an entity tag and optional details"""
    status_code = 500

    def __init__(
        self,
        message: str,
        entity: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.entity = entity
        self.code = code or self.__class__.__name__
        self.details = details

    @property
    def kind(self) -> str:
        return self.__class__.__name__

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "message": self.message,
            "code": self.code,
            "status_code": self.status_code,
            "entity": self.entity,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.kind}(message={self.message!r}, entity={self.entity!r})"


class ValidationError(AppError):
    """Malformed input"""
    status_code = 400


class NotFoundError(AppError):
    """A referenced entity does not exist"""
    status_code = 404


class BusinessRuleError(AppError):
    """A state-machine or authorization precondition was violated"""
    status_code = 400


class ForbiddenError(AppError):
    """The caller does not own the resource"""
    status_code = 403


class UnauthorizedError(AppError):
    status_code = 401


class ConflictError(AppError):
    status_code = 409


class DatabaseError(AppError):
    """The persistence layer failed"""
    status_code = 500

"""
Shared plumbing for the SQLAlchemy repository adapters.
Adapters flush but never commit; the unit of work owns the transaction.
"""
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from exam_backend.core.errors import ConflictError, DatabaseError
from exam_backend.core.logger import get_error_logger


class SqlAlchemyRepository:
    entity = "Entity"

    def __init__(self, session: Session):
        self.session = session
        self.error_logger = get_error_logger()

    @contextmanager
    def guard(self, operation: str):
        """Turn SQLAlchemy failures into typed application errors"""
        try:
            yield
        except IntegrityError as e:
            self.error_logger.error("INTEGRITY ERROR: %s | ENTITY: %s | %s", operation, self.entity, e.orig)
            raise ConflictError(
                f"{self.entity} conflicts with an existing record",
                entity=self.entity,
                code="INTEGRITY_ERROR",
            ) from e
        except SQLAlchemyError as e:
            self.error_logger.error("DATABASE ERROR: %s | ENTITY: %s | %s", operation, self.entity, e)
            raise DatabaseError(
                f"Database error while running {operation}",
                entity=self.entity,
                code="DATABASE_ERROR",
            ) from e

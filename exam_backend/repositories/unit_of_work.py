"""
Unit of work over one SQLAlchemy session
"""
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from exam_backend.core.errors import DatabaseError
from exam_backend.core.logger import get_audit_logger, get_error_logger


class SqlAlchemyUnitOfWork:
    """Commits only on an explicit commit(); leaving the block with an error rolls back"""

    def __init__(self, session: Session):
        self.session = session
        self.audit_logger = get_audit_logger()
        self.error_logger = get_error_logger()

    async def __aenter__(self) -> "SqlAlchemyUnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is not None:
            await self.rollback()

    async def commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.error_logger.error("COMMIT FAILED | %s", e)
            self.session.rollback()
            raise DatabaseError("Could not commit the transaction", code="COMMIT_FAILED") from e

    async def rollback(self) -> None:
        self.audit_logger.info("ROLLING BACK unit of work")
        self.session.rollback()

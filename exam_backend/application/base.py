"""
Base classes for commands (writes) and queries (reads).
Subclasses implement execute_business_logic; execute adds logging and
turns unexpected exceptions into AppError.
"""
from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar

from exam_backend.core.errors import AppError
from exam_backend.core.logger import get_audit_logger, get_error_logger

TInput = TypeVar("TInput")
TOutput = TypeVar("TOutput")


class BaseUseCase(ABC, Generic[TInput, TOutput]):
    kind = "USE CASE"

    def __init__(self):
        self.audit_logger = get_audit_logger()
        self.error_logger = get_error_logger()
        self.use_case_name = self.__class__.__name__

    def validate_input(self, data: TInput) -> None:
        """Optional extra checks before the business logic runs"""

    @abstractmethod
    async def execute_business_logic(self, data: TInput) -> TOutput:
        ...

    async def execute(self, data: TInput) -> TOutput:
        self.audit_logger.info("STARTING %s: %s", self.kind, self.use_case_name)
        try:
            self.validate_input(data)
            result = await self.execute_business_logic(data)
        except Exception as e:
            self.error_logger.error("FAILED %s: %s | ERROR: %s", self.kind, self.use_case_name, e)
            self.catch_error(e)
        self.audit_logger.info("COMPLETED %s: %s", self.kind, self.use_case_name)
        return result

    def catch_error(self, error: Exception, entity: Optional[str] = None):
        if isinstance(error, AppError):
            raise error
        raise AppError(
            f"Unexpected error: {error}",
            entity=entity or self.use_case_name,
            code="UNEXPECTED_ERROR",
        ) from error


class BaseCommand(BaseUseCase[TInput, TOutput]):
    kind = "COMMAND"


class BaseQuery(BaseUseCase[TInput, TOutput]):
    kind = "QUERY"

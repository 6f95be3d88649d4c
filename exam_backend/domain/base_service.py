"""
Shared logging and error helpers for the domain services
"""
from contextlib import contextmanager
from typing import Any, Dict, NoReturn, Optional

from exam_backend.core.errors import BusinessRuleError, ForbiddenError, NotFoundError
from exam_backend.core.logger import get_audit_logger, get_error_logger


class BaseDomainService:
    def __init__(self):
        self.audit_logger = get_audit_logger()
        self.error_logger = get_error_logger()
        self.service_name = self.__class__.__name__

    # ========================================================================
    # Logging
    # ========================================================================

    def log_operation_start(self, operation: str) -> None:
        self.audit_logger.info("STARTING: %s | SERVICE: %s", operation, self.service_name)

    def log_operation_success(self, operation: str) -> None:
        self.audit_logger.info("COMPLETED: %s | SERVICE: %s", operation, self.service_name)

    def log_operation_error(self, operation: str, error: Exception) -> None:
        self.error_logger.error(
            "FAILED: %s | SERVICE: %s | ERROR: %s",
            operation,
            self.service_name,
            error,
            exc_info=error,
        )

    @contextmanager
    def operation(self, name: str):
        """
        Wraps one public operation: logs the start, the completion, or the
        failure with its stack, and always re-raises.
        """
        self.log_operation_start(name)
        try:
            yield
        except Exception as e:
            self.log_operation_error(name, e)
            raise
        self.log_operation_success(name)

    # ========================================================================
    # Raising
    # ========================================================================

    def raise_business_rule_error(
        self,
        message: str,
        entity: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> NoReturn:
        raise BusinessRuleError(message, entity=entity, code=code, details=details)

    def raise_not_found_error(
        self,
        message: str,
        entity: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> NoReturn:
        raise NotFoundError(message, entity=entity, code=code, details=details)

    def raise_forbidden_error(
        self,
        message: str,
        entity: Optional[str] = None,
        code: Optional[str] = None,
    ) -> NoReturn:
        raise ForbiddenError(message, entity=entity, code=code)

"""Structured outcomes of mutating and reading operations."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from functools import wraps
from typing import Any, Generic, ParamSpec, TypeVar

from rbac_console.domain.exceptions import RbacException, StoreError
from rbac_console.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
P = ParamSpec("P")

GENERIC_STORE_MESSAGE = "A storage error occurred. Please try again."
STALE_CACHE_WARNING = "Change saved, but cached reads could not be cleared and may be stale until they expire"


@dataclass
class OperationResult(Generic[T]):
    """
    Outcome of a console operation.

    On failure ``error`` is a human-readable message and ``error_code`` the
    machine-readable code of the domain exception that caused it.
    ``warnings`` may be present on success when a best-effort step failed.
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    details: dict[str, Any] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    @classmethod
    def ok(cls, data: T | None = None, warnings: list[str] | None = None) -> "OperationResult[T]":
        return cls(success=True, data=data, warnings=warnings or [])

    @classmethod
    def fail(cls, exc: RbacException) -> "OperationResult[T]":
        return cls(
            success=False,
            error=exc.message,
            error_code=exc.error_code,
            details=exc.details,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "data": self.data,
            "error": self.error,
            "error_code": self.error_code,
            "details": self.details,
            "warnings": self.warnings,
        }


def returns_result(
    operation: str,
) -> Callable[[Callable[P, Awaitable[Any]]], Callable[P, Awaitable[OperationResult[Any]]]]:
    """
    Wrap a service method so domain exceptions become failed results.

    A method may return a plain value (wrapped in a successful result) or an
    OperationResult of its own. Store failures are logged in full and
    reported with a generic message.
    """

    def decorator(func: Callable[P, Awaitable[Any]]) -> Callable[P, Awaitable[OperationResult[Any]]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> OperationResult[Any]:
            try:
                value = await func(*args, **kwargs)
            except StoreError as e:
                logger.error(
                    f"{operation} failed with a store error",
                    extra={"context": {"operation": operation, "kwargs": kwargs, **e.details}},
                    exc_info=True,
                )
                return OperationResult(
                    success=False,
                    error=GENERIC_STORE_MESSAGE,
                    error_code=e.error_code,
                    details={"operation": operation},
                )
            except RbacException as e:
                logger.info(f"{operation} rejected: {e.error_code} {e.message}")
                return OperationResult.fail(e)

            if isinstance(value, OperationResult):
                return value
            return OperationResult.ok(value)

        return wrapper

    return decorator

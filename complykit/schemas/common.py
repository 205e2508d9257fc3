"""Structured success/failure result returned by command and query services."""

from typing import Generic, Literal, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")

ErrorCode = Literal["not_found", "forbidden", "invalid", "unavailable", "bad_gateway"]


class OperationResult(BaseModel, Generic[T]):
    """Either a value or a list of human-readable error messages (never a raw exception)."""

    succeeded: bool
    errors: list[str] = Field(default_factory=list)
    error_code: ErrorCode | None = None
    value: T | None = None

    @classmethod
    def success(cls, value: T | None = None) -> "OperationResult[T]":
        return cls(succeeded=True, value=value)

    @classmethod
    def failure(cls, *errors: str, code: ErrorCode = "invalid") -> "OperationResult[T]":
        return cls(succeeded=False, errors=list(errors), error_code=code)

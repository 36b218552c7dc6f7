"""
Structured success/failure results returned at every engine boundary.

Expected problems (a missing campaign, an unknown archetype, an unreachable
cache) are reported as a failed ``Result`` rather than raised, so callers such
as the MCP tools can render them without try/except scaffolding.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class FailureKind(Enum):
    """Classification of a failed engine operation."""
    NOT_FOUND = "not_found"            # Referenced campaign/archetype/feat absent
    VALIDATION = "validation"          # Invalid request or configuration
    INFRASTRUCTURE = "infrastructure"  # Cache or repository failure


@dataclass(frozen=True)
class EngineFailure:
    """Description of why an operation failed."""
    kind: FailureKind
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"[{self.kind.value}] {self.message}"


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of an engine operation: either a value or an ``EngineFailure``."""
    value: T | None = None
    error: EngineFailure | None = None

    @property
    def is_success(self) -> bool:
        return self.error is None

    @property
    def is_failure(self) -> bool:
        return self.error is not None

    def unwrap(self) -> T:
        """Return the value of a successful result.

        Raises:
            ValueError: If the result is a failure.
        """
        if self.error is not None:
            raise ValueError(f"Cannot unwrap failed result: {self.error}")
        return self.value  # type: ignore[return-value]

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(
        cls,
        kind: FailureKind,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> "Result[T]":
        return cls(error=EngineFailure(kind=kind, message=message, details=details or {}))

    @classmethod
    def not_found(cls, message: str, **details: Any) -> "Result[T]":
        return cls.failure(FailureKind.NOT_FOUND, message, details)

    @classmethod
    def invalid(cls, message: str, **details: Any) -> "Result[T]":
        return cls.failure(FailureKind.VALIDATION, message, details)

    @classmethod
    def infrastructure(cls, message: str, **details: Any) -> "Result[T]":
        return cls.failure(FailureKind.INFRASTRUCTURE, message, details)

    @classmethod
    def from_failure(cls, other: "Result[Any]") -> "Result[T]":
        """Re-type the failure of another result."""
        if other.error is None:
            raise ValueError("from_failure() requires a failed result")
        return cls(error=other.error)


__all__ = ["FailureKind", "EngineFailure", "Result"]

# dirmatrix/core/outcome.py
"""
Result type for recoverable per-item steps.

A failed metadata read or api call must not unwind the whole run: such steps
return an `Outcome`, and the caller unwraps it into the best available value,
logging the failure reason as a warning.
"""
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    value: Optional[T] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.reason is None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, reason: str) -> "Outcome[T]":
        return cls(reason=reason)

    def unwrap_or(self, default: T, logger: Any = None, event: str = "recoverable_step_failed", **context: Any) -> T:
        # returns the value, or `default` after logging the failure reason as a warning.
        if self.ok:
            return self.value  # type: ignore[return-value]
        if logger is not None:
            logger.warning(event, reason=self.reason, **context)
        return default

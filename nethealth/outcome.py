"""Tagged success-or-failure value used for speed-test phase results."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

from .errors import NetworkError

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Either ``value`` or ``error`` is set, never both."""

    value: Optional[T] = None
    error: Optional[NetworkError] = None

    def __post_init__(self) -> None:
        if (self.value is None) == (self.error is None):
            raise ValueError("Outcome needs exactly one of value / error")

    # -- Constructors -------------------------------------------------------

    @classmethod
    def success(cls, value: T) -> Outcome[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: NetworkError) -> Outcome[T]:
        return cls(error=error)

    # -- Accessors ----------------------------------------------------------

    @property
    def is_success(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value or raise the stored error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    def map(self, fn: Callable[[T], Any]) -> Optional[Any]:
        return fn(self.value) if self.error is None else None

    def to_dict(self) -> Dict[str, Any]:
        if self.error is not None:
            return {
                "success": False,
                "error": {"kind": self.error.kind, "message": str(self.error)},
            }
        value = self.value
        return {
            "success": True,
            "result": value.to_dict() if hasattr(value, "to_dict") else value,
        }

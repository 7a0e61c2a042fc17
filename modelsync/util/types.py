from dataclasses import dataclass
from typing import Generic, TypeVar, Optional, Dict, Any

T = TypeVar("T")

@dataclass
class ErrorInfo:
    code: str         # e.g., "models.duplicates", "api.http_error"
    message: str
    detail: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"

@dataclass
class Result(Generic[T]):
    """Outcome of an operation.

    ``ok=True`` with ``value=None`` is a legitimate outcome for operations
    that can end in "nothing to do"; callers check the value, not just ``ok``.
    """
    ok: bool
    value: Optional[T] = None
    error: Optional[ErrorInfo] = None

    @classmethod
    def fail(cls, code: str, message: str, **detail: Any) -> "Result[T]":
        return cls(ok=False, error=ErrorInfo(code, message, detail or None))

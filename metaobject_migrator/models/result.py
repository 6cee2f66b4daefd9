"""Result models for remote and local migration operations."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from enum import Enum
from datetime import datetime


class ErrorKind(str, Enum):
    """Why an operation failed."""
    TRANSPORT = "transport"  # network failure, HTTP error, GraphQL errors
    REMOTE = "remote"  # userErrors returned by a mutation
    RESOLUTION = "resolution"  # a lookup returned nothing
    LOCAL_IO = "local_io"  # missing or unreadable snapshot file


@dataclass
class OperationResult:
    """Outcome of a single operation against one record."""
    subject: str
    operation: str
    success: bool = False
    value: Optional[Any] = None
    error_kind: Optional[ErrorKind] = None
    error: Optional[str] = None
    context: Dict[str, Any] = field(default_factory=dict)
    completed_at: datetime = field(default_factory=datetime.utcnow)

    @classmethod
    def ok(cls, subject: str, operation: str, value: Any = None, **context) -> "OperationResult":
        """Build a successful result."""
        return cls(subject=subject, operation=operation, success=True, value=value, context=context)

    @classmethod
    def fail(
        cls,
        subject: str,
        operation: str,
        kind: ErrorKind,
        error: str,
        **context
    ) -> "OperationResult":
        """Build a failed result."""
        return cls(
            subject=subject,
            operation=operation,
            success=False,
            error_kind=kind,
            error=error,
            context=context,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "subject": self.subject,
            "operation": self.operation,
            "success": self.success,
            "value": self.value,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "error": self.error,
            "context": self.context,
            "completed_at": self.completed_at.isoformat(),
        }


def user_errors_message(user_errors: List[Dict[str, Any]]) -> str:
    """Flatten mutation userErrors into one message."""
    messages = []
    for error in user_errors:
        location = ".".join(str(p) for p in error.get("field") or [])
        message = error.get("message", str(error))
        messages.append(f"{location}: {message}" if location else message)
    return "; ".join(messages)

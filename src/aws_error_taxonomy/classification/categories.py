"""Classification input and result types."""
from dataclasses import dataclass
from typing import Any

from ..types import Category, ErrorKind


@dataclass(frozen=True)
class ClassificationInput:
    """Fields of a service-side failure that rules are evaluated against."""

    error_code: str | None
    error_message: str | None
    status_code: int
    error_kind: ErrorKind
    action: str


@dataclass(frozen=True)
class RawFailure:
    """Re-expression of a failure that is not kept as an exception object."""

    type_name: str
    message: str | None


@dataclass(frozen=True)
class ClassifiedFailure:
    """Result of failure classification."""

    category: Category
    action: str
    source: BaseException | RawFailure

    @property
    def original(self) -> BaseException | None:
        """The underlying exception, when it was kept."""
        return self.source if isinstance(self.source, BaseException) else None

    @property
    def type_name(self) -> str:
        if isinstance(self.source, RawFailure):
            return self.source.type_name
        return qualified_name(self.source)

    @property
    def message(self) -> str | None:
        if isinstance(self.source, RawFailure):
            return self.source.message
        return str(self.source)

    @property
    def backoff_multiplier(self) -> int | None:
        return self.category.backoff_multiplier

    @property
    def is_transient(self) -> bool:
        """Check if the failure is likely transient."""
        return self.category.is_transient

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "category": self.category.value,
            "action": self.action,
            "error_type": self.type_name,
            "error_message": self.message,
            "backoff_multiplier": self.backoff_multiplier,
            "is_transient": self.is_transient,
        }


def qualified_name(error: BaseException) -> str:
    """Module-qualified class name of an exception, bare for builtins."""
    cls = type(error)
    if cls.__module__ == "builtins":
        return cls.__qualname__
    return f"{cls.__module__}.{cls.__qualname__}"

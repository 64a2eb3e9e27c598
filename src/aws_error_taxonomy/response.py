"""
Outcome of a single paged AWS API call.
"""
from typing import Optional

from .classification import ClassifiedFailure, classify


class PageResult:
    """Either a classified failure or the cursor of the next page."""

    def __init__(
        self,
        next_page: Optional[str] = None,
        exception: Optional[ClassifiedFailure] = None
    ):
        self.next_page = next_page
        self.exception = exception

    @classmethod
    def from_failure(cls, failure: BaseException, action: str) -> 'PageResult':
        """Classify a failure and wrap it.

        Raises:
            UnrecognizedFailureError: If the failure cannot be classified
        """
        return cls(exception=classify(failure, action))

    @property
    def next_page(self) -> Optional[str]:
        return self._next_page

    @next_page.setter
    def next_page(self, value: Optional[str]) -> None:
        # An empty continuation token means there are no more pages
        self._next_page = value if value else None

    @property
    def has_next_page(self) -> bool:
        return self._next_page is not None

    @property
    def failed(self) -> bool:
        return self.exception is not None

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "next_page": self.next_page,
            "exception": self.exception.to_dict() if self.exception else None
        }

    def __repr__(self) -> str:
        return f"PageResult(next_page={self.next_page!r}, exception={self.exception!r})"

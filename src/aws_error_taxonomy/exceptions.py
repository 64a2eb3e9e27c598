"""
Exceptions for the error taxonomy.
"""
from typing import Optional

from .types import ErrorKind


class TaxonomyError(Exception):
    """Base exception for the error taxonomy."""


class AmazonServiceError(TaxonomyError):
    """Structured error returned by an AWS service.

    Raised by invocation wrappers when the service answered with an error
    body; the classifier treats it as a service-side failure.
    """

    def __init__(
        self,
        error_message: Optional[str] = None,
        error_code: Optional[str] = None,
        status_code: int = 0,
        error_kind: ErrorKind = ErrorKind.UNKNOWN,
        service_name: Optional[str] = None,
        request_id: Optional[str] = None
    ):
        super().__init__(self._format(error_message, error_code, status_code, service_name, request_id))
        self.error_message = error_message
        self.error_code = error_code
        self.status_code = status_code
        self.error_kind = error_kind
        self.service_name = service_name
        self.request_id = request_id

    @staticmethod
    def _format(
        error_message: Optional[str],
        error_code: Optional[str],
        status_code: int,
        service_name: Optional[str],
        request_id: Optional[str]
    ) -> str:
        return (
            f"{error_message} (Service: {service_name}; Status Code: {status_code}; "
            f"Error Code: {error_code}; Request ID: {request_id})"
        )


class AmazonClientError(TaxonomyError):
    """Failure that never produced a structured service error.

    Chain the underlying transport error with ``raise ... from exc`` so the
    classifier can inspect it.
    """


class UnrecognizedFailureError(TaxonomyError):
    """Raised when a failure is neither service-side nor client-side."""

    def __init__(self, message: str, original_error: BaseException, action: Optional[str] = None):
        super().__init__(message)
        self.original_error = original_error
        self.action = action

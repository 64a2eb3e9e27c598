"""
Shared type definitions for the error taxonomy.
"""
from enum import Enum
from typing import Optional


class Category(Enum):
    """Retry-relevant categories a failed AWS API call is classified into."""
    NO_ACCESS = "no_access"
    THROTTLING = "throttling"
    SERVICE_DISABLED = "service_disabled"
    OBJECT_NOT_FOUND = "object_not_found"
    TEMPORARY_ERROR = "temporary_error"
    NETWORK_ERROR = "network_error"
    UNKNOWN = "unknown"

    @property
    def backoff_multiplier(self) -> Optional[int]:
        """Slow-down multiplier hint for the caller, None when caller-defined."""
        return _BACKOFF_MULTIPLIERS.get(self)

    @property
    def is_transient(self) -> bool:
        """Check if the category usually clears up on its own."""
        return self in (Category.THROTTLING, Category.TEMPORARY_ERROR, Category.NETWORK_ERROR)


_BACKOFF_MULTIPLIERS = {
    Category.NO_ACCESS: 2,
    Category.THROTTLING: 2,
    Category.SERVICE_DISABLED: 2,
    Category.OBJECT_NOT_FOUND: 2,
    Category.TEMPORARY_ERROR: 1,
}


class ErrorKind(Enum):
    """Vendor's own classification of a structured service error."""
    SERVICE = "service"  # Receiver fault
    CLIENT = "client"  # Sender fault
    UNKNOWN = "unknown"  # Error body could not be parsed


class FailureShape(Enum):
    """Which branch of the rule table a caught failure belongs to."""
    SERVICE_SIDE = "service_side"
    CLIENT_SIDE = "client_side"
    UNRECOGNIZED = "unrecognized"


class CauseKind(Enum):
    """Classification of one link in a client-side failure's cause chain."""
    CONNECT_TIMEOUT = "connect_timeout"
    SOCKET_TIMEOUT = "socket_timeout"
    NO_HTTP_RESPONSE = "no_http_response"
    UNKNOWN_HOST = "unknown_host"
    OTHER = "other"

"""Extraction of classification fields from caught failures.

Supports the exception shapes of the HTTP stacks used to reach AWS:
botocore client and transport errors, ``requests``/``urllib3`` and
``aiohttp`` errors, and the standard socket layer.
"""
import http.client
import json
import socket
import xml.etree.ElementTree as ElementTree
from dataclasses import dataclass

import aiohttp
import botocore.exceptions
import requests
import urllib3.exceptions

from ..config import DEFAULT_MAX_CAUSE_DEPTH
from ..exceptions import AmazonClientError, AmazonServiceError
from ..types import CauseKind, ErrorKind, FailureShape
from .categories import ClassificationInput, qualified_name

_ERROR_TYPES = {
    "Sender": ErrorKind.CLIENT,
    "Client": ErrorKind.CLIENT,
    "Receiver": ErrorKind.SERVICE,
    "Server": ErrorKind.SERVICE,
    "Service": ErrorKind.SERVICE,
}

# Cost bound for untrusted error bodies
MAX_ERROR_BODY_SIZE = 64 * 1024

_CLIENT_SIDE_TYPES: tuple[type[BaseException], ...] = (
    AmazonClientError,
    botocore.exceptions.BotoCoreError,
    requests.exceptions.RequestException,
    aiohttp.ClientError,
    urllib3.exceptions.HTTPError,
    ConnectionError,
    TimeoutError,
    socket.gaierror,
)


@dataclass(frozen=True)
class FailureDescription:
    """Tagged description of a caught failure."""

    shape: FailureShape
    type_name: str
    message: str | None
    error_code: str | None = None
    error_message: str | None = None
    status_code: int = 0
    error_kind: ErrorKind = ErrorKind.UNKNOWN
    causes: tuple[CauseKind, ...] = ()

    def to_input(self, action: str) -> ClassificationInput:
        return ClassificationInput(
            error_code=self.error_code,
            error_message=self.error_message,
            status_code=self.status_code,
            error_kind=self.error_kind,
            action=action,
        )


def describe_failure(
    failure: BaseException,
    max_cause_depth: int = DEFAULT_MAX_CAUSE_DEPTH
) -> FailureDescription:
    """Describe a failure as service-side, client-side or unrecognized.

    Args:
        failure: The caught exception
        max_cause_depth: Maximum number of chained causes to inspect

    Returns:
        Failure description carrying the fields the rule table needs

    """
    type_name = qualified_name(failure)
    message = str(failure)

    if isinstance(failure, AmazonServiceError):
        return FailureDescription(
            shape=FailureShape.SERVICE_SIDE,
            type_name=type_name,
            message=message,
            error_code=failure.error_code,
            error_message=failure.error_message,
            status_code=failure.status_code,
            error_kind=failure.error_kind,
        )

    response = getattr(failure, "response", None)
    if isinstance(response, dict) and "Error" in response:
        return _describe_botocore_style(failure, response, type_name, message)

    if isinstance(failure, requests.exceptions.HTTPError) and failure.response is not None:
        return _describe_http_response(failure.response, type_name, message)

    if isinstance(failure, aiohttp.ClientResponseError):
        return FailureDescription(
            shape=FailureShape.SERVICE_SIDE,
            type_name=type_name,
            message=message,
            error_message=failure.message or None,
            status_code=failure.status,
            error_kind=ErrorKind.UNKNOWN,
        )

    if isinstance(failure, _CLIENT_SIDE_TYPES):
        return FailureDescription(
            shape=FailureShape.CLIENT_SIDE,
            type_name=type_name,
            message=message,
            causes=cause_chain(failure, max_cause_depth),
        )

    return FailureDescription(shape=FailureShape.UNRECOGNIZED, type_name=type_name, message=message)


def cause_chain(failure: BaseException, max_depth: int = DEFAULT_MAX_CAUSE_DEPTH) -> tuple[CauseKind, ...]:
    """Kinds of the failure's chained causes, nearest first."""
    kinds: list[CauseKind] = []
    seen = {id(failure)}
    current = _next_cause(failure)
    while current is not None and len(kinds) < max_depth and id(current) not in seen:
        seen.add(id(current))
        kinds.append(cause_kind(current))
        current = _next_cause(current)
    return tuple(kinds)


def cause_kind(error: BaseException) -> CauseKind:
    """Map a single exception onto a cause kind."""
    if isinstance(error, (
        urllib3.exceptions.ConnectTimeoutError,
        requests.exceptions.ConnectTimeout,
        aiohttp.ConnectionTimeoutError,
    )):
        return CauseKind.CONNECT_TIMEOUT
    if isinstance(error, (socket.gaierror, urllib3.exceptions.NameResolutionError)):
        return CauseKind.UNKNOWN_HOST
    if isinstance(error, (
        http.client.RemoteDisconnected,
        aiohttp.ServerDisconnectedError,
        urllib3.exceptions.ProtocolError,
    )):
        return CauseKind.NO_HTTP_RESPONSE
    if isinstance(error, TimeoutError):
        return CauseKind.SOCKET_TIMEOUT
    return CauseKind.OTHER


def _next_cause(error: BaseException) -> BaseException | None:
    if error.__cause__ is not None:
        return error.__cause__
    if error.__suppress_context__:
        return None
    return error.__context__


def _describe_botocore_style(
    failure: BaseException,
    response: dict,
    type_name: str,
    message: str
) -> FailureDescription:
    error = response.get("Error") or {}
    metadata = response.get("ResponseMetadata") or {}
    code = _text(error.get("Code"))
    status = int(metadata.get("HTTPStatusCode") or 0)
    return FailureDescription(
        shape=FailureShape.SERVICE_SIDE,
        type_name=type_name,
        message=message,
        error_code=code,
        error_message=_text(error.get("Message")),
        status_code=status,
        error_kind=_error_kind(_text(error.get("Type")), code, status),
    )


def _describe_http_response(response, type_name: str, message: str) -> FailureDescription:
    status = int(response.status_code or 0)
    code, error_message, error_type = _parse_error_body(response.text or "")
    if code is None:
        header = response.headers.get("x-amzn-ErrorType")
        if header:
            code = header.split(":", 1)[0]
    return FailureDescription(
        shape=FailureShape.SERVICE_SIDE,
        type_name=type_name,
        message=message,
        error_code=code,
        error_message=error_message,
        status_code=status,
        error_kind=_error_kind(error_type, code, status),
    )


def _parse_error_body(body: str) -> tuple[str | None, str | None, str | None]:
    """Extract (code, message, type) from an AWS JSON or XML error body."""
    if len(body) > MAX_ERROR_BODY_SIZE:
        return None, None, None
    body = body.strip()
    if body.startswith("{"):
        try:
            data = json.loads(body)
        except ValueError:
            return None, None, None
        if not isinstance(data, dict):
            return None, None, None
        code = _text(data.get("__type")) or _text(data.get("code")) or _text(data.get("Code"))
        if code:
            # "com.amazonaws.dynamodb.v20120810#ResourceNotFoundException"
            code = code.rsplit("#", 1)[-1] or None
        error_message = _text(data.get("message")) or _text(data.get("Message"))
        return code, error_message, _text(data.get("Type"))

    if body.startswith("<"):
        try:
            root = ElementTree.fromstring(body)
        except (ElementTree.ParseError, ValueError):
            return None, None, None
        fields: dict[str, str] = {}
        for element in root.iter():
            tag = element.tag.rsplit("}", 1)[-1]
            if tag in ("Code", "Message", "Type") and tag not in fields and element.text:
                fields[tag] = element.text.strip()
        return fields.get("Code"), fields.get("Message"), fields.get("Type")

    return None, None, None


def _text(value) -> str | None:
    """Keep non-empty strings only; error bodies are not trusted to be well-typed."""
    return value if isinstance(value, str) and value else None


def _error_kind(type_hint: str | None, code: str | None, status: int) -> ErrorKind:
    if type_hint in _ERROR_TYPES:
        return _ERROR_TYPES[type_hint]
    if code is None:
        return ErrorKind.UNKNOWN
    if status >= 500:
        return ErrorKind.SERVICE
    return ErrorKind.CLIENT

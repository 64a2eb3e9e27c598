"""Tests for extracting classification fields from third-party failures."""
import http.client
import socket
from unittest.mock import Mock

import aiohttp
import botocore.exceptions
import pytest
import requests
import urllib3.exceptions

from aws_error_taxonomy import (
    AmazonClientError,
    AmazonServiceError,
    Category,
    CauseKind,
    ErrorKind,
    FailureClassifier,
    FailureShape,
    describe_failure,
)
from aws_error_taxonomy.classification import cause_chain
from aws_error_taxonomy.classification.describe import MAX_ERROR_BODY_SIZE, cause_kind


class BotocoreStyleError(Exception):
    """Exception shaped like botocore's ClientError."""

    def __init__(self, code, message, status, error_type=None, operation="DescribeInstances"):
        error = {"Code": code, "Message": message}
        if error_type:
            error["Type"] = error_type
        self.response = {
            "Error": error,
            "ResponseMetadata": {"RequestId": "a07b22a2", "HTTPStatusCode": status},
        }
        super().__init__(f"An error occurred ({code}) when calling the {operation} operation: {message}")


def http_error(status, body="", headers=None):
    response = Mock()
    response.status_code = status
    response.text = body
    response.headers = headers or {}
    return requests.exceptions.HTTPError(f"{status} Error", response=response)


@pytest.fixture
def classifier():
    """Create classifier instance."""
    return FailureClassifier()


class TestServiceSideDescription:
    """Test service-side failure shapes."""

    def test_amazon_service_error(self):
        failure = AmazonServiceError("Rate exceeded", "Throttling", 400, ErrorKind.CLIENT)
        description = describe_failure(failure)

        assert description.shape == FailureShape.SERVICE_SIDE
        assert description.error_code == "Throttling"
        assert description.error_message == "Rate exceeded"
        assert description.status_code == 400
        assert description.error_kind == ErrorKind.CLIENT

    def test_botocore_style_error(self):
        failure = BotocoreStyleError("NoSuchBucket", "The specified bucket does not exist", 404, "Sender")
        description = describe_failure(failure)

        assert description.shape == FailureShape.SERVICE_SIDE
        assert description.error_code == "NoSuchBucket"
        assert description.error_message == "The specified bucket does not exist"
        assert description.status_code == 404
        assert description.error_kind == ErrorKind.CLIENT
        assert description.type_name.endswith("BotocoreStyleError")

    @pytest.mark.parametrize("code,status,error_type,kind", [
        ("InternalError", 500, "Receiver", ErrorKind.SERVICE),
        ("InternalError", 500, None, ErrorKind.SERVICE),
        ("AccessDenied", 403, None, ErrorKind.CLIENT),
        ("", 503, None, ErrorKind.UNKNOWN),
    ])
    def test_botocore_error_kind(self, code, status, error_type, kind):
        description = describe_failure(BotocoreStyleError(code, "", status, error_type))
        assert description.error_kind == kind

    def test_botocore_style_classification(self, classifier):
        failure = BotocoreStyleError("NoSuchBucket", "The specified bucket does not exist", 404, "Sender")
        result = classifier.classify(failure, "s3:GetBucketLocation")

        assert result.category == Category.OBJECT_NOT_FOUND
        assert result.source is failure

    def test_json_error_body(self):
        failure = http_error(400, (
            '{"__type": "com.amazonaws.dynamodb.v20120810#ResourceNotFoundException", '
            '"message": "Requested resource not found"}'
        ))
        description = describe_failure(failure)

        assert description.shape == FailureShape.SERVICE_SIDE
        assert description.error_code == "ResourceNotFoundException"
        assert description.error_message == "Requested resource not found"
        assert description.error_kind == ErrorKind.CLIENT

    def test_query_xml_error_body(self):
        failure = http_error(404, (
            '<ErrorResponse xmlns="https://iam.amazonaws.com/doc/2010-05-08/">'
            '<Error><Type>Sender</Type><Code>NoSuchEntity</Code>'
            '<Message>The role with name scanner cannot be found.</Message></Error>'
            '<RequestId>4a2b</RequestId></ErrorResponse>'
        ))
        description = describe_failure(failure)

        assert description.error_code == "NoSuchEntity"
        assert description.error_message == "The role with name scanner cannot be found."
        assert description.error_kind == ErrorKind.CLIENT

    def test_ec2_xml_error_body(self, classifier):
        failure = http_error(403, (
            '<Response><Errors><Error><Code>UnauthorizedOperation</Code>'
            '<Message>You are not authorized to perform this operation.</Message></Error></Errors>'
            '<RequestID>7a62c49f</RequestID></Response>'
        ))

        assert describe_failure(failure).error_code == "UnauthorizedOperation"
        assert classifier.classify(failure, "ec2:DescribeInstances").category == Category.NO_ACCESS

    def test_error_type_header(self):
        failure = http_error(400, "", {
            "x-amzn-ErrorType": "ThrottlingException:http://internal.amazon.com/coral/com.amazon.coral.availability/",
        })
        assert describe_failure(failure).error_code == "ThrottlingException"

    def test_unparseable_body(self, classifier):
        """Test bare gateway responses without an error code."""
        failure = http_error(502, "Bad Gateway")
        description = describe_failure(failure)

        assert description.error_code is None
        assert description.error_kind == ErrorKind.UNKNOWN
        assert classifier.classify(failure, "lambda:ListFunctions").category == Category.TEMPORARY_ERROR

    def test_malformed_json_body(self):
        description = describe_failure(http_error(500, "{not json"))
        assert description.error_code is None
        assert description.error_kind == ErrorKind.UNKNOWN

    def test_non_string_json_fields_are_ignored(self, classifier):
        """Test that mistyped JSON fields do not break classification."""
        failure = http_error(400, '{"__type": "ValidationError", "message": 123, "Type": ["x"]}')
        description = describe_failure(failure)

        assert description.error_code == "ValidationError"
        assert description.error_message is None
        assert description.error_kind == ErrorKind.CLIENT
        assert classifier.classify(failure, "cloudformation:DescribeStacks").category == Category.UNKNOWN

    def test_non_string_json_code_is_ignored(self):
        description = describe_failure(http_error(500, '{"__type": 42, "message": "Internal"}'))
        assert description.error_code is None
        assert description.error_message == "Internal"
        assert description.error_kind == ErrorKind.UNKNOWN

    def test_botocore_style_non_string_fields(self, classifier):
        failure = BotocoreStyleError("Throttling", {"text": "Rate exceeded"}, 400, error_type=["Sender"])
        description = describe_failure(failure)

        assert description.error_code == "Throttling"
        assert description.error_message is None
        assert description.error_kind == ErrorKind.CLIENT
        assert classifier.classify(failure, "ec2:DescribeInstances").category == Category.THROTTLING

    def test_oversized_body_is_not_parsed(self):
        body = "<Error><Code>NoSuchEntity</Code>" + " " * MAX_ERROR_BODY_SIZE + "</Error>"
        description = describe_failure(http_error(404, body))

        assert description.error_code is None
        assert description.error_kind == ErrorKind.UNKNOWN

    def test_oversized_body_falls_back_to_header(self, classifier):
        body = "<Error><Code>NoSuchEntity</Code>" + " " * MAX_ERROR_BODY_SIZE + "</Error>"
        failure = http_error(404, body, headers={"x-amzn-ErrorType": "NoSuchEntity:http://internal.amazon.com/"})

        assert describe_failure(failure).error_code == "NoSuchEntity"
        assert classifier.classify(failure, "iam:GetRole").category == Category.OBJECT_NOT_FOUND

    def test_aiohttp_response_error(self, classifier):
        failure = aiohttp.ClientResponseError(Mock(), (), status=503, message="Service Unavailable")
        description = describe_failure(failure)

        assert description.shape == FailureShape.SERVICE_SIDE
        assert description.status_code == 503
        assert description.error_code is None
        assert description.error_kind == ErrorKind.UNKNOWN
        assert classifier.classify(failure, "ecs:ListClusters").category == Category.TEMPORARY_ERROR


class TestClientSideDescription:
    """Test client-side failure shapes."""

    @pytest.mark.parametrize("failure", [
        AmazonClientError("Unable to execute HTTP request"),
        requests.exceptions.ConnectionError("Connection refused"),
        requests.exceptions.HTTPError("no response attached"),
        aiohttp.ServerDisconnectedError(),
        urllib3.exceptions.ProtocolError("Connection aborted."),
        ConnectionRefusedError("Connection refused"),
        TimeoutError("timed out"),
        socket.gaierror(-2, "Name or service not known"),
    ])
    def test_client_side_shapes(self, failure):
        assert describe_failure(failure).shape == FailureShape.CLIENT_SIDE

    def test_requests_read_timeout(self, classifier):
        failure = requests.exceptions.ReadTimeout(
            "HTTPSConnectionPool(host='ec2.us-east-1.amazonaws.com', port=443): Read timed out. (read timeout=10)"
        )
        assert classifier.classify(failure, "ec2:DescribeInstances").category == Category.NETWORK_ERROR

    def test_requests_connection_error_from_dns_failure(self, classifier):
        try:
            try:
                raise socket.gaierror(-2, "Name or service not known")
            except socket.gaierror:
                raise requests.exceptions.ConnectionError("Failed to resolve 'ec2.mars-1.amazonaws.com'")
        except requests.exceptions.ConnectionError as exc:
            failure = exc

        assert describe_failure(failure).causes == (CauseKind.UNKNOWN_HOST,)
        assert classifier.classify(failure, "ec2:DescribeRegions").category == Category.NETWORK_ERROR

    def test_aiohttp_disconnect_cause(self, classifier):
        failure = AmazonClientError("Unable to execute HTTP request")
        failure.__cause__ = aiohttp.ServerDisconnectedError()

        assert classifier.classify(failure, "ecs:ListClusters").category == Category.NETWORK_ERROR

    @pytest.mark.parametrize("failure", [
        botocore.exceptions.EndpointConnectionError(endpoint_url="https://ec2.us-east-1.amazonaws.com/"),
        botocore.exceptions.HTTPClientError(error="Connection pool is full"),
        botocore.exceptions.NoCredentialsError(),
    ])
    def test_botocore_transport_errors(self, failure):
        """Test that botocore's own transport errors are client-side."""
        assert describe_failure(failure).shape == FailureShape.CLIENT_SIDE

    def test_botocore_endpoint_error_from_dns_failure(self, classifier):
        resolution = urllib3.exceptions.NameResolutionError(
            "ec2.mars-1.amazonaws.com", None, socket.gaierror(-2, "Name or service not known")
        )
        resolution.__cause__ = socket.gaierror(-2, "Name or service not known")
        failure = botocore.exceptions.EndpointConnectionError(endpoint_url="https://ec2.mars-1.amazonaws.com/")
        failure.__cause__ = resolution

        assert describe_failure(failure).causes == (CauseKind.UNKNOWN_HOST, CauseKind.UNKNOWN_HOST)
        assert classifier.classify(failure, "ec2:DescribeRegions").category == Category.NETWORK_ERROR

    def test_botocore_endpoint_error_from_os_error(self, classifier, caplog):
        """Test that an uncategorized transport error is UNKNOWN rather than raised."""
        try:
            try:
                raise OSError("Name or service not known")
            except OSError:
                raise botocore.exceptions.EndpointConnectionError(
                    endpoint_url="https://ec2.mars-1.amazonaws.com/"
                )
        except botocore.exceptions.EndpointConnectionError as exc:
            failure = exc

        result = classifier.classify(failure, "ec2:DescribeRegions")

        assert result.category == Category.UNKNOWN
        assert result.source.type_name == "botocore.exceptions.EndpointConnectionError"
        assert any(record.levelname == "ERROR" for record in caplog.records)

    def test_unrecognized_shape(self):
        assert describe_failure(RuntimeError("boom")).shape == FailureShape.UNRECOGNIZED


class TestCauseChain:
    """Test the cause chain walk."""

    @pytest.mark.parametrize("error,kind", [
        (urllib3.exceptions.ConnectTimeoutError("connect timed out"), CauseKind.CONNECT_TIMEOUT),
        (requests.exceptions.ConnectTimeout("connect timed out"), CauseKind.CONNECT_TIMEOUT),
        (aiohttp.ConnectionTimeoutError(), CauseKind.CONNECT_TIMEOUT),
        (socket.timeout("timed out"), CauseKind.SOCKET_TIMEOUT),
        (http.client.RemoteDisconnected("closed"), CauseKind.NO_HTTP_RESPONSE),
        (urllib3.exceptions.ProtocolError("Connection aborted."), CauseKind.NO_HTTP_RESPONSE),
        (socket.gaierror(-2, "Name or service not known"), CauseKind.UNKNOWN_HOST),
        (ValueError("other"), CauseKind.OTHER),
    ])
    def test_cause_kind(self, error, kind):
        assert cause_kind(error) == kind

    def test_explicit_cause_preferred(self):
        failure = AmazonClientError("outer")
        failure.__context__ = ValueError("context")
        failure.__cause__ = socket.timeout("timed out")

        assert cause_chain(failure) == (CauseKind.SOCKET_TIMEOUT,)

    def test_suppressed_context(self):
        try:
            try:
                raise socket.timeout("timed out")
            except socket.timeout:
                raise AmazonClientError("outer") from None
        except AmazonClientError as exc:
            failure = exc

        assert cause_chain(failure) == ()

    def test_depth_bound(self):
        failure = AmazonClientError("outer")
        current = failure
        for i in range(20):
            cause = ValueError(f"level {i}")
            current.__cause__ = cause
            current = cause

        assert len(cause_chain(failure, max_depth=5)) == 5

    def test_cycle_terminates(self):
        failure = AmazonClientError("outer")
        first = ValueError("first")
        second = ValueError("second")
        failure.__cause__ = first
        first.__cause__ = second
        second.__cause__ = first

        assert cause_chain(failure) == (CauseKind.OTHER, CauseKind.OTHER)

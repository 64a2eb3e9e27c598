"""Rule table mapping AWS error signals to categories.

Groups are evaluated in the order of ``SERVICE_RULE_GROUPS`` and the first
matching rule wins. Several rules are deliberately broader than rules of an
earlier group and rely on that order, e.g. ``InvalidParameterValue`` carrying
"Access Denied" must stay ``NO_ACCESS`` even if the message also says
"Unable to find".
"""
from dataclasses import dataclass, field
from typing import Any

from ..types import Category, CauseKind, ErrorKind
from .categories import ClassificationInput

BAD_GATEWAY = 502
SERVICE_UNAVAILABLE = 503
GATEWAY_TIMEOUT = 504


@dataclass(frozen=True)
class Rule:
    """Conjunction of conditions over a service-side failure.

    Empty conditions act as wildcards. Absent error codes and messages never
    satisfy a code or message condition.
    """

    codes: frozenset[str] = frozenset()
    message_prefix: str | None = None
    message_contains: tuple[str, ...] = ()
    actions: frozenset[str] = frozenset()
    status_codes: frozenset[int] = frozenset()
    error_kinds: frozenset[ErrorKind] = frozenset()
    note: str = field(default="", compare=False)

    def __post_init__(self):
        object.__setattr__(self, "codes", frozenset(_many(self.codes)))
        object.__setattr__(self, "message_contains", tuple(_many(self.message_contains)))
        object.__setattr__(self, "actions", frozenset(_many(self.actions)))
        object.__setattr__(self, "status_codes", frozenset(_many(self.status_codes)))
        object.__setattr__(self, "error_kinds", frozenset(_many(self.error_kinds)))
        if not (self.codes or self.message_prefix is not None or self.message_contains
                or self.actions or self.status_codes or self.error_kinds):
            raise ValueError("Rule must define at least one condition")

    def matches(self, inp: ClassificationInput) -> bool:
        """Check whether every condition holds for the input."""
        if self.codes and inp.error_code not in self.codes:
            return False
        message = inp.error_message
        if self.message_prefix is not None:
            if message is None or not message.startswith(self.message_prefix):
                return False
        if self.message_contains:
            if message is None or not all(part in message for part in self.message_contains):
                return False
        if self.actions and inp.action not in self.actions:
            return False
        if self.status_codes and inp.status_code not in self.status_codes:
            return False
        if self.error_kinds and inp.error_kind not in self.error_kinds:
            return False
        return True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Rule":
        """Create from dictionary, e.g. loaded from a JSON rule file."""
        data = data.copy()
        if "error_kinds" in data:
            data["error_kinds"] = [ErrorKind(kind) for kind in _many(data["error_kinds"])]
        return cls(**data)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary accepted by ``from_dict``."""
        return {
            "codes": sorted(self.codes),
            "message_prefix": self.message_prefix,
            "message_contains": list(self.message_contains),
            "actions": sorted(self.actions),
            "status_codes": sorted(self.status_codes),
            "error_kinds": sorted(kind.value for kind in self.error_kinds),
            "note": self.note,
        }


@dataclass(frozen=True)
class NetworkRule:
    """Condition over a client-side failure's message and cause chain.

    ``cause_sequence`` must appear as consecutive links of the chain.
    """

    message_contains: str | None = None
    cause_sequence: tuple[CauseKind, ...] = ()
    note: str = field(default="", compare=False)

    def __post_init__(self):
        object.__setattr__(self, "cause_sequence", tuple(self.cause_sequence))
        if self.message_contains is None and not self.cause_sequence:
            raise ValueError("NetworkRule must define a message or a cause sequence")

    def matches(self, message: str | None, causes: tuple[CauseKind, ...]) -> bool:
        if self.message_contains is not None:
            if message is None or self.message_contains not in message:
                return False
        if self.cause_sequence:
            size = len(self.cause_sequence)
            return any(
                causes[i:i + size] == self.cause_sequence
                for i in range(len(causes) - size + 1)
            )
        return True


def _many(value):
    # A lone string is one value, not a sequence of characters
    if isinstance(value, (str, int, ErrorKind)):
        return (value,)
    return value


def _codes(*codes: str, note: str = "") -> Rule:
    return Rule(codes=frozenset(codes), note=note)


def _invalid_parameter(*parts: str, prefix: str | None = None, note: str = "") -> Rule:
    return Rule(
        codes=frozenset({"InvalidParameterValue"}),
        message_prefix=prefix,
        message_contains=parts,
        note=note,
    )


NO_ACCESS_RULES: tuple[Rule, ...] = (
    _codes(
        "AccessDeniedException",
        "AccessDenied",
        "AuthFailure",
        "UnauthorizedOperation",
        "AuthorizationError",
        "UnrecognizedClientException",
        "InsufficientPrivilegesException",
        "InvalidClientTokenId",
        "InvalidAccessKeyId",
        "FailedResourceAccessException",
    ),
    # Elastic Beanstalk wraps the real access error inside the message
    _invalid_parameter(prefix="Access Denied", note="Elastic Beanstalk"),
    _invalid_parameter("is not authorized to perform", note="Elastic Beanstalk"),
)

THROTTLING_RULES: tuple[Rule, ...] = (
    _codes(
        "Throttling",
        "ThrottlingException",
        "TooManyRequestsException",
        "RequestLimitExceeded",
        "LimitExceededException",
        "RequestThrottled",
    ),
)

SERVICE_DISABLED_RULES: tuple[Rule, ...] = (
    _codes(
        "SubscriptionRequiredException",
        "NotSignedUp",
        "OptInRequired",
        "AWSOrganizationsNotInUseException",
        "DeploymentNotStartedException",
    ),
    # "Use of cache security groups is not permitted in this API version for your account."
    _invalid_parameter("not permitted in this API version", note="ElastiCache"),
    _invalid_parameter(
        prefix="Starting August 1 2017, you won't be able to view or manage (except terminate) "
               "Elastic Beanstalk environments running legacy platforms",
        note="Elastic Beanstalk legacy platforms",
    ),
    _invalid_parameter("Backtrack is not", note="Aurora backtrack"),
    Rule(
        codes=frozenset({"UnsupportedOperation"}),
        message_contains=("Amazon Internet Services Private Limited (AISPL)",),
        note="Reserved Instances unavailable for AISPL accounts",
    ),
    Rule(
        codes=frozenset({"UnsupportedOperation"}),
        message_contains=("The operation is not supported in this region!",),
    ),
    Rule(
        codes=frozenset({"UnsupportedOperation"}),
        actions=frozenset({"ec2:DescribeCustomerGateways", "ec2:DescribeVpnConnections"}),
    ),
    Rule(
        codes=frozenset({"UnknownOperationException"}),
        actions=frozenset({"dynamodb:ListGlobalTables"}),
    ),
    Rule(
        codes=frozenset({"OperationNotPermitted"}),
        actions=frozenset({"ec2:DescribeEgressOnlyInternetGateways"}),
    ),
    Rule(
        codes=frozenset({"ValidationError"}),
        actions=frozenset({"cloudformation:ListStackSets"}),
    ),
)

OBJECT_NOT_FOUND_RULES: tuple[Rule, ...] = (
    _codes(
        "InvalidNetworkInterfaceID",
        "InvalidGatewayRequestException",
        "NoSuchEntity",
        "NoSuchHostedZone",
        "AWS.SimpleQueueService.NonExistentQueue",
        "EntityDoesNotExistException",
        "RepositoryDoesNotExistException",
        "InvalidInstanceID.NotFound",
        "InvalidSnapshot.NotFound",
        "LoadBalancerNotFound",
        "DBInstanceNotFound",
        "CacheClusterNotFound",
        "FileSystemNotFound",
        "ResourceNotFoundException",
        "NotFound",
        "NotFoundException",
        "NoSuchBucket",
        "NoSuchDistribution",
        "NoSuchConfigRuleException",
        "TrailNotFoundException",
        "MountTargetNotFound",
        "ListenerNotFound",
        "ResourceNotFound",
        "TargetGroupNotFound",
        "PipelineDeletedException",
        "PipelineNotFoundException",
        "ExecutionDoesNotExist",
        "DeploymentDoesNotExistException",
        "InvalidVpcID.NotFound",
        "ConfigurationSetDoesNotExist",
        "RuleSetDoesNotExist",
        "TableNotFoundException",
        "StackSetNotFoundException",
        "DBSnapshotNotFound",
        "BackupNotFoundException",
        "NoSuchHealthCheck",
        "ClusterNotFound",
        "DBClusterNotFoundFault",
        "BranchDoesNotExistException",
        "WAFNonexistentItemException",
        "PipelineExecutionNotFoundException",
    ),
    # "Unable to find a snapshot matching the resource name: arn:aws:rds:..."
    _invalid_parameter("Unable to find", note="RDS"),
    _invalid_parameter("No Environment found for EnvironmentName", note="Elastic Beanstalk"),
    _invalid_parameter("No Environment found for EnvironmentId", note="Elastic Beanstalk"),
    _invalid_parameter("DBInstance", "not found", note="RDS"),
    _invalid_parameter(":elasticbeanstalk:", "does not exist", note="Elastic Beanstalk"),
    _invalid_parameter("No Solution Stack named", note="Elastic Beanstalk"),
    _invalid_parameter("Unable to resolve Ref. No data on parameter value"),
    Rule(codes=frozenset({"InvalidRequestException"}), message_contains=("Cluster", "was not found"), note="EMR"),
    Rule(codes=frozenset({"InvalidRequestException"}), message_contains=("Cluster", "is not valid"), note="EMR"),
    Rule(codes=frozenset({"InvalidRequestException"}), message_contains=("Step", "was not found"), note="EMR"),
    Rule(
        codes=frozenset({"ValidationError"}),
        message_prefix="Stack with id",
        message_contains=("does not exist",),
        note="CloudFormation",
    ),
    Rule(
        codes=frozenset({"ValidationError"}),
        message_prefix="Group",
        message_contains=("not found",),
    ),
    Rule(
        codes=frozenset({"ValidationError"}),
        message_contains=("AutoScalingGroup name not found",),
        note="Auto Scaling",
    ),
    Rule(
        codes=frozenset({"ClientException"}),
        actions=frozenset({"ds:DescribeEventTopics"}),
        message_contains=("is in Deleting state",),
        note="Directory Service reports deletion through ClientException",
    ),
)

TEMPORARY_ERROR_RULES: tuple[Rule, ...] = (
    _codes(
        "ExpiredToken",
        "InternalFailure",
        "InternalError",
        "InternalServerError",
        "ServiceUnavailable",
        "ServerException",
        "503 Service Unavailable",
        "500 Internal Server Error",
        "ClientUnavailable",
        "DirectConnectServerException",
        "KMSInternalException",
        "HttpConnectionTimeoutException",
    ),
    _invalid_parameter("Invalid Environment Configuration specification", note="Elastic Beanstalk"),
    # "Could not get snapshot limits as directory d-9967340d7b is in Failed state"
    Rule(
        codes=frozenset({"ClientException"}),
        message_contains=("Could not get snapshot limits as directory",),
        note="Directory Service",
    ),
    # Bare gateway errors without an error code
    Rule(
        actions=frozenset({"lambda:ListFunctions", "ds:DescribeDirectories"}),
        status_codes=frozenset({BAD_GATEWAY, GATEWAY_TIMEOUT}),
    ),
    Rule(
        error_kinds=frozenset({ErrorKind.UNKNOWN}),
        status_codes=frozenset({SERVICE_UNAVAILABLE, GATEWAY_TIMEOUT}),
    ),
)

SERVICE_RULE_GROUPS: tuple[tuple[Category, tuple[Rule, ...]], ...] = (
    (Category.NO_ACCESS, NO_ACCESS_RULES),
    (Category.THROTTLING, THROTTLING_RULES),
    (Category.SERVICE_DISABLED, SERVICE_DISABLED_RULES),
    (Category.OBJECT_NOT_FOUND, OBJECT_NOT_FOUND_RULES),
    (Category.TEMPORARY_ERROR, TEMPORARY_ERROR_RULES),
)

NETWORK_RULES: tuple[NetworkRule, ...] = (
    NetworkRule(message_contains="Read timed out"),
    NetworkRule(message_contains="Connection reset"),
    NetworkRule(cause_sequence=(CauseKind.CONNECT_TIMEOUT, CauseKind.SOCKET_TIMEOUT)),
    NetworkRule(cause_sequence=(CauseKind.NO_HTTP_RESPONSE,)),
    NetworkRule(cause_sequence=(CauseKind.UNKNOWN_HOST,)),
)


def get_rules_for_category(category: Category) -> tuple[Rule, ...] | tuple[NetworkRule, ...]:
    """Get all built-in rules for a specific category."""
    if category == Category.NETWORK_ERROR:
        return NETWORK_RULES
    for group_category, rules in SERVICE_RULE_GROUPS:
        if group_category == category:
            return rules
    return ()

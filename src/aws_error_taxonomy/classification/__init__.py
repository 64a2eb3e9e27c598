"""Failure classification for AWS API calls."""
from .categories import ClassificationInput, ClassifiedFailure, RawFailure
from .classifier import FailureClassifier, classify
from .describe import FailureDescription, cause_chain, describe_failure
from .rules import (
    NETWORK_RULES,
    SERVICE_RULE_GROUPS,
    NetworkRule,
    Rule,
    get_rules_for_category,
)

__all__ = [
    "FailureClassifier",
    "classify",
    "ClassificationInput",
    "ClassifiedFailure",
    "RawFailure",
    "FailureDescription",
    "describe_failure",
    "cause_chain",
    "Rule",
    "NetworkRule",
    "SERVICE_RULE_GROUPS",
    "NETWORK_RULES",
    "get_rules_for_category",
]

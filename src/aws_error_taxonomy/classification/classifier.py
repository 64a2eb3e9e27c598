"""Main failure classifier implementation."""
import logging

from ..config import ClassifierConfig
from ..exceptions import UnrecognizedFailureError
from ..types import Category, FailureShape
from .categories import ClassificationInput, ClassifiedFailure, RawFailure
from .describe import FailureDescription, describe_failure
from .rules import NETWORK_RULES, SERVICE_RULE_GROUPS, NetworkRule, Rule

logger = logging.getLogger(__name__)


class FailureClassifier:
    """Classifies failed AWS API calls into retry-relevant categories.

    Holds no mutable state: the rule table is assembled once and kept as
    tuples, so one instance can be shared by any number of threads or
    coroutines.
    """

    def __init__(self, config: ClassifierConfig | None = None):
        """Initialize classifier with built-in rules and configured extras.

        Args:
            config: Classifier configuration; extra rules are appended to the
                end of their category's group

        """
        self.config = config or ClassifierConfig()
        self.rule_groups: tuple[tuple[Category, tuple[Rule, ...]], ...] = tuple(
            (category, rules + self.config.extra_rules.get(category, ()))
            for category, rules in SERVICE_RULE_GROUPS
        )
        self.network_rules: tuple[NetworkRule, ...] = NETWORK_RULES

    def classify(self, failure: BaseException, action: str) -> ClassifiedFailure:
        """Classify a failure raised while performing an action.

        Args:
            failure: The exception caught from the AWS API call
            action: Logical operation identifier, e.g. "ec2:DescribeInstances"

        Returns:
            Classified failure with category and source

        Raises:
            UnrecognizedFailureError: If the failure is neither a service-side
                nor a client-side failure

        """
        description = describe_failure(failure, self.config.max_cause_depth)
        logger.info(
            f"Exception during AWS API client call. {description.type_name}: {description.message}"
        )

        if description.shape == FailureShape.SERVICE_SIDE:
            category = self.classify_input(description.to_input(action))
            if category == Category.UNKNOWN:
                self._log_unknown("service-side failure", description, action)
            return ClassifiedFailure(category=category, action=action, source=failure)

        if description.shape == FailureShape.CLIENT_SIDE:
            category = self._classify_client_side(description)
            if category == Category.UNKNOWN:
                self._log_unknown("client-side failure", description, action)
            return ClassifiedFailure(
                category=category,
                action=action,
                source=RawFailure(type_name=description.type_name, message=description.message),
            )

        self._log_unknown("failure", description, action)
        raise UnrecognizedFailureError(
            f"Unable to categorize {description.type_name} raised by {action}",
            original_error=failure,
            action=action,
        ) from failure

    def classify_input(self, inp: ClassificationInput) -> Category:
        """Evaluate service-side rule groups in priority order."""
        for category, rules in self.rule_groups:
            for rule in rules:
                if rule.matches(inp):
                    logger.debug(f"Matched {category.value} rule {rule.note or rule} for {inp.action}")
                    return category
        return Category.UNKNOWN

    def _classify_client_side(self, description: FailureDescription) -> Category:
        for rule in self.network_rules:
            if rule.matches(description.message, description.causes):
                return Category.NETWORK_ERROR
        return Category.UNKNOWN

    def _log_unknown(self, kind: str, description: FailureDescription, action: str) -> None:
        logger.error(
            f"Unable to categorize {kind} for {action}. "
            f"{description.type_name}: {description.message}"
        )


_default_classifier = FailureClassifier()


def classify(failure: BaseException, action: str) -> ClassifiedFailure:
    """Classify a failure with the default rule table."""
    return _default_classifier.classify(failure, action)

"""
Configuration for the failure classifier.
"""
from typing import TYPE_CHECKING, Dict, Iterable, Mapping, Optional, Tuple

from .types import Category

if TYPE_CHECKING:
    from .classification.rules import Rule


DEFAULT_MAX_CAUSE_DEPTH = 8


class ClassifierConfig:
    """Configuration for classification behavior."""

    def __init__(
        self,
        max_cause_depth: int = DEFAULT_MAX_CAUSE_DEPTH,
        extra_rules: Optional[Mapping[Category, Iterable['Rule']]] = None
    ):
        from .classification.rules import Rule

        if max_cause_depth < 1:
            raise ValueError(f"max_cause_depth must be at least 1, got {max_cause_depth}")
        self.max_cause_depth = max_cause_depth
        self.extra_rules: Dict[Category, Tuple['Rule', ...]] = {}
        for category, rules in (extra_rules or {}).items():
            if category in (Category.NETWORK_ERROR, Category.UNKNOWN):
                raise ValueError(f"Cannot add service-side rules for category {category.value}")
            rules = tuple(rules)
            for rule in rules:
                if not isinstance(rule, Rule):
                    raise ValueError(
                        f"Extra rules for {category.value} must be Rule instances, "
                        f"got {type(rule).__name__}"
                    )
            self.extra_rules[category] = rules

    def to_dict(self) -> dict:
        """Convert to dictionary accepted by ``from_dict``."""
        return {
            "max_cause_depth": self.max_cause_depth,
            "extra_rules": {
                category.value: [rule.to_dict() for rule in rules]
                for category, rules in self.extra_rules.items()
            }
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'ClassifierConfig':
        """Create from dictionary.

        ``extra_rules`` maps category values (``"object_not_found"``) to lists
        of rule keyword dictionaries accepted by ``Rule``.
        """
        from .classification.rules import Rule

        data = data.copy()
        if 'extra_rules' in data and data['extra_rules']:
            data['extra_rules'] = {
                Category(category): [Rule.from_dict(rule) for rule in rules]
                for category, rules in data['extra_rules'].items()
            }
        return cls(**data)

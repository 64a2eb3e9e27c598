"""
Normalization of AWS API failures into a retry-relevant taxonomy.
"""
from .types import Category, CauseKind, ErrorKind, FailureShape
from .exceptions import (
    TaxonomyError,
    AmazonServiceError,
    AmazonClientError,
    UnrecognizedFailureError
)
from .config import ClassifierConfig
from .classification import (
    ClassificationInput,
    ClassifiedFailure,
    FailureClassifier,
    RawFailure,
    Rule,
    NetworkRule,
    classify,
    describe_failure
)
from .response import PageResult


__all__ = [
    # Taxonomy
    'Category',
    'ErrorKind',
    'FailureShape',
    'CauseKind',

    # Exceptions
    'TaxonomyError',
    'AmazonServiceError',
    'AmazonClientError',
    'UnrecognizedFailureError',

    # Classification
    'ClassifierConfig',
    'FailureClassifier',
    'ClassificationInput',
    'ClassifiedFailure',
    'RawFailure',
    'Rule',
    'NetworkRule',
    'classify',
    'describe_failure',

    # Pagination
    'PageResult'
]

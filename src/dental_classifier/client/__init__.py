"""Dental Classifier Client.

This module provides a client for submitting images to the dental
classification service.
"""

from dental_classifier.client.classification_client import (
    ClassificationClient,
)
from dental_classifier.client.classifier_options import (
    ClassifierOptions,
    RequestEncoding,
)
from dental_classifier.client.exceptions import (
    ClassifierError,
    ErrorKind,
    ImageValidationError,
    NetworkUnreachableError,
    PayloadTooLargeError,
    RequestTimeoutError,
    ResponseParseError,
    RetriesExhaustedError,
    ServerError,
    ServiceWarmingError,
    SubmissionInProgressError,
    TransportError,
    ValidationReason,
)
from dental_classifier.client.image_validator import ImageValidator
from dental_classifier.client.progress_estimator import ProgressEstimator
from dental_classifier.client.retry_policy import RetryPolicy
from dental_classifier.client.submission_controller import (
    SubmissionController,
)

__all__ = [
    "ClassificationClient",
    "ClassifierError",
    "ClassifierOptions",
    "ErrorKind",
    "ImageValidationError",
    "ImageValidator",
    "NetworkUnreachableError",
    "PayloadTooLargeError",
    "ProgressEstimator",
    "RequestEncoding",
    "RequestTimeoutError",
    "ResponseParseError",
    "RetriesExhaustedError",
    "RetryPolicy",
    "ServerError",
    "ServiceWarmingError",
    "SubmissionController",
    "SubmissionInProgressError",
    "TransportError",
    "ValidationReason",
]

"""Models used by the dental classifier client."""

from dental_classifier.client.models.candidate import ImageCandidate
from dental_classifier.client.models.prediction import (
    ClassificationResult,
    ConfidenceLevel,
    Prediction,
)
from dental_classifier.client.models.request import ClassificationRequest
from dental_classifier.client.models.state import (
    AttemptPhase,
    ControllerState,
    SubmissionSnapshot,
    ValidationResult,
)

__all__ = [
    "AttemptPhase",
    "ClassificationRequest",
    "ClassificationResult",
    "ConfidenceLevel",
    "ControllerState",
    "ImageCandidate",
    "Prediction",
    "SubmissionSnapshot",
    "ValidationResult",
]

"""Prediction models returned by the classification service."""

import enum
from collections.abc import Iterator
from dataclasses import dataclass

HIGH_CONFIDENCE = 0.9
MEDIUM_CONFIDENCE = 0.7


class ConfidenceLevel(enum.Enum):
    """Coarse confidence band used to colour a prediction."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class Prediction:
    """A single class label with its confidence in [0, 1]."""

    class_name: str
    confidence: float

    @property
    def confidence_percent(self) -> str:
        """Confidence formatted as a percentage with one decimal."""
        return f"{self.confidence * 100:.1f}%"

    @property
    def confidence_level(self) -> ConfidenceLevel:
        """Band the confidence falls into."""
        if self.confidence >= HIGH_CONFIDENCE:
            return ConfidenceLevel.HIGH
        if self.confidence >= MEDIUM_CONFIDENCE:
            return ConfidenceLevel.MEDIUM
        return ConfidenceLevel.LOW


@dataclass(frozen=True)
class ClassificationResult:
    """Ordered predictions for one image, in the order the server sent them."""

    predictions: tuple[Prediction, ...]

    def __len__(self) -> int:
        """Return the number of predictions."""
        return len(self.predictions)

    def __iter__(self) -> Iterator[Prediction]:
        """Iterate over the predictions in server order."""
        return iter(self.predictions)

    @property
    def top(self) -> Prediction | None:
        """The prediction with the highest confidence, if any."""
        if not self.predictions:
            return None
        return max(self.predictions, key=lambda p: p.confidence)

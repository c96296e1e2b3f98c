"""State models exposed by the submission controller."""

import enum
from dataclasses import dataclass
from typing import Self

from dental_classifier.client.exceptions import (
    ClassifierError,
    ErrorKind,
    ValidationReason,
)
from dental_classifier.client.models.prediction import ClassificationResult


class ControllerState(enum.Enum):
    """Coarse UI phase of a submission controller."""

    IDLE = "idle"
    HAS_IMAGE = "has_image"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class AttemptPhase(enum.Enum):
    """Fine-grained phase of the current image or attempt."""

    VALIDATING = "validating"
    ENCODING = "encoding"
    AWAITING_SERVER = "awaiting_server"
    SERVER_WARMING = "server_warming"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating a candidate image."""

    reason: ValidationReason | None = None

    @property
    def accepted(self) -> bool:
        """Whether the candidate passed every check."""
        return self.reason is None

    @classmethod
    def accept(cls) -> Self:
        """Build an accepted result."""
        return cls()

    @classmethod
    def reject(cls, reason: ValidationReason) -> Self:
        """Build a rejected result."""
        return cls(reason=reason)


@dataclass(frozen=True)
class SubmissionSnapshot:
    """Read-only view of a controller, re-emitted after every transition.

    Attributes:
        state: Coarse UI phase.
        phase: Phase of the current validation or attempt, if any.
        progress_percent: Progress to display, in [0, 100].
        attempt_number: Number of the current or last attempt, 0 before
            the first submission.
        has_image: Whether an accepted image is held.
        preview: Data URI preview of the held image, if any.
        result: Predictions of the last successful submission.
        error: Failure of the last submission.
        rejection: Failure of the last file selection. Kept separate from
            ``error`` so a rejected file never disturbs the held image or
            its result.
        server_starting: Whether the service reported it is warming up
            during the current submission.
        last_error: Failure of the previous attempt while a retry is
            pending or running.

    """

    state: ControllerState = ControllerState.IDLE
    phase: AttemptPhase | None = None
    progress_percent: int = 0
    attempt_number: int = 0
    has_image: bool = False
    preview: str | None = None
    result: ClassificationResult | None = None
    error: ClassifierError | None = None
    rejection: ClassifierError | None = None
    server_starting: bool = False
    last_error: ClassifierError | None = None

    @property
    def is_busy(self) -> bool:
        """Whether a submission is in flight."""
        return self.state is ControllerState.SUBMITTING

    @property
    def error_kind(self) -> ErrorKind | None:
        """Machine-readable kind of the error to display, if any."""
        shown = self.error or self.rejection
        return shown.kind if shown else None

    @property
    def error_message(self) -> str | None:
        """User-facing message of the error to display, if any."""
        shown = self.error or self.rejection
        return shown.user_message if shown else None

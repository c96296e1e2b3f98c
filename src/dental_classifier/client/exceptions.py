"""Base classes for all classifier exceptions."""

import enum


class ErrorKind(enum.Enum):
    """Machine-readable classification of a failure."""

    VALIDATION = "validation"
    NETWORK_UNREACHABLE = "network_unreachable"
    TIMEOUT = "timeout"
    SERVICE_WARMING = "service_warming"
    PAYLOAD_TOO_LARGE = "payload_too_large"
    SERVER_ERROR = "server_error"
    PARSE_ERROR = "parse_error"
    RETRIES_EXHAUSTED = "retries_exhausted"
    CANCELLED = "cancelled"
    INVALID_OPTIONS = "invalid_options"
    INVALID_STATE = "invalid_state"
    UNEXPECTED = "unexpected"


class ValidationReason(enum.Enum):
    """Why a candidate image was rejected before submission."""

    TOO_SMALL = "too_small"
    TOO_LARGE = "too_large"
    FILE_TOO_LARGE = "file_too_large"
    INVALID_FORMAT = "invalid_format"


class ClassifierError(Exception):
    """Base class for all classifier exceptions."""

    default_message = "Failed to classify image. Please try again."
    kind = ErrorKind.UNEXPECTED

    def __init__(self, message: str | None = None) -> None:
        """Initialize with an optional message overriding the default."""
        super().__init__(message or self.default_message)

    @property
    def user_message(self) -> str:
        """Text suitable for showing to the person who submitted the image."""
        return str(self)


class InvalidOptionsError(ClassifierError):
    """Raised when the client configuration is invalid."""

    default_message = "Invalid classifier options"
    kind = ErrorKind.INVALID_OPTIONS


class SubmissionInProgressError(ClassifierError):
    """Raised when a command arrives while a submission is in flight."""

    default_message = "A submission is already in progress"
    kind = ErrorKind.INVALID_STATE


class SubmissionCancelledError(ClassifierError):
    """Raised inside a submission that was cancelled by a reset."""

    default_message = "Submission was cancelled"
    kind = ErrorKind.CANCELLED


_VALIDATION_MESSAGES = {
    ValidationReason.TOO_SMALL: (
        "Image is too small. Width and height must be at least {min}px."
    ),
    ValidationReason.TOO_LARGE: (
        "Image is too large. Width and height must be at most {max}px."
    ),
    ValidationReason.FILE_TOO_LARGE: "Image size should be less than {size}MB",
    ValidationReason.INVALID_FORMAT: (
        "Unsupported image format. Please upload a JPEG or PNG image."
    ),
}


class ImageValidationError(ClassifierError):
    """Raised when a candidate image fails local validation.

    Validation errors never reach the network and are never retried.
    """

    default_message = "Invalid image"
    kind = ErrorKind.VALIDATION

    def __init__(
        self,
        reason: ValidationReason,
        *,
        min_dimension: int = 100,
        max_dimension: int = 4096,
        max_file_size: int = 5 * 1024 * 1024,
    ) -> None:
        """Initialize the error.

        Args:
            reason: Which validation check failed.
            min_dimension: Minimum accepted width/height, for the message.
            max_dimension: Maximum accepted width/height, for the message.
            max_file_size: Maximum accepted size in bytes, for the message.

        """
        self.reason = reason
        message = _VALIDATION_MESSAGES[reason].format(
            min=min_dimension,
            max=max_dimension,
            size=max_file_size // (1024 * 1024),
        )
        super().__init__(message)


class TransportError(ClassifierError):
    """Raised when the request never produced an HTTP response."""

    default_message = "Network error. Please check your connection."
    kind = ErrorKind.NETWORK_UNREACHABLE


class NetworkUnreachableError(TransportError):
    """Raised when the service could not be reached."""


class RequestTimeoutError(TransportError):
    """Raised when an attempt exceeded the configured timeout."""

    default_message = "The server took too long to respond."
    kind = ErrorKind.TIMEOUT


class ServiceWarmingError(ClassifierError):
    """Raised when the service answers 503 while it starts up."""

    default_message = (
        "Server is starting up. Please wait a moment and try again."
    )
    kind = ErrorKind.SERVICE_WARMING

    def __init__(
        self, message: str | None = None, *, wait_hint: float | None = None
    ) -> None:
        """Initialize with the expected start-up wait in seconds."""
        super().__init__(message)
        self.wait_hint = wait_hint

    @property
    def user_message(self) -> str:
        """Starting-up message including the estimated wait."""
        if self.wait_hint is None:
            return str(self)
        return (
            f"{self} This might take up to {self.wait_hint:.0f} seconds "
            "as the server needs to wake up."
        )


class PayloadTooLargeError(ClassifierError):
    """Raised when the service rejects the upload as too large (413)."""

    default_message = (
        "The image is too large for the server. Please upload a smaller image."
    )
    kind = ErrorKind.PAYLOAD_TOO_LARGE


class ServerError(ClassifierError):
    """Raised for any other non-success HTTP status."""

    kind = ErrorKind.SERVER_ERROR

    def __init__(
        self, message: str | None = None, *, status_code: int | None = None
    ) -> None:
        """Initialize with the HTTP status code, when there is one."""
        super().__init__(message)
        self.status_code = status_code

    @property
    def user_message(self) -> str:
        """Generic failure message."""
        return self.default_message


class ResponseParseError(ClassifierError):
    """Raised when a successful response body is malformed."""

    default_message = "Received an invalid response from the server."
    kind = ErrorKind.PARSE_ERROR


class RetriesExhaustedError(ClassifierError):
    """Raised once every allowed attempt failed with a retryable error."""

    default_message = (
        "Server is not responding after multiple attempts. "
        "Please try again later."
    )
    kind = ErrorKind.RETRIES_EXHAUSTED

    def __init__(self, attempts: int, last_error: ClassifierError) -> None:
        """Initialize the error.

        Args:
            attempts: Number of attempts that were made.
            last_error: The failure reported by the final attempt.

        """
        super().__init__()
        self.attempts = attempts
        self.last_error = last_error


def is_retryable(error: BaseException) -> bool:
    """Return whether a failure belongs to a retryable class."""
    return isinstance(error, (TransportError, ServiceWarmingError))

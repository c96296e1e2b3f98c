"""Options object for the dental classifier client."""

import enum
import os
from dataclasses import dataclass, fields
from typing import Any, Self

from dotenv import load_dotenv

from dental_classifier.client import consts
from dental_classifier.client.exceptions import InvalidOptionsError


class RequestEncoding(enum.Enum):
    """How the image is carried in the request body."""

    DATA_URI = "data_uri"
    MULTIPART = "multipart"


@dataclass(frozen=True)
class ClassifierOptions:
    """Options for configuring the classifier client behavior.

    Options are immutable and passed explicitly to every component that
    needs them, so two controllers never share hidden retry state.

    Attributes:
        base_url: Base URL of the classification service.
        classify_path: Path of the classification endpoint.
        timeout: Total time in seconds a single attempt may take. The
            default tolerates a backend waking from idle.
        request_encoding: Whether the image is sent as a base64 data URI
            inside a JSON body or as a multipart form field.
        max_file_size: Largest accepted file in bytes.
        min_dimension: Smallest accepted width and height in pixels.
        max_dimension: Largest accepted width and height in pixels.
        accepted_mime_types: Image types the service understands.
        max_attempts: Attempts per submission, including the first one.
        initial_delay: Delay in seconds before the first retry.
        max_delay: Upper bound in seconds for any retry delay.
        progress_cap: Highest synthetic progress shown while waiting.
        progress_step: Percentage added on each progress tick.
        progress_interval: Seconds between progress ticks.
        warmup_wait_hint: Seconds shown to the user as the expected
            start-up wait when the service reports it is warming up.

    """

    base_url: str = consts.DEFAULT_BASE_URL
    classify_path: str = consts.DEFAULT_CLASSIFY_PATH
    timeout: float = consts.DEFAULT_TIMEOUT
    request_encoding: RequestEncoding = RequestEncoding.DATA_URI
    max_file_size: int = consts.MAX_FILE_SIZE
    min_dimension: int = consts.MIN_DIMENSION
    max_dimension: int = consts.MAX_DIMENSION
    accepted_mime_types: tuple[str, ...] = consts.ACCEPTED_MIME_TYPES
    max_attempts: int = consts.DEFAULT_MAX_ATTEMPTS
    initial_delay: float = consts.DEFAULT_INITIAL_DELAY
    max_delay: float = consts.DEFAULT_MAX_DELAY
    progress_cap: int = consts.PROGRESS_CAP
    progress_step: int = consts.PROGRESS_STEP
    progress_interval: float = consts.PROGRESS_INTERVAL
    warmup_wait_hint: float = consts.DEFAULT_WARMUP_WAIT_HINT

    def __post_init__(self) -> None:
        """Validate option ranges."""
        if not self.base_url:
            msg = "base_url cannot be empty"
            raise InvalidOptionsError(msg)
        if self.timeout <= 0:
            msg = "timeout must be positive"
            raise InvalidOptionsError(msg)
        if self.max_file_size <= 0:
            msg = "max_file_size must be positive"
            raise InvalidOptionsError(msg)
        if not 0 < self.min_dimension <= self.max_dimension:
            msg = "min_dimension must be positive and <= max_dimension"
            raise InvalidOptionsError(msg)
        if self.max_attempts < 1:
            msg = "max_attempts must be at least 1"
            raise InvalidOptionsError(msg)
        if not 0 <= self.initial_delay <= self.max_delay:
            msg = "initial_delay must be between 0 and max_delay"
            raise InvalidOptionsError(msg)
        # Synthetic progress must never claim completion on its own
        if not 0 <= self.progress_cap < consts.PROGRESS_COMPLETE:
            msg = "progress_cap must be between 0 and 99"
            raise InvalidOptionsError(msg)
        if self.progress_step <= 0 or self.progress_interval <= 0:
            msg = "progress_step and progress_interval must be positive"
            raise InvalidOptionsError(msg)

    @property
    def classify_url(self) -> str:
        """Full URL of the classification endpoint."""
        return self.base_url.rstrip("/") + "/" + self.classify_path.lstrip("/")

    @classmethod
    def from_env(cls, prefix: str = "DENTAL_CLASSIFIER_") -> Self:
        """Build options from environment variables.

        A ``.env`` file in the working directory is loaded first. Each field
        can be overridden by an upper-cased variable, for example
        ``DENTAL_CLASSIFIER_BASE_URL`` or ``DENTAL_CLASSIFIER_MAX_ATTEMPTS``.
        Unset variables keep their defaults.
        """
        _ = load_dotenv()
        overrides: dict[str, Any] = {}
        for field in fields(cls):
            raw = os.getenv(f"{prefix}{field.name.upper()}")
            if raw is None:
                continue
            overrides[field.name] = _parse_field(field.name, field.type, raw)
        return cls(**overrides)


def _parse_field(name: str, field_type: object, raw: str) -> object:
    """Convert an environment string to the type of an options field."""
    try:
        if field_type is int or field_type == "int":
            return int(raw)
        if field_type is float or field_type == "float":
            return float(raw)
        if name == "request_encoding":
            return RequestEncoding(raw.lower())
        if name == "accepted_mime_types":
            return tuple(part.strip() for part in raw.split(",") if part)
    except ValueError as e:
        msg = f"Invalid value for {name}: {raw!r}"
        raise InvalidOptionsError(msg) from e
    return raw

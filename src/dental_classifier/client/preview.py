"""Transient preview resources for the selected image."""

import base64
from typing import Self

from dental_classifier.client.models import ImageCandidate


class PreviewResource:
    """A data URI preview of an image that must be released exactly once."""

    def __init__(self, uri: str) -> None:
        """Initialize with the preview URI."""
        self._uri: str | None = uri

    @classmethod
    def for_candidate(cls, candidate: ImageCandidate) -> Self:
        """Create a preview of a candidate image."""
        encoded = base64.b64encode(candidate.data).decode("ascii")
        return cls(f"data:{candidate.mime_type};base64,{encoded}")

    @property
    def released(self) -> bool:
        """Whether the preview has been released."""
        return self._uri is None

    @property
    def uri(self) -> str:
        """The preview URI.

        Raises:
            RuntimeError: If the preview was already released.

        """
        if self._uri is None:
            msg = "Preview has been released"
            raise RuntimeError(msg)
        return self._uri

    def release(self) -> None:
        """Release the preview.

        Raises:
            RuntimeError: If the preview was already released.

        """
        if self._uri is None:
            msg = "Preview released twice"
            raise RuntimeError(msg)
        self._uri = None

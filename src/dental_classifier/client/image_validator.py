"""Client-side validation of candidate images."""

import asyncio
import logging
from io import BytesIO

from PIL import Image, UnidentifiedImageError

from dental_classifier.client.classifier_options import ClassifierOptions
from dental_classifier.client.exceptions import (
    ImageValidationError,
    ValidationReason,
)
from dental_classifier.client.models import ImageCandidate, ValidationResult


def _probe(data: bytes) -> tuple[str | None, int, int]:
    """Decode the image and return its MIME type and size."""
    with Image.open(BytesIO(data)) as image:
        # open only reads the header; load decodes the pixel data
        _ = image.load()
        width, height = image.size
        return Image.MIME.get(image.format or ""), width, height


class ImageValidator:
    """Check candidate images against the configured constraints.

    Checks run in order and stop at the first failure: file size,
    decodability and format, minimum dimensions, maximum dimensions.
    """

    def __init__(self, options: ClassifierOptions) -> None:
        """Initialize the validator.

        Args:
            options: Supplies the size, dimension and format limits.

        """
        self.logger = logging.getLogger(__name__)
        self.options = options

    async def validate(self, candidate: ImageCandidate) -> ValidationResult:
        """Validate a candidate, resolving its pixel dimensions.

        Decoding runs in a worker thread. The decoded image is closed
        before returning, whatever the outcome.

        Args:
            candidate: The image to check. Its width and height are filled
                in when the image can be decoded.

        Returns:
            An accepted result or the reason for rejection.

        """
        if candidate.size > self.options.max_file_size:
            return self._reject(candidate, ValidationReason.FILE_TOO_LARGE)

        try:
            mime_type, width, height = await asyncio.to_thread(
                _probe, candidate.data
            )
        except Image.DecompressionBombError:
            return self._reject(candidate, ValidationReason.TOO_LARGE)
        except (
            UnidentifiedImageError,
            OSError,
            SyntaxError,
            ValueError,
        ) as e:
            self.logger.debug("Could not decode %s: %s", candidate.filename, e)
            return self._reject(candidate, ValidationReason.INVALID_FORMAT)

        if mime_type not in self.options.accepted_mime_types:
            return self._reject(candidate, ValidationReason.INVALID_FORMAT)

        candidate.width = width
        candidate.height = height

        if min(width, height) < self.options.min_dimension:
            return self._reject(candidate, ValidationReason.TOO_SMALL)
        if max(width, height) > self.options.max_dimension:
            return self._reject(candidate, ValidationReason.TOO_LARGE)

        self.logger.debug(
            "Accepted %s (%dx%d, %d bytes)",
            candidate.filename,
            width,
            height,
            candidate.size,
        )
        return ValidationResult.accept()

    def error_for(self, result: ValidationResult) -> ImageValidationError:
        """Build the user-facing error for a rejected result."""
        if result.reason is None:
            msg = "Cannot build an error for an accepted result"
            raise ValueError(msg)
        return ImageValidationError(
            result.reason,
            min_dimension=self.options.min_dimension,
            max_dimension=self.options.max_dimension,
            max_file_size=self.options.max_file_size,
        )

    def _reject(
        self, candidate: ImageCandidate, reason: ValidationReason
    ) -> ValidationResult:
        self.logger.info(
            "Rejected %s (%d bytes): %s",
            candidate.filename,
            candidate.size,
            reason.value,
        )
        return ValidationResult.reject(reason)

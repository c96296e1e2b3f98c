"""Model for images selected for classification."""

import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Self

from dental_classifier.client.image_format_detector import detect_mime_type

_FALLBACK_MIME_TYPE = "application/octet-stream"


@dataclass
class ImageCandidate:
    """A user-selected image pending validation or submission.

    Width and height are unknown until the image has been decoded by the
    validator, which fills them in place.

    Attributes:
        data: The raw bytes of the file.
        mime_type: The declared content type of the file.
        filename: Name of the file as selected by the user.
        width: Pixel width, once resolved.
        height: Pixel height, once resolved.

    """

    data: bytes
    mime_type: str
    filename: str = "image"
    width: int | None = None
    height: int | None = None

    @property
    def size(self) -> int:
        """Size of the file in bytes."""
        return len(self.data)

    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        filename: str = "image",
        mime_type: str | None = None,
    ) -> Self:
        """Create a candidate, sniffing the type when none is declared."""
        if mime_type is None:
            mime_type = detect_mime_type(data) or _FALLBACK_MIME_TYPE
        return cls(data=data, mime_type=mime_type, filename=filename)

    @classmethod
    def from_path(cls, path: str | Path) -> Self:
        """Create a candidate from a file on disk."""
        path = Path(path)
        data = path.read_bytes()
        guessed, _ = mimetypes.guess_type(path.name)
        return cls.from_bytes(
            data,
            filename=path.name,
            mime_type=guessed or detect_mime_type(data),
        )

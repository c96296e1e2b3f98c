"""Encoded classification request built from a candidate image."""

import base64
from dataclasses import dataclass
from typing import Any, Self

from dental_classifier.client.classifier_options import RequestEncoding
from dental_classifier.client.models.candidate import ImageCandidate

IMAGE_FIELD = "image"


@dataclass(frozen=True)
class ClassificationRequest:
    """The payload of a single submission attempt.

    The whole file is encoded at once; a request is never chunked.
    """

    encoding: RequestEncoding
    filename: str
    mime_type: str
    payload: bytes | str

    @classmethod
    def from_candidate(
        cls, candidate: ImageCandidate, encoding: RequestEncoding
    ) -> Self:
        """Encode a candidate image.

        Args:
            candidate: The accepted image to encode.
            encoding: DATA_URI produces a ``data:<mime>;base64,...`` string,
                MULTIPART keeps the raw bytes for a form upload.

        Returns:
            The immutable request.

        """
        payload: bytes | str
        if encoding is RequestEncoding.DATA_URI:
            encoded = base64.b64encode(candidate.data).decode("ascii")
            payload = f"data:{candidate.mime_type};base64,{encoded}"
        else:
            payload = candidate.data
        return cls(
            encoding=encoding,
            filename=candidate.filename,
            mime_type=candidate.mime_type,
            payload=payload,
        )

    def as_httpx_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``httpx.AsyncClient.post``."""
        if self.encoding is RequestEncoding.DATA_URI:
            return {"json": {IMAGE_FIELD: self.payload}}
        return {
            "files": {
                IMAGE_FIELD: (self.filename, self.payload, self.mime_type)
            }
        }

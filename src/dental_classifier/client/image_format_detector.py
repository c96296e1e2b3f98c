"""Sniff the type of an image from its leading bytes."""

_SIGNATURES = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
)


def detect_mime_type(data: bytes) -> str | None:
    """Return the MIME type of PNG or JPEG data, None for anything else.

    Only the types the service accepts are recognized. The validator still
    decodes the image, so a matching signature is a hint, not a guarantee.
    """
    for signature, mime_type in _SIGNATURES:
        if data.startswith(signature):
            return mime_type
    return None

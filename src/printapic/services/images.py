"""Image byte helpers."""

import base64

_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}


def to_base64(image_bytes: bytes) -> str:
    """Encode image bytes as base64 text."""
    return base64.b64encode(image_bytes).decode("utf-8")


def detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"


def extension_for(mime_type: str) -> str:
    """Return a file extension for a MIME type."""
    return _EXTENSIONS.get(mime_type, "jpg")

"""Base64 encoding of uploaded files and the pre-flight checks run before it."""

import base64
import binascii

from errors import InputRejected


def encode(data: bytes) -> str:
    return base64.b64encode(data).decode("utf-8")


def decode(text: str) -> bytes:
    try:
        return base64.b64decode(text.encode("utf-8"), validate=True)
    except binascii.Error as e:
        raise ValueError(f"Not valid base64: {e}") from e


def validate_video(size: int, mime_type: str, max_bytes: int) -> None:
    """Reject files the model endpoint should never see.

    Both checks fail closed: an oversized file or a non-video MIME type is
    refused outright instead of being encoded on a best-effort basis.
    """
    if size > max_bytes:
        max_mb = max_bytes // (1024 * 1024)
        raise InputRejected(
            f"File is too large. Please upload a video smaller than {max_mb}MB."
        )
    if not (mime_type or "").startswith("video/"):
        raise InputRejected("Please upload a valid video file.")


def validate_text(text: str, max_chars: int) -> None:
    if len(text) > max_chars:
        raise InputRejected(
            f"Text is too long. Please paste at most {max_chars} characters."
        )

"""
Image payload decoding.

Handles:
- Base64 decoding (with or without a data URL prefix)
- Size limits
- Format check so providers only ever receive JPEG/PNG bytes
"""

from dataclasses import dataclass
from typing import Optional
import base64
import binascii
import io
import logging

from PIL import Image, UnidentifiedImageError

from plantmatch.core.exceptions import InvalidInputError

logger = logging.getLogger(__name__)


SUPPORTED_FORMATS = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
}


@dataclass
class ImagePayload:
    """Validated image ready to send upstream."""
    data: bytes
    mime_type: str
    size: tuple[int, int]


def decode_base64_image(
    base64_string: str,
    max_size_mb: Optional[float] = 10.0
) -> ImagePayload:
    """
    Decode and validate a base64-encoded image.

    Args:
        base64_string: Base64 image, optionally prefixed with a data URL header
        max_size_mb: Reject payloads larger than this (None disables the check)

    Returns:
        ImagePayload with raw bytes and MIME type

    Raises:
        InvalidInputError: empty, undecodable, oversized or unsupported image
    """
    if not base64_string or not base64_string.strip():
        raise InvalidInputError("Image payload is empty")

    # Remove data URL prefix if present
    if "," in base64_string:
        base64_string = base64_string.split(",", 1)[1]

    try:
        image_bytes = base64.b64decode(base64_string.strip(), validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidInputError(f"Invalid base64 image data: {e}")

    return validate_image_bytes(image_bytes, max_size_mb=max_size_mb)


def validate_image_bytes(
    image_bytes: bytes,
    max_size_mb: Optional[float] = 10.0
) -> ImagePayload:
    """Check that raw bytes are a supported, non-empty image."""
    if not image_bytes:
        raise InvalidInputError("Image payload is empty")

    if max_size_mb is not None and len(image_bytes) > max_size_mb * 1024 * 1024:
        raise InvalidInputError(f"Image exceeds {max_size_mb:g}MB limit")

    try:
        with Image.open(io.BytesIO(image_bytes)) as image:
            image_format = image.format
            size = image.size
            image.verify()
    except Image.DecompressionBombError as e:
        raise InvalidInputError(f"Image dimensions too large: {e}")
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise InvalidInputError(f"Unreadable image data: {e}")

    if image_format not in SUPPORTED_FORMATS:
        raise InvalidInputError(
            f"Unsupported image format {image_format}; use JPEG or PNG"
        )

    logger.debug(f"Accepted {image_format} image {size[0]}x{size[1]}, {len(image_bytes)} bytes")

    return ImagePayload(
        data=image_bytes,
        mime_type=SUPPORTED_FORMATS[image_format],
        size=size,
    )

"""
Image size policy for evidence photos.

Images at or below EVIDENCE_MAX_BYTES are stored exactly as received.
Larger images are decoded with Pillow, shrunk so the longer edge fits
EVIDENCE_MAX_DIMENSION (aspect ratio preserved) and re-encoded as WebP.
"""

from dataclasses import dataclass
from io import BytesIO
from typing import Optional
import logging

from PIL import Image, ImageOps, UnidentifiedImageError

from trinetra.core.exceptions import UnsupportedMediaError, ValidationFailed
from trinetra.core.settings import settings

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
    "image/avif": "avif",
}

COMPRESSED_CONTENT_TYPE = "image/webp"


@dataclass
class NormalizedImage:
    data: bytes
    content_type: str
    extension: str
    original_size: int
    compressed: bool = False

    @property
    def size(self) -> int:
        return len(self.data)


def validate_mime_type(content_type: Optional[str]) -> str:
    """
    Check a declared content type against the allow-list.

    Returns:
        The normalized MIME type (lowercase, parameters stripped)

    Raises:
        UnsupportedMediaError: anything that is not an allowed image type
    """
    mime = (content_type or "").split(";")[0].strip().lower()
    if mime == "image/jpg":
        mime = "image/jpeg"
    if mime not in ALLOWED_MIME_TYPES:
        raise UnsupportedMediaError(
            f"Unsupported file type '{content_type}'. Allowed: {', '.join(sorted(ALLOWED_MIME_TYPES))}"
        )
    return mime


def normalize_image(
    data: bytes,
    content_type: str,
    max_bytes: Optional[int] = None,
    max_dimension: Optional[int] = None,
    quality: Optional[int] = None
) -> NormalizedImage:
    """
    Apply the size policy to one image.

    Args:
        data: Raw image bytes
        content_type: Declared MIME type (validated against the allow-list)

    Returns:
        NormalizedImage with the bytes to upload and their type

    Raises:
        UnsupportedMediaError: type not allowed
        ValidationFailed: empty or undecodable image above the threshold
    """
    mime = validate_mime_type(content_type)
    if not data:
        raise ValidationFailed("Image is empty")

    max_bytes = max_bytes or settings.EVIDENCE_MAX_BYTES
    max_dimension = max_dimension or settings.EVIDENCE_MAX_DIMENSION
    quality = quality or settings.EVIDENCE_QUALITY

    original_size = len(data)
    if original_size <= max_bytes:
        return NormalizedImage(
            data=data,
            content_type=mime,
            extension=ALLOWED_MIME_TYPES[mime],
            original_size=original_size,
        )

    try:
        with Image.open(BytesIO(data)) as img:
            img.load()
            # Apply camera orientation before resizing
            img = ImageOps.exif_transpose(img)
            if img.mode not in ("RGB", "RGBA"):
                has_alpha = img.mode in ("LA", "PA") or "transparency" in img.info
                img = img.convert("RGBA" if has_alpha else "RGB")
            img.thumbnail((max_dimension, max_dimension), Image.LANCZOS)

            buffer = BytesIO()
            img.save(buffer, format="WEBP", quality=quality)
            width, height = img.size
    except (UnidentifiedImageError, OSError) as e:
        logger.warning(f"Could not decode {mime} image of {original_size} bytes: {e}")
        raise ValidationFailed("Image could not be decoded")

    compressed = buffer.getvalue()
    logger.info(
        f"Compressed evidence image {original_size} → {len(compressed)} bytes ({width}x{height}, webp q{quality})"
    )
    return NormalizedImage(
        data=compressed,
        content_type=COMPRESSED_CONTENT_TYPE,
        extension=ALLOWED_MIME_TYPES[COMPRESSED_CONTENT_TYPE],
        original_size=original_size,
        compressed=True,
    )

"""
Image Text Composer - Image Loader

Validates and decodes the background image with Pillow. Checks run in the
order the upload form applies them: MIME type, extension, size limit, then
decodability. The first failure raises ImageValidationError with the message
shown to the user, and nothing else happens.
"""

import base64
import logging
import mimetypes
import os
from dataclasses import dataclass
from typing import Sequence

from PIL import Image, UnidentifiedImageError

from constants import ACCEPTED_IMAGE_TYPES, DEFAULT_MAX_IMAGE_SIZE_MB

_logger = logging.getLogger('ImageLoader')

# Pillow format name -> MIME type
_FORMAT_MIME = {
    'PNG': 'image/png',
    'JPEG': 'image/jpeg',
    'GIF': 'image/gif',
    'WEBP': 'image/webp',
    'BMP': 'image/bmp',
}


class ImageValidationError(ValueError):
    """The selected file cannot be used as the background image"""


@dataclass(frozen=True)
class ImageInfo:
    path: str
    width: int
    height: int
    aspect_ratio: float
    preview_url: str
    mime_type: str

    @property
    def orientation(self) -> str:
        return orientation(self.aspect_ratio)


def orientation(aspect_ratio: float) -> str:
    """'Landscape', 'Portrait' or 'Square' for a width / height ratio"""
    if aspect_ratio > 1:
        return 'Landscape'
    if aspect_ratio < 1:
        return 'Portrait'
    return 'Square'


def _extensions_for(accepted_types: Sequence[str]):
    extensions = set()
    for mime in accepted_types:
        extensions.update(mimetypes.guess_all_extensions(mime))
    # mimetypes tables differ per platform; PNG is always known by name
    if 'image/png' in accepted_types:
        extensions.add('.png')
    return extensions


def validate_image_file(path: str, max_size_mb: float = DEFAULT_MAX_IMAGE_SIZE_MB,
                        accepted_types: Sequence[str] = ACCEPTED_IMAGE_TYPES):
    """Check type, extension and size without decoding

    Raises:
        ImageValidationError: With the user-facing message
    """
    mime, _encoding = mimetypes.guess_type(path)
    if mime not in accepted_types:
        raise ImageValidationError("Please upload a PNG file only")

    if os.path.splitext(path)[1].lower() not in _extensions_for(accepted_types):
        raise ImageValidationError("Please upload a file with .png extension")

    try:
        size = os.path.getsize(path)
    except OSError as e:
        raise ImageValidationError("Failed to process image. Please try again.") from e
    if size > max_size_mb * 1024 * 1024:
        raise ImageValidationError(f"File size must be less than {max_size_mb:g}MB")


def load_image(path: str, max_size_mb: float = DEFAULT_MAX_IMAGE_SIZE_MB,
               accepted_types: Sequence[str] = ACCEPTED_IMAGE_TYPES) -> ImageInfo:
    """Validate and decode an image file

    Args:
        path: Image file path
        max_size_mb: Size limit in megabytes
        accepted_types: Accepted MIME types

    Returns:
        ImageInfo with natural size, aspect ratio and a data URL preview

    Raises:
        ImageValidationError: With the user-facing message
    """
    validate_image_file(path, max_size_mb, accepted_types)

    try:
        with Image.open(path) as img:
            img.verify()
        # verify() leaves the image unusable; reopen for the size
        with Image.open(path) as img:
            width, height = img.size
            detected = _FORMAT_MIME.get(img.format or '', '')
    except (OSError, UnidentifiedImageError, SyntaxError) as e:
        _logger.warning(f"Cannot decode {path}: {e}")
        raise ImageValidationError("Failed to process image. Please try again.") from e

    if detected not in accepted_types:
        raise ImageValidationError("Please upload a PNG file only")
    if width <= 0 or height <= 0:
        raise ImageValidationError("Failed to process image. Please try again.")

    with open(path, 'rb') as f:
        encoded = base64.b64encode(f.read()).decode('ascii')

    info = ImageInfo(
        path=path,
        width=width,
        height=height,
        aspect_ratio=width / height,
        preview_url=f"data:{detected};base64,{encoded}",
        mime_type=detected,
    )
    _logger.info(f"Loaded {os.path.basename(path)}: {width}x{height} ({info.orientation})")
    return info

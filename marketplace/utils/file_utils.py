"""
File upload utilities for image validation.
Checks MIME type, size and decodability of uploaded images before anything is stored.
"""

import io
from dataclasses import dataclass
from typing import List, Optional
from PIL import Image, UnidentifiedImageError
from fastapi import UploadFile

from marketplace.config import settings
from marketplace.utils.exceptions import (
    ValidationError,
    UnsupportedFileTypeError,
    FileSizeExceededError
)

# File extension used for the storage key of each accepted type
EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/avif": "avif",
}


@dataclass
class ValidatedImage:
    """An upload that passed validation, held in memory until it is stored."""

    filename: str
    content: bytes
    mime_type: str
    extension: str
    width: Optional[int] = None
    height: Optional[int] = None

    @property
    def file_size(self) -> int:
        return len(self.content)


class FileValidator:
    """Utility class for image upload validation."""

    def __init__(
        self,
        allowed_types: Optional[List[str]] = None,
        max_size: Optional[int] = None
    ):
        self.allowed_types = allowed_types or settings.allowed_image_types
        self.max_size = max_size or settings.max_image_size

    def validate_mime_type(self, filename: str, mime_type: Optional[str]) -> str:
        """
        Raises:
            UnsupportedFileTypeError: If MIME type is not supported
        """
        mime_type = (mime_type or "").lower()
        if mime_type not in self.allowed_types:
            raise UnsupportedFileTypeError(filename, self.allowed_types)
        return mime_type

    def validate_file_size(self, filename: str, file_size: int) -> int:
        """
        Raises:
            ValidationError: If the file is empty
            FileSizeExceededError: If file size exceeds limit
        """
        if file_size <= 0:
            raise ValidationError(f"File {filename} is empty")

        if file_size > self.max_size:
            raise FileSizeExceededError(filename, self.max_size)

        return file_size

    @staticmethod
    def probe_image(filename: str, content: bytes, mime_type: str):
        """
        Decode the image header with Pillow.

        Returns:
            Tuple of (width, height), or (None, None) for AVIF files the
            installed Pillow cannot decode

        Raises:
            ValidationError: If the content is not an image
        """
        try:
            with Image.open(io.BytesIO(content)) as img:
                img.verify()
                return img.size
        except (UnidentifiedImageError, OSError, SyntaxError, ValueError):
            if mime_type == "image/avif":
                return None, None
            raise ValidationError(f"File {filename} is not a valid image")

    async def validate_upload_file(self, file: UploadFile) -> ValidatedImage:
        """
        Comprehensive validation of one uploaded file.

        Args:
            file: FastAPI UploadFile object

        Returns:
            ValidatedImage carrying the file bytes

        Raises:
            ValidationError: If any validation fails
        """
        filename = file.filename or "upload"
        mime_type = self.validate_mime_type(filename, file.content_type)

        await file.seek(0)
        content = await file.read()

        self.validate_file_size(filename, len(content))
        width, height = self.probe_image(filename, content, mime_type)

        return ValidatedImage(
            filename=filename,
            content=content,
            mime_type=mime_type,
            extension=EXTENSIONS[mime_type],
            width=width,
            height=height,
        )

"""
File upload utilities for image validation.
Checks extension, MIME type, size and decoded image content before storage.
"""

import io
from pathlib import Path
from typing import Tuple, Optional
from PIL import Image
from fastapi import UploadFile

from app.config import get_settings
from app.utils.exceptions import (
    FileUploadError,
    UnsupportedFileTypeError,
    FileSizeExceededError
)

settings = get_settings()


class FileValidator:
    """Utility class for file validation operations."""

    # Supported image formats and their extensions
    SUPPORTED_FORMATS = {
        'image/jpeg': ['.jpg', '.jpeg'],
        'image/png': ['.png'],
        'image/webp': ['.webp']
    }

    # PIL format name expected for each MIME type
    PIL_FORMATS = {
        'image/jpeg': 'jpeg',
        'image/png': 'png',
        'image/webp': 'webp'
    }

    MAX_WIDTH = 10000
    MAX_HEIGHT = 10000

    @classmethod
    def allowed_types(cls) -> list:
        return [t for t in settings.allowed_file_types if t in cls.SUPPORTED_FORMATS]

    @classmethod
    def validate_file_extension(cls, filename: str) -> str:
        """
        Validate file extension.

        Returns:
            Lowercase file extension

        Raises:
            UnsupportedFileTypeError: If extension is not supported
        """
        if not filename:
            raise FileUploadError("Filename is required")

        extension = Path(filename).suffix.lower()

        supported_extensions = []
        for mime_type in cls.allowed_types():
            supported_extensions.extend(cls.SUPPORTED_FORMATS[mime_type])

        if extension not in supported_extensions:
            raise UnsupportedFileTypeError(extension or "(none)", supported_extensions)

        return extension

    @classmethod
    def validate_mime_type(cls, mime_type: str) -> str:
        """
        Validate MIME type.

        Raises:
            UnsupportedFileTypeError: If MIME type is not supported
        """
        if mime_type not in cls.allowed_types():
            raise UnsupportedFileTypeError(mime_type or "(none)", cls.allowed_types())

        return mime_type

    @classmethod
    def validate_file_size(cls, file_size: int, max_size: Optional[int] = None) -> int:
        """
        Validate file size.

        Raises:
            FileUploadError: If the file is empty
            FileSizeExceededError: If file size exceeds limit
        """
        if file_size <= 0:
            raise FileUploadError("File is empty")

        max_allowed = max_size or settings.max_file_size
        if file_size > max_allowed:
            raise FileSizeExceededError(file_size, max_allowed)

        return file_size

    @classmethod
    async def validate_upload_file(cls, file: UploadFile) -> Tuple[str, str, bytes]:
        """
        Comprehensive validation of an uploaded image.

        Returns:
            Tuple of (extension, mime_type, content)

        Raises:
            FileUploadError: If the content is not a decodable image of the declared type
        """
        extension = cls.validate_file_extension(file.filename or "")
        mime_type = cls.validate_mime_type(file.content_type or "")

        if extension not in cls.SUPPORTED_FORMATS[mime_type]:
            raise FileUploadError(
                f"File extension '{extension}' doesn't match MIME type '{mime_type}'"
            )

        await file.seek(0)
        content = await file.read()
        await file.seek(0)

        cls.validate_file_size(len(content))

        try:
            with Image.open(io.BytesIO(content)) as img:
                width, height = img.size
                pil_format = img.format.lower() if img.format else ""
        except Exception as e:
            raise FileUploadError(f"Invalid image file: {str(e)}")

        if pil_format != cls.PIL_FORMATS[mime_type]:
            raise FileUploadError(f"Image format '{pil_format}' doesn't match MIME type '{mime_type}'")

        if width > cls.MAX_WIDTH or height > cls.MAX_HEIGHT:
            raise FileUploadError(
                f"Image dimensions {width}x{height} exceed maximum {cls.MAX_WIDTH}x{cls.MAX_HEIGHT}"
            )

        return extension, mime_type, content

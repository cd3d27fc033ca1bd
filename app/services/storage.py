"""
Image storage for listing media.
Files are stored on local disk under the upload directory and served from the media URL.
"""

from pathlib import Path
from typing import Iterable, List, NamedTuple, Optional
from fastapi import UploadFile
import aiofiles
import aiofiles.os
import uuid
import logging

from app.config import settings
from app.utils.file_utils import FileValidator

logger = logging.getLogger(__name__)


class StoredImage(NamedTuple):
    """Result of an upload: storage identifier and public URL."""
    external_id: str
    url: str


class ImageStorage:
    """
    Local-disk image storage addressed by external id.
    The external id is the stored file name.
    """

    def __init__(self, base_dir: Optional[str] = None, base_url: Optional[str] = None):
        self.base_dir = Path(base_dir or settings.upload_dir) / "properties"
        self.base_url = (base_url or settings.media_base_url).rstrip("/")
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _path_for(self, external_id: str) -> Path:
        # External ids are generated names; reject anything that could escape the directory
        name = Path(external_id).name
        if name != external_id or not name:
            raise ValueError(f"Invalid image id: {external_id}")
        return self.base_dir / name

    def url_for(self, external_id: str) -> str:
        return f"{self.base_url}/properties/{external_id}"

    async def upload(self, file: UploadFile) -> StoredImage:
        """
        Validate and store an uploaded image.

        Raises:
            FileUploadError: If validation or the write fails
        """
        extension, _, content = await FileValidator.validate_upload_file(file)

        external_id = f"{uuid.uuid4().hex}{extension}"
        path = self._path_for(external_id)

        async with aiofiles.open(path, "wb") as f:
            await f.write(content)

        logger.info(f"Stored image {external_id} ({len(content)} bytes)")
        return StoredImage(external_id=external_id, url=self.url_for(external_id))

    async def upload_many(self, files: Iterable[UploadFile]) -> List[StoredImage]:
        """Store files in order; already-stored files are removed if a later one fails."""
        stored: List[StoredImage] = []
        try:
            for file in files:
                stored.append(await self.upload(file))
        except Exception:
            await self.delete_many(image.external_id for image in stored)
            raise
        return stored

    async def delete(self, external_id: str) -> bool:
        """
        Delete a stored image.

        Returns:
            True if a file was removed, False if it did not exist
        """
        try:
            await aiofiles.os.remove(self._path_for(external_id))
        except FileNotFoundError:
            logger.warning(f"Image {external_id} not found in storage")
            return False

        logger.info(f"Deleted image {external_id}")
        return True

    async def delete_many(self, external_ids: Iterable[str]) -> int:
        """
        Delete several images. Failures are logged and do not stop the batch.

        Returns:
            Number of images removed
        """
        removed = 0
        for external_id in external_ids:
            try:
                if await self.delete(external_id):
                    removed += 1
            except Exception as e:
                logger.error(f"Failed to delete image {external_id}: {e}")
        return removed

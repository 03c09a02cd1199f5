"""Stores uploaded book cover images on disk under the upload directory."""

import logging
import os
import uuid
from typing import Optional

from fastapi import UploadFile

from bookdash.config import settings

logger = logging.getLogger(__name__)

URL_PREFIX = "/uploads"


class ImageService:
    """Saves and removes images below ``settings.upload_dir``.

    Stored images are referenced by a relative URL such as
    ``/uploads/books/<uuid>.png``; the API mounts the upload directory at
    ``/uploads`` so the same path serves the file.
    """

    def __init__(self, upload_dir: Optional[str] = None) -> None:
        self.upload_dir = upload_dir or settings.upload_dir

    async def upload(self, file: UploadFile, folder: str = "books") -> str:
        """Validate and persist an upload. Raises ValueError for a rejected file."""
        content = await file.read()
        if not content:
            raise ValueError("No file uploaded")
        if len(content) > settings.max_upload_size:
            raise ValueError("File size exceeds 5MB limit")

        extension = os.path.splitext(file.filename or "")[1].lower()
        if extension not in settings.allowed_image_extensions:
            raise ValueError("Invalid file type. Only JPG, PNG, and GIF are allowed")

        target_dir = os.path.join(self.upload_dir, folder)
        os.makedirs(target_dir, exist_ok=True)
        file_name = f"{uuid.uuid4()}{extension}"
        with open(os.path.join(target_dir, file_name), "wb") as f:
            f.write(content)

        logger.info(f"Stored image {folder}/{file_name} ({len(content)} bytes)")
        return f"{URL_PREFIX}/{folder}/{file_name}"

    def delete(self, image_url: Optional[str]) -> bool:
        """Remove a previously stored image. Returns False when there was nothing to remove."""
        path = self.resolve_path(image_url)
        if path is None or not os.path.isfile(path):
            return False
        try:
            os.remove(path)
        except OSError as e:
            logger.error(f"Could not delete image {path}: {e}")
            return False
        logger.info(f"Deleted image {path}")
        return True

    def resolve_path(self, image_url: Optional[str]) -> Optional[str]:
        if not image_url or image_url.startswith(("http://", "https://")):
            return None
        relative = image_url.lstrip("/")
        prefix = URL_PREFIX.lstrip("/") + "/"
        if relative.startswith(prefix):
            relative = relative[len(prefix):]
        root = os.path.abspath(self.upload_dir)
        path = os.path.abspath(os.path.join(root, relative))
        # Never leave the upload directory.
        if not path.startswith(root + os.sep):
            return None
        return path


def build_public_image_url(image_url: Optional[str], base_url: str) -> Optional[str]:
    """Make a stored image path absolute against the request base URL."""
    if not image_url or not image_url.strip():
        return None
    if image_url.startswith(("http://", "https://")):
        return image_url
    return f"{base_url.rstrip('/')}/{image_url.lstrip('/')}"

"""Blob storage for uploaded PDFs (local filesystem)."""
from __future__ import annotations

import logging
import os
import secrets

from app.config import get_settings
from app.services.errors import DependencyFailure, NotFound

logger = logging.getLogger("uvicorn.error")


class LocalFileStorage:
    """put/get/delete by opaque locator. Locators are file names relative to root."""

    def __init__(self, root: str):
        self.root = root

    def _path(self, locator: str) -> str:
        name = os.path.basename(locator or "")
        if not name or name != locator:
            raise NotFound("File not found")
        return os.path.join(self.root, name)

    def put(self, data: bytes, filename: str = "") -> str:
        _, ext = os.path.splitext(filename or "")
        locator = f"{secrets.token_hex(16)}{ext.lower() or '.pdf'}"
        try:
            os.makedirs(self.root, exist_ok=True)
            with open(os.path.join(self.root, locator), "wb") as f:
                f.write(data)
        except OSError as e:
            logger.error("Storage put failed: root=%s error=%s", self.root, e)
            raise DependencyFailure() from e
        return locator

    def get(self, locator: str) -> bytes:
        path = self._path(locator)
        try:
            with open(path, "rb") as f:
                return f.read()
        except FileNotFoundError as e:
            logger.error("Storage get: blob missing for locator=%s", locator)
            raise DependencyFailure() from e
        except OSError as e:
            logger.error("Storage get failed: locator=%s error=%s", locator, e)
            raise DependencyFailure() from e

    def delete(self, locator: str) -> None:
        """Deleting an already-missing blob is a no-op."""
        try:
            path = self._path(locator)
        except NotFound:
            return
        try:
            os.remove(path)
        except FileNotFoundError:
            logger.info("Storage delete: blob already absent for locator=%s", locator)
        except OSError as e:
            logger.error("Storage delete failed: locator=%s error=%s", locator, e)
            raise DependencyFailure() from e


def get_storage() -> LocalFileStorage:
    return LocalFileStorage(get_settings().upload_dir)

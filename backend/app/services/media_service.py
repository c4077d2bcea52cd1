"""
services/media_service.py — Media Upload collaborator.

upload(local_path) returns an UploadResult on success and None on any
failure. Callers branch on None; they never see SDK exceptions.

On failure the local temp file is removed. Errors while removing it are
logged and swallowed. On success the file is left in place for the
external temp-folder cleanup.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Protocol

import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadResult:
    url: str
    public_id: str | None = None
    resource_type: str | None = None


class MediaUploader(Protocol):

    def upload(self, local_path: str | None) -> UploadResult | None:
        ...


def remove_temp_file(local_path: str) -> None:
    """Deletes a temp upload if it still exists. Never raises."""
    if not os.path.exists(local_path):
        return
    try:
        os.remove(local_path)
        logger.debug("Temporary file %s deleted.", local_path)
    except OSError:
        logger.exception("Error deleting temporary file %s", local_path)


class CloudinaryUploader:

    def __init__(
            self,
            cloud_name: str,
            api_key: str,
            api_secret: str,
            secure: bool = True,
    ) -> None:
        self._config = {
            "cloud_name": cloud_name,
            "api_key":    api_key,
            "api_secret": api_secret,
            "secure":     secure,
        }

    @classmethod
    def from_config(cls, config) -> "CloudinaryUploader":
        return cls(
            cloud_name=config.get("CLOUDINARY_CLOUD_NAME", ""),
            api_key=config.get("CLOUDINARY_API_KEY", ""),
            api_secret=config.get("CLOUDINARY_API_SECRET", ""),
        )

    def upload(self, local_path: str | None) -> UploadResult | None:
        if not local_path:
            logger.error("No file path provided for upload.")
            return None

        try:
            response = cloudinary.uploader.upload(
                local_path,
                resource_type="auto",
                **self._config,
            )
        except (CloudinaryError, OSError, ValueError):
            logger.exception("Error uploading %s to Cloudinary", local_path)
            remove_temp_file(local_path)
            return None

        url = response.get("secure_url") or response.get("url")
        if not url:
            logger.error("Cloudinary response for %s carried no URL", local_path)
            remove_temp_file(local_path)
            return None

        logger.info("File uploaded to Cloudinary: %s", url)
        return UploadResult(
            url=url,
            public_id=response.get("public_id"),
            resource_type=response.get("resource_type"),
        )

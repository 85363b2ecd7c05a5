"""Media host uploads (Cloudinary upload API) with temp-file lifecycle."""

import hashlib
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional
from uuid import uuid4

import aiofiles
import httpx
import structlog
from fastapi import UploadFile
from pydantic import BaseModel

from vidtube.config import get_settings
from vidtube.exceptions import PayloadTooLargeError, ValidationError

logger = structlog.get_logger(__name__)

CHUNK_SIZE = 64 * 1024


class UploadedAsset(BaseModel):
    """Descriptor of an asset stored on the media host."""

    secure_url: str
    public_id: str = ""
    resource_type: str = "auto"


def sign_params(params: dict, api_secret: str) -> str:
    """Compute the upload API signature.

    Params are sorted by key, joined as ``k=v`` with ``&`` and the API secret
    appended before SHA-1 hashing.
    """
    to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params))
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


class MediaService:
    """Moves incoming files to a temp dir and uploads them to the media host."""

    def __init__(self):
        self.settings = get_settings()
        self.temp_dir = Path(self.settings.temp_upload_dir)
        self.max_size_bytes = self.settings.max_upload_size_mb * 1024 * 1024
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.settings.media_upload_timeout)
            )
        return self._client

    async def close(self):
        """Close HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    @property
    def upload_endpoint(self) -> str:
        return f"{self.settings.media_upload_url}/{self.settings.cloud_name}/auto/upload"

    async def save_upload_file(self, upload_file: UploadFile) -> Path:
        """Stream a multipart upload into the temp directory.

        Args:
            upload_file: Incoming file from the request

        Returns:
            Path to the saved temporary file

        Raises:
            ValidationError: If the upload has no filename
            PayloadTooLargeError: If the file exceeds max_upload_size_mb
        """
        if not upload_file.filename:
            raise ValidationError("Filename is required")

        self.temp_dir.mkdir(parents=True, exist_ok=True)
        suffix = Path(upload_file.filename).suffix.lower()
        temp_path = self.temp_dir / f"{uuid4().hex}{suffix}"

        total_size = 0
        try:
            async with aiofiles.open(temp_path, "wb") as f:
                while True:
                    chunk = await upload_file.read(CHUNK_SIZE)
                    if not chunk:
                        break

                    total_size += len(chunk)
                    if total_size > self.max_size_bytes:
                        raise PayloadTooLargeError(
                            f"File too large. Maximum size: {self.settings.max_upload_size_mb}MB"
                        )

                    await f.write(chunk)
        except BaseException:
            temp_path.unlink(missing_ok=True)
            raise

        logger.debug("upload_saved", path=str(temp_path), size_bytes=total_size)
        return temp_path

    @asynccontextmanager
    async def temporary_upload(self, upload_file: UploadFile) -> AsyncIterator[Path]:
        """Save an upload to disk for the duration of the block.

        The temp file is removed on exit whether or not it still exists.
        """
        temp_path = await self.save_upload_file(upload_file)
        try:
            yield temp_path
        finally:
            temp_path.unlink(missing_ok=True)

    async def upload(self, local_path: Path | str | None) -> Optional[UploadedAsset]:
        """Upload a local file to the media host.

        The local file is always deleted afterwards, on success and failure
        alike.

        Args:
            local_path: Path of the temporary file, or None

        Returns:
            UploadedAsset, or None when there is nothing to upload or the
            upload failed
        """
        if not local_path:
            return None

        path = Path(local_path)
        try:
            if not (
                self.settings.cloud_name
                and self.settings.cloudinary_api_key
                and self.settings.cloudinary_api_secret
            ):
                logger.error("media_host_not_configured")
                return None

            params = {"timestamp": int(time.time())}
            form = {
                **params,
                "api_key": self.settings.cloudinary_api_key,
                "signature": sign_params(params, self.settings.cloudinary_api_secret),
            }

            async with aiofiles.open(path, "rb") as f:
                content = await f.read()

            client = await self._get_client()
            response = await client.post(
                self.upload_endpoint,
                data=form,
                files={"file": (path.name, content)},
            )

            if response.status_code >= 400:
                logger.error(
                    "media_upload_rejected",
                    status_code=response.status_code,
                    file=path.name,
                )
                return None

            body = response.json()
            asset = UploadedAsset(
                secure_url=body["secure_url"],
                public_id=body.get("public_id", ""),
                resource_type=body.get("resource_type", "auto"),
            )
            logger.info("media_uploaded", file=path.name, public_id=asset.public_id)
            return asset

        except (httpx.HTTPError, OSError, KeyError, ValueError) as e:
            logger.error(
                "media_upload_failed",
                file=path.name,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

        finally:
            path.unlink(missing_ok=True)

"""
Storage gateway - fetch and store blobs by object path or URL.

``GCSStorageGateway`` talks to Google Cloud Storage; ``LocalStorageGateway``
maps buckets to directories for local development.
"""

import asyncio
import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from repairclip.core import StorageError, get_logger, resolve_object_location

logger = get_logger(__name__, component="storage")


class StorageGateway(ABC):
    """Abstract blob store."""

    def __init__(self, default_bucket: str = ""):
        self.default_bucket = default_bucket

    def resolve(self, path_or_url: str, bucket: Optional[str] = None) -> tuple[str, str]:
        return resolve_object_location(path_or_url, bucket or self.default_bucket)

    @abstractmethod
    async def download(self, path_or_url: str, destination: Path, bucket: Optional[str] = None) -> Path:
        """
        Download an object to a local file.

        Args:
            path_or_url: Object path, ``gs://`` URI or public URL
            destination: Local file to write
            bucket: Bucket for plain object paths (defaults to the gateway's bucket)

        Raises:
            StorageError: if the object cannot be fetched
        """
        pass

    @abstractmethod
    async def upload(
        self,
        source: Path,
        destination: str,
        content_type: Optional[str] = None,
        bucket: Optional[str] = None,
    ) -> str:
        """
        Upload a local file and return the object path it was stored under.

        Raises:
            StorageError: if the upload fails
        """
        pass


class GCSStorageGateway(StorageGateway):
    """Google Cloud Storage implementation. Blocking client calls run in worker threads."""

    def __init__(self, default_bucket: str, client=None):
        super().__init__(default_bucket)
        if client is None:
            from google.cloud import storage as gcs_storage
            client = gcs_storage.Client()
        self.client = client

    def _download_sync(self, bucket: str, name: str, destination: Path) -> None:
        destination.parent.mkdir(parents=True, exist_ok=True)
        self.client.bucket(bucket).blob(name).download_to_filename(str(destination))

    def _upload_sync(self, source: Path, bucket: str, name: str, content_type: Optional[str]) -> None:
        self.client.bucket(bucket).blob(name).upload_from_filename(str(source), content_type=content_type)

    async def download(self, path_or_url: str, destination: Path, bucket: Optional[str] = None) -> Path:
        from google.api_core import exceptions as gcs_exceptions

        bucket_name, object_name = self.resolve(path_or_url, bucket)
        try:
            await asyncio.to_thread(self._download_sync, bucket_name, object_name, destination)
        except (gcs_exceptions.GoogleAPIError, OSError) as exc:
            raise StorageError(f"Download failed for gs://{bucket_name}/{object_name}") from exc

        logger.debug("Downloaded object", extra={"bucket": bucket_name, "object": object_name})
        return destination

    async def upload(
        self,
        source: Path,
        destination: str,
        content_type: Optional[str] = None,
        bucket: Optional[str] = None,
    ) -> str:
        from google.api_core import exceptions as gcs_exceptions

        bucket_name = bucket or self.default_bucket
        try:
            await asyncio.to_thread(self._upload_sync, source, bucket_name, destination, content_type)
        except (gcs_exceptions.GoogleAPIError, OSError) as exc:
            raise StorageError(f"Upload failed for gs://{bucket_name}/{destination}") from exc

        logger.debug("Uploaded object", extra={"bucket": bucket_name, "object": destination})
        return destination


class LocalStorageGateway(StorageGateway):
    """Directory-backed storage: ``<root>/<bucket>/<object>``."""

    def __init__(self, root: Path, default_bucket: str = "default"):
        super().__init__(default_bucket or "default")
        self.root = Path(root)

    def object_path(self, bucket: str, name: str) -> Path:
        target = (self.root / bucket / name).resolve()
        if not target.is_relative_to(self.root.resolve()):
            raise StorageError(f"Object path escapes storage root: {name}")
        return target

    async def download(self, path_or_url: str, destination: Path, bucket: Optional[str] = None) -> Path:
        bucket_name, object_name = self.resolve(path_or_url, bucket)
        source = self.object_path(bucket_name, object_name)
        if not source.is_file():
            raise StorageError(f"No such object: {bucket_name}/{object_name}")
        destination.parent.mkdir(parents=True, exist_ok=True)
        try:
            await asyncio.to_thread(shutil.copyfile, source, destination)
        except OSError as exc:
            raise StorageError(f"Download failed for {bucket_name}/{object_name}") from exc
        return destination

    async def upload(
        self,
        source: Path,
        destination: str,
        content_type: Optional[str] = None,
        bucket: Optional[str] = None,
    ) -> str:
        target = self.object_path(bucket or self.default_bucket, destination)
        target.parent.mkdir(parents=True, exist_ok=True)
        try:
            await asyncio.to_thread(shutil.copyfile, source, target)
        except OSError as exc:
            raise StorageError(f"Upload failed for {destination}") from exc
        return destination

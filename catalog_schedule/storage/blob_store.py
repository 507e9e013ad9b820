# catalog_schedule/storage/blob_store.py

"""Blob storage for product images and general uploads."""

import logging
import secrets
import time
from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath

from curl_cffi import requests as curl_requests

from catalog_schedule.config.settings import Settings
from catalog_schedule.errors import BlobStoreError

logger = logging.getLogger("catalog_schedule.blobs")


def validate_key(key: str) -> str:
    """Reject keys that are empty, absolute or climb out of the bucket."""
    path = PurePosixPath(key)
    if not key or path.is_absolute() or ".." in path.parts:
        raise BlobStoreError(f"Unsafe blob key: {key!r}")
    return key


def product_image_key(
    prefix: str, code: str, filename: str,
) -> str:
    """Key for a product image: ``products/<prefix>/<code>-<ms>-<name>``."""
    name = PurePosixPath(filename or "image").name or "image"
    millis = int(time.time() * 1000)
    return f"products/{prefix}/{code}-{millis}-{name}"


def upload_key(filename: str) -> str:
    """Key for a general upload: ``uploads/<ms>-<random>.<ext>``."""
    suffix = PurePosixPath(filename or "").suffix.lower().lstrip(".")
    millis = int(time.time() * 1000)
    return f"uploads/{millis}-{secrets.token_hex(4)}.{suffix or 'bin'}"


class BlobStore(ABC):
    """Put-only object storage returning public URLs."""

    @abstractmethod
    def put(self, key: str, data: bytes, content_type: str) -> str:
        """Store *data* under *key* and return its public URL."""
        ...


class LocalBlobStore(BlobStore):
    """Writes blobs under a directory on disk.

    Public URLs use ``Settings.PUBLIC_BASE_URL`` when configured,
    otherwise ``file://`` URIs that the image fetcher can read back.
    """

    def __init__(
        self,
        root: Path | None = None,
        public_base_url: str | None = None,
    ) -> None:
        self.root = root or Settings.BLOB_DIR
        self.root.mkdir(parents=True, exist_ok=True)
        base = (
            Settings.PUBLIC_BASE_URL
            if public_base_url is None
            else public_base_url
        )
        self.public_base_url = base.rstrip("/")

    def put(self, key: str, data: bytes, content_type: str) -> str:
        validate_key(key)
        path = self.root / key
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            raise BlobStoreError(f"Failed to write {key}: {exc}") from exc
        logger.info(
            "Stored %d bytes (%s) at %s", len(data), content_type, path,
        )
        if self.public_base_url:
            return f"{self.public_base_url}/{key}"
        return path.resolve().as_uri()


class HttpBlobStore(BlobStore):
    """PUTs blobs to an S3/R2-style HTTP endpoint."""

    def __init__(
        self,
        endpoint: str | None = None,
        public_base_url: str | None = None,
        token: str | None = None,
    ) -> None:
        self.endpoint = (endpoint or Settings.BLOB_ENDPOINT).rstrip("/")
        if not self.endpoint:
            raise BlobStoreError("CATALOG_BLOB_ENDPOINT is not configured")
        self.public_base_url = (
            public_base_url or Settings.PUBLIC_BASE_URL or self.endpoint
        ).rstrip("/")
        self.token = token if token is not None else Settings.BLOB_TOKEN
        self.session = curl_requests.Session(
            impersonate=Settings.IMPERSONATE_BROWSER
        )

    def put(self, key: str, data: bytes, content_type: str) -> str:
        validate_key(key)
        headers: dict[str, str] = {"Content-Type": content_type}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        url = f"{self.endpoint}/{key}"
        try:
            resp = self.session.put(
                url,
                data=data,
                headers=headers,
                timeout=Settings.IMAGE_FETCH_TIMEOUT,
            )
        except Exception as exc:
            logger.error("Upload of %s failed: %s", key, exc, exc_info=True)
            raise BlobStoreError(f"Upload of {key} failed: {exc}") from exc
        if not 200 <= resp.status_code < 300:
            raise BlobStoreError(
                f"Upload of {key} failed with HTTP {resp.status_code}"
            )
        logger.info("Uploaded %d bytes to %s", len(data), url)
        return f"{self.public_base_url}/{key}"


def build_blob_store() -> BlobStore:
    """Instantiate the backend named by ``Settings.BLOB_BACKEND``."""
    backend = Settings.BLOB_BACKEND.lower()
    if backend == "http":
        return HttpBlobStore()
    if backend == "local":
        return LocalBlobStore()
    raise BlobStoreError(f"Unknown blob backend: {Settings.BLOB_BACKEND!r}")

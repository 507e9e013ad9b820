# catalog_schedule/services/asset_service.py

"""General file uploads and the tagged asset registry.

Uploads accept a fixed list of image and video types and land under
``uploads/`` in the blob store. Tagged assets (``header-logo`` and the
like) are upserted by tag, either one at a time or from a seed file.
"""

import json
import logging
from pathlib import Path
from typing import Any

from catalog_schedule.config.settings import Settings
from catalog_schedule.errors import AssetValidationError, UploadRejectedError
from catalog_schedule.models.asset import Asset
from catalog_schedule.storage.blob_store import BlobStore, upload_key
from catalog_schedule.storage.product_store import ProductStore

logger = logging.getLogger("catalog_schedule.assets")


def asset_from_dict(raw: dict[str, Any]) -> Asset:
    """Build an Asset from one seed entry.

    Accepts ``public_url``/``content_type`` or the camelCase
    ``publicUrl``/``contentType`` keys.
    """
    tag = str(raw.get("tag") or "").strip()
    filename = str(raw.get("filename") or "").strip()
    public_url = str(raw.get("public_url") or raw.get("publicUrl") or "").strip()
    if not tag or not filename or not public_url:
        raise AssetValidationError(
            f"Asset entries need tag, filename and public_url: {raw!r}"
        )
    return Asset(
        tag=tag,
        filename=filename,
        public_url=public_url,
        content_type=str(
            raw.get("content_type")
            or raw.get("contentType")
            or "application/octet-stream"
        ),
        alt=str(raw.get("alt") or ""),
    )


def load_seed_file(path: Path) -> list[Asset]:
    """Read a JSON list of asset entries."""
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise AssetValidationError(f"{path} must hold a JSON list of assets")
    return [asset_from_dict(entry) for entry in data]


class AssetService:
    """Uploads blobs and keeps tagged assets in the product store."""

    def __init__(self, store: ProductStore, blob_store: BlobStore) -> None:
        self.store = store
        self.blob_store = blob_store

    def upload(self, data: bytes, filename: str, content_type: str) -> str:
        """Store an allowed image or video and return its public URL."""
        if content_type not in Settings.UPLOAD_CONTENT_TYPES:
            raise UploadRejectedError(content_type)
        key = upload_key(filename)
        url = self.blob_store.put(key, data, content_type)
        logger.info("Uploaded %s as %s", filename, key)
        return url

    def register(self, asset: Asset) -> Asset:
        """Validate and upsert one asset by tag."""
        asset = asset_from_dict(asset.__dict__)
        self.store.upsert_asset(asset)
        return asset

    def register_file(
        self,
        tag: str,
        data: bytes,
        filename: str,
        content_type: str,
        alt: str = "",
    ) -> Asset:
        """Upload a file and register the resulting URL under *tag*."""
        url = self.upload(data, filename, content_type)
        return self.register(Asset(tag, filename, url, content_type, alt))

    def seed(self, assets: list[Asset]) -> int:
        """Upsert every asset; return how many were written."""
        for asset in assets:
            self.register(asset)
        logger.info("Seeded %d assets", len(assets))
        return len(assets)

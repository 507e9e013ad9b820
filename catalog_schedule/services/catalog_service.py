# catalog_schedule/services/catalog_service.py

"""Product creation and search on top of the store and blob storage."""

import logging
from dataclasses import dataclass

from catalog_schedule.config.settings import Settings
from catalog_schedule.errors import ProductValidationError
from catalog_schedule.models.product import Product
from catalog_schedule.services.code_allocator import (
    CodeAllocator,
    prefix_for_area,
)
from catalog_schedule.storage.blob_store import BlobStore, product_image_key
from catalog_schedule.storage.product_store import ProductStore

logger = logging.getLogger("catalog_schedule.catalog")


@dataclass
class ProductDraft:
    """User-entered product fields before a code is assigned."""

    name: str
    area: str
    description: str
    manufacturer_description: str = ""
    product_details: str = ""
    price: float | None = None


def parse_price(raw: str | None) -> float | None:
    """Parse a form price; blank or non-numeric input means no price."""
    if raw is None or not raw.strip():
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    if value != value:  # NaN
        return None
    return value


class CatalogService:
    """Validates drafts, uploads images and allocates product codes."""

    def __init__(
        self,
        store: ProductStore,
        blob_store: BlobStore,
        allocator: CodeAllocator | None = None,
    ) -> None:
        self.store = store
        self.blob_store = blob_store
        self.allocator = allocator or CodeAllocator(store)

    @staticmethod
    def validate(
        draft: ProductDraft, image: bytes | None, content_type: str,
    ) -> None:
        """Raise on the first missing or invalid field."""
        if not draft.name.strip():
            raise ProductValidationError("Product name is required.")
        if not draft.area:
            raise ProductValidationError("Area is required.")
        prefix_for_area(draft.area)
        if not draft.description.strip():
            raise ProductValidationError("Description is required.")
        if not image:
            raise ProductValidationError("Image is required.")
        if content_type not in Settings.ALLOWED_IMAGE_TYPES:
            raise ProductValidationError(
                f"Unsupported image type: {content_type or 'unknown'}"
            )
        if draft.price is not None and draft.price < 0:
            raise ProductValidationError("Price cannot be negative.")

    def create_product(
        self,
        draft: ProductDraft,
        image: bytes,
        image_filename: str,
        content_type: str,
    ) -> Product:
        """Validate, allocate a code, upload the image and persist."""
        self.validate(draft, image, content_type)
        prefix = prefix_for_area(draft.area)

        def build(code: str) -> Product:
            key = product_image_key(prefix, code, image_filename)
            image_url = self.blob_store.put(key, image, content_type)
            return Product(
                code=code,
                name=draft.name.strip(),
                area=draft.area,
                description=draft.description.strip(),
                manufacturer_description=(
                    draft.manufacturer_description.strip() or None
                ),
                product_details=draft.product_details.strip() or None,
                price=draft.price,
                image_url=image_url,
            )

        product = self.allocator.allocate_product(draft.area, build)
        logger.info(
            "Created product %s '%s' (image %s)",
            product.code,
            product.name,
            product.image_url,
        )
        return product

    def search(self, query: str = "") -> list[Product]:
        """Search the catalog, newest first."""
        return self.store.search_products(query)

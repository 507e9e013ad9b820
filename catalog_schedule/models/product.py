# catalog_schedule/models/product.py

"""Product data model shared by the store, the allocator and the CLI."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class Product:
    """A catalog product identified by its area-prefixed code."""

    code: str
    name: str
    area: str
    description: str
    manufacturer_description: str | None = None
    product_details: str | None = None
    price: float | None = None
    image_url: str = ""
    created_at: datetime = field(default_factory=datetime.now)
    id: int | None = None

    def to_dict(self) -> dict[str, object]:
        """Serialise to plain JSON-friendly values."""
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "area": self.area,
            "description": self.description,
            "manufacturer_description": self.manufacturer_description,
            "product_details": self.product_details,
            "price": self.price,
            "image_url": self.image_url,
            "created_at": self.created_at.isoformat(),
        }

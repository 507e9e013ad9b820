# catalog_schedule/models/selection.py

"""Working product selection and the template binding built from it."""

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from catalog_schedule.config.settings import Settings
from catalog_schedule.models.product import Product

_MONTHS: list[str] = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]

_UNSAFE_FILENAME_CHARS = re.compile(r"[^\w\-.]")


@dataclass
class ScheduleHeader:
    """Contact block printed at the top of a generated schedule."""

    address: str
    date: date = field(default_factory=date.today)
    contact_name: str = ""
    company: str = ""
    phone_number: str = ""
    email: str = ""


@dataclass
class SelectionRow:
    """A selected product plus the overrides used for one schedule."""

    product: Product
    quantity: int = 1
    notes: str = ""
    area_description_override: str = ""
    price_override: float | None = None

    @property
    def code(self) -> str:
        return self.product.code

    @property
    def area_description(self) -> str:
        """Override text, or the product's area when the override is blank."""
        return self.area_description_override.strip() or self.product.area

    @property
    def effective_price(self) -> float | None:
        if self.price_override is not None:
            return self.price_override
        return self.product.price


class ProductSelection:
    """Ordered, de-duplicated set of rows a user is assembling."""

    def __init__(self) -> None:
        self._rows: list[SelectionRow] = []

    def __len__(self) -> int:
        return len(self._rows)

    @property
    def rows(self) -> list[SelectionRow]:
        return list(self._rows)

    def add(self, product: Product) -> SelectionRow:
        """Append *product*; returns the existing row if already selected."""
        for row in self._rows:
            if row.code == product.code:
                return row
        row = SelectionRow(
            product=product,
            area_description_override=product.area,
        )
        self._rows.append(row)
        return row

    def remove(self, code: str) -> bool:
        """Drop the row for *code*. Returns False if it was not selected."""
        before = len(self._rows)
        self._rows = [r for r in self._rows if r.code != code]
        return len(self._rows) != before

    def update(self, code: str, **changes: Any) -> SelectionRow:
        """Apply inline edits (quantity, notes, overrides) to one row."""
        for row in self._rows:
            if row.code == code:
                for name, value in changes.items():
                    if name == "product" or not hasattr(row, name):
                        raise AttributeError(
                            f"SelectionRow has no editable field {name!r}"
                        )
                    setattr(row, name, value)
                return row
        raise KeyError(code)

    def clear(self) -> None:
        self._rows.clear()


def format_schedule_date(value: date) -> str:
    """Format a date as ``5 March 2024``."""
    return f"{value.day} {_MONTHS[value.month - 1]} {value.year}"


def format_price(price: float | None) -> str:
    """Format a price as ``$199.99``; missing prices become empty."""
    if price is None:
        return ""
    return f"${price:.2f}"


def build_binding(
    header: ScheduleHeader,
    rows: list[SelectionRow],
    images: list[bytes | str | None] | None = None,
) -> dict[str, Any]:
    """Flatten a header and its rows into the template binding.

    *images* is aligned with *rows*; a ``None`` entry leaves that row's
    image empty.
    """
    payloads: list[bytes | str | None] = (
        images if images is not None else [None] * len(rows)
    )
    if len(payloads) != len(rows):
        raise ValueError(
            f"Expected {len(rows)} image payloads, got {len(payloads)}"
        )

    items: list[dict[str, Any]] = []
    for row, image in zip(rows, payloads):
        product = row.product
        items.append({
            "code": product.code,
            "image": image,
            "description": product.description or "",
            "manufacturer-description": product.manufacturer_description or "",
            "product-details": product.product_details or "",
            "area-description": row.area_description,
            "quantity": row.quantity,
            "price": format_price(row.effective_price),
            "notes": row.notes or "",
        })

    return {
        "address": header.address,
        "contact-name": header.contact_name,
        "company": header.company,
        "phone-number": header.phone_number,
        "email": header.email,
        "date": format_schedule_date(header.date),
        "items": items,
    }


def output_filename(header: ScheduleHeader) -> str:
    """Advisory download name derived from the address and date."""
    address = re.sub(r"\s+", "-", header.address.strip())
    address = _UNSAFE_FILENAME_CHARS.sub("", address)
    stem = Settings.OUTPUT_FILENAME_PREFIX
    if address:
        stem = f"{stem}-{address}"
    return f"{stem}-{header.date.isoformat()}.docx"

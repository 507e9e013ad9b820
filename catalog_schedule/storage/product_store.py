# catalog_schedule/storage/product_store.py

"""SQLite-backed store for catalog products and tagged assets."""

import logging
import sqlite3
from datetime import datetime
from pathlib import Path

from catalog_schedule.config.settings import Settings
from catalog_schedule.errors import DuplicateCodeError
from catalog_schedule.models.asset import Asset
from catalog_schedule.models.product import Product

logger = logging.getLogger("catalog_schedule.store")

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS products (
    id                       INTEGER PRIMARY KEY AUTOINCREMENT,
    code                     TEXT    NOT NULL UNIQUE,
    name                     TEXT    NOT NULL,
    area                     TEXT    NOT NULL,
    description              TEXT    NOT NULL,
    manufacturer_description TEXT,
    product_details          TEXT,
    price                    REAL,
    image_url                TEXT    NOT NULL DEFAULT '',
    created_at               TEXT    NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_products_created
    ON products(created_at);

CREATE TABLE IF NOT EXISTS assets (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    tag          TEXT    NOT NULL UNIQUE,
    filename     TEXT    NOT NULL,
    public_url   TEXT    NOT NULL,
    content_type TEXT    NOT NULL,
    alt          TEXT    NOT NULL DEFAULT ''
);
"""

_PRODUCT_COLUMNS = (
    "id, code, name, area, description, manufacturer_description, "
    "product_details, price, image_url, created_at"
)

_SEARCH_FIELDS: tuple[str, ...] = (
    "code",
    "name",
    "description",
    "manufacturer_description",
    "product_details",
    "area",
)


def _escape_like(term: str) -> str:
    """Escape LIKE wildcards so user input matches literally."""
    return (
        term.replace("\\", "\\\\")
        .replace("%", "\\%")
        .replace("_", "\\_")
    )


def _row_to_product(row: tuple[object, ...]) -> Product:
    price = row[7]
    return Product(
        id=int(str(row[0])),
        code=str(row[1]),
        name=str(row[2]),
        area=str(row[3]),
        description=str(row[4]),
        manufacturer_description=(
            str(row[5]) if row[5] is not None else None
        ),
        product_details=str(row[6]) if row[6] is not None else None,
        price=float(str(price)) if price is not None else None,
        image_url=str(row[8]),
        created_at=datetime.fromisoformat(str(row[9])),
    )


class ProductStore:
    """SQLite store enforcing unique product codes.

    Each instance owns one connection. Concurrent writers should each
    open their own store on the same file; SQLite serialises their
    inserts and the ``UNIQUE`` constraint on ``code`` rejects duplicates.
    """

    def __init__(
        self, db_path: Path | None = None,
    ) -> None:
        path = db_path or Settings.DB_PATH
        path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(
            str(path), check_same_thread=False, timeout=10.0,
        )
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)
        logger.debug("ProductStore opened at %s", path)

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    # ── Code allocation support ──────────────────────────

    def find_max_code_with_prefix(self, prefix: str) -> str | None:
        """Return the numerically greatest code starting with *prefix*.

        Only codes of the form ``<prefix><digits>`` are considered, so
        ``A1000`` outranks ``A999``.
        """
        start = len(prefix) + 1
        row = self._conn.execute(
            "SELECT code FROM products "
            "WHERE code GLOB ? AND SUBSTR(code, ?) NOT GLOB '*[^0-9]*' "
            "ORDER BY CAST(SUBSTR(code, ?) AS INTEGER) DESC, code DESC "
            "LIMIT 1",
            (f"{prefix}[0-9]*", start, start),
        ).fetchone()
        return str(row[0]) if row else None

    def insert_product(self, product: Product) -> Product:
        """Persist *product* and return it with its row id set.

        Raises :class:`DuplicateCodeError` when the code is taken.
        """
        try:
            with self._conn:
                cur = self._conn.execute(
                    "INSERT INTO products "
                    "(code, name, area, description, "
                    " manufacturer_description, product_details, "
                    " price, image_url, created_at) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        product.code,
                        product.name,
                        product.area,
                        product.description,
                        product.manufacturer_description,
                        product.product_details,
                        product.price,
                        product.image_url,
                        product.created_at.isoformat(),
                    ),
                )
        except sqlite3.IntegrityError as exc:
            if "products.code" in str(exc):
                raise DuplicateCodeError(product.code) from exc
            raise
        product.id = cur.lastrowid
        logger.info("Inserted product %s (%s)", product.code, product.area)
        return product

    # ── Querying ─────────────────────────────────────────

    def search_products(
        self, query: str = "", limit: int | None = None,
    ) -> list[Product]:
        """Case-insensitive substring search, newest first.

        A blank query lists the most recent products.
        """
        take = limit or Settings.SEARCH_RESULT_LIMIT
        term = query.strip()
        if not term:
            rows = self._conn.execute(
                f"SELECT {_PRODUCT_COLUMNS} FROM products "
                "ORDER BY created_at DESC, id DESC LIMIT ?",
                (take,),
            ).fetchall()
        else:
            pattern = f"%{_escape_like(term.lower())}%"
            where = " OR ".join(
                f"LOWER(COALESCE({col}, '')) LIKE ? ESCAPE '\\'"
                for col in _SEARCH_FIELDS
            )
            rows = self._conn.execute(
                f"SELECT {_PRODUCT_COLUMNS} FROM products "
                f"WHERE {where} "
                "ORDER BY created_at DESC, id DESC LIMIT ?",
                (*([pattern] * len(_SEARCH_FIELDS)), take),
            ).fetchall()
        logger.debug("Search %r returned %d products", term, len(rows))
        return [_row_to_product(r) for r in rows]

    def get_product(self, code: str) -> Product | None:
        """Fetch one product by its exact code."""
        row = self._conn.execute(
            f"SELECT {_PRODUCT_COLUMNS} FROM products WHERE code = ?",
            (code,),
        ).fetchone()
        return _row_to_product(row) if row else None

    def get_products_by_codes(
        self, codes: list[str],
    ) -> dict[str, Product]:
        """Batch-fetch products; unknown codes are simply absent."""
        result: dict[str, Product] = {}
        for code in codes:
            product = self.get_product(code)
            if product is not None:
                result[code] = product
        return result

    def count_products(self) -> int:
        row = self._conn.execute(
            "SELECT COUNT(*) FROM products"
        ).fetchone()
        return int(row[0])

    # ── Assets ───────────────────────────────────────────

    def upsert_asset(self, asset: Asset) -> None:
        """Insert or replace the asset registered under ``asset.tag``."""
        with self._conn:
            self._conn.execute(
                "INSERT INTO assets "
                "(tag, filename, public_url, content_type, alt) "
                "VALUES (?, ?, ?, ?, ?) "
                "ON CONFLICT(tag) DO UPDATE SET "
                "filename=excluded.filename, "
                "public_url=excluded.public_url, "
                "content_type=excluded.content_type, "
                "alt=excluded.alt",
                (
                    asset.tag,
                    asset.filename,
                    asset.public_url,
                    asset.content_type,
                    asset.alt,
                ),
            )
        logger.info("Upserted asset %s", asset.tag)

    def find_asset_by_tag(self, tag: str) -> Asset | None:
        """Look up an asset by tag (surrounding whitespace ignored)."""
        row = self._conn.execute(
            "SELECT tag, filename, public_url, content_type, alt "
            "FROM assets WHERE tag = ?",
            (tag.strip(),),
        ).fetchone()
        if row is None:
            return None
        return Asset(
            tag=row[0],
            filename=row[1],
            public_url=row[2],
            content_type=row[3],
            alt=row[4],
        )

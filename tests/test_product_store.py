# tests/test_product_store.py

"""Tests for the SQLite product and asset store."""

import tempfile
import unittest
from datetime import datetime, timedelta
from pathlib import Path

from catalog_schedule.errors import DuplicateCodeError
from catalog_schedule.models.asset import Asset
from catalog_schedule.models.product import Product
from catalog_schedule.storage.product_store import ProductStore


def _product(
    code: str,
    name: str = "Widget",
    area: str = "Kitchen",
    created_at: datetime | None = None,
    **kw: object,
) -> Product:
    """Create a minimal Product."""
    return Product(
        code=code,
        name=name,
        area=area,
        description=f"{name} description",
        created_at=created_at or datetime(2024, 1, 1),
        **kw,  # type: ignore[arg-type]
    )


class TestProductStore(unittest.TestCase):
    """Tests for the ProductStore class."""

    def setUp(self) -> None:
        """Create a fresh temp DB for each test."""
        self.tmp_dir = tempfile.mkdtemp()
        self.db_path = Path(self.tmp_dir) / "catalog.db"
        self.store = ProductStore(db_path=self.db_path)

    def tearDown(self) -> None:
        """Close the database."""
        self.store.close()

    def test_insert_sets_id_and_round_trips(self) -> None:
        """Inserted products can be read back by code."""
        stored = self.store.insert_product(
            _product(
                "A001",
                price=12.5,
                manufacturer_description="Steel",
                image_url="https://cdn.example.com/a.png",
            )
        )
        self.assertIsNotNone(stored.id)

        fetched = self.store.get_product("A001")
        assert fetched is not None
        self.assertEqual(fetched.name, "Widget")
        self.assertEqual(fetched.price, 12.5)
        self.assertEqual(fetched.manufacturer_description, "Steel")
        self.assertIsNone(fetched.product_details)
        self.assertEqual(fetched.created_at, datetime(2024, 1, 1))

    def test_duplicate_code_raises(self) -> None:
        """The unique code constraint surfaces as DuplicateCodeError."""
        self.store.insert_product(_product("A001"))
        with self.assertRaises(DuplicateCodeError) as ctx:
            self.store.insert_product(_product("A001", name="Other"))
        self.assertEqual(ctx.exception.code, "A001")
        self.assertEqual(self.store.count_products(), 1)

    def test_get_missing_product(self) -> None:
        """Unknown codes return None."""
        self.assertIsNone(self.store.get_product("Z999"))

    def test_get_products_by_codes(self) -> None:
        """Batch lookup skips unknown codes."""
        self.store.insert_product(_product("A001"))
        self.store.insert_product(_product("B001", area="Bedroom"))
        found = self.store.get_products_by_codes(["B001", "X404", "A001"])
        self.assertEqual(set(found), {"A001", "B001"})

    # ── Max code lookup ──────────────────────────────────

    def test_max_code_empty_store(self) -> None:
        """No codes for the prefix yields None."""
        self.assertIsNone(self.store.find_max_code_with_prefix("A"))

    def test_max_code_is_numeric_not_lexicographic(self) -> None:
        """A1000 outranks A999."""
        for code in ("A998", "A1000", "A999"):
            self.store.insert_product(_product(code))
        self.assertEqual(self.store.find_max_code_with_prefix("A"), "A1000")

    def test_max_code_ignores_other_prefixes(self) -> None:
        """Codes under another prefix never count."""
        self.store.insert_product(_product("A002"))
        self.store.insert_product(_product("B050", area="Bedroom"))
        self.assertEqual(self.store.find_max_code_with_prefix("A"), "A002")
        self.assertEqual(self.store.find_max_code_with_prefix("B"), "B050")
        self.assertIsNone(self.store.find_max_code_with_prefix("C"))

    def test_max_code_ignores_non_numeric_suffix(self) -> None:
        """Hand-entered codes like A12X do not take part."""
        self.store.insert_product(_product("A005"))
        self.store.insert_product(_product("A12X"))
        self.assertEqual(self.store.find_max_code_with_prefix("A"), "A005")

    # ── Search ───────────────────────────────────────────

    def test_search_is_case_insensitive_across_fields(self) -> None:
        """Name, details and code all participate in matching."""
        self.store.insert_product(_product("A001", name="Brass Tap"))
        self.store.insert_product(
            _product("B001", name="Bed", area="Bedroom",
                     product_details="Solid BRASS legs")
        )
        self.store.insert_product(_product("C001", name="Sofa",
                                           area="Living Room"))
        codes = {p.code for p in self.store.search_products("brass")}
        self.assertEqual(codes, {"A001", "B001"})
        self.assertEqual(
            [p.code for p in self.store.search_products("c001")], ["C001"],
        )

    def test_search_matches_area(self) -> None:
        """Area names are searchable."""
        self.store.insert_product(_product("D001", area="Patio"))
        self.store.insert_product(_product("A001"))
        codes = [p.code for p in self.store.search_products("pati")]
        self.assertEqual(codes, ["D001"])

    def test_search_newest_first(self) -> None:
        """Results are ordered by creation time, newest first."""
        base = datetime(2024, 1, 1)
        for offset, code in enumerate(("A001", "A002", "A003")):
            self.store.insert_product(
                _product(code, created_at=base + timedelta(days=offset))
            )
        codes = [p.code for p in self.store.search_products("")]
        self.assertEqual(codes, ["A003", "A002", "A001"])

    def test_search_treats_wildcards_literally(self) -> None:
        """% and _ in the query match themselves only."""
        self.store.insert_product(_product("A001", name="100% wool"))
        self.store.insert_product(_product("A002", name="Cotton"))
        codes = [p.code for p in self.store.search_products("%")]
        self.assertEqual(codes, ["A001"])
        self.assertEqual(self.store.search_products("_"), [])

    def test_search_limit(self) -> None:
        """At most *limit* products come back."""
        for n in range(1, 6):
            self.store.insert_product(_product(f"A{n:03d}"))
        self.assertEqual(len(self.store.search_products("", limit=2)), 2)

    # ── Assets ───────────────────────────────────────────

    def test_asset_upsert_and_lookup(self) -> None:
        """Assets are replaced by tag and looked up ignoring whitespace."""
        self.store.upsert_asset(
            Asset("header-logo", "a.png", "https://cdn.example.com/a.png",
                  "image/png")
        )
        self.store.upsert_asset(
            Asset("header-logo", "b.png", "https://cdn.example.com/b.png",
                  "image/png", alt="Logo")
        )
        asset = self.store.find_asset_by_tag("  header-logo ")
        assert asset is not None
        self.assertEqual(asset.filename, "b.png")
        self.assertEqual(asset.alt, "Logo")

    def test_missing_asset(self) -> None:
        """Unknown tags return None."""
        self.assertIsNone(self.store.find_asset_by_tag("nope"))

    def test_schema_survives_reopen(self) -> None:
        """Reopening the file keeps existing rows."""
        self.store.insert_product(_product("A001"))
        self.store.close()
        self.store = ProductStore(db_path=self.db_path)
        self.assertEqual(self.store.count_products(), 1)


if __name__ == "__main__":
    unittest.main()

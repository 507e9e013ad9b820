# catalog_schedule/services/code_allocator.py

"""Area-prefixed product code allocation with retry on collision."""

import logging
from collections.abc import Callable
from typing import Protocol

from catalog_schedule.config.settings import Settings
from catalog_schedule.errors import (
    AllocationConflictError,
    DuplicateCodeError,
    InvalidAreaError,
)
from catalog_schedule.models.product import Product

logger = logging.getLogger("catalog_schedule.allocator")


class CodeStore(Protocol):
    """The two store calls the allocator needs."""

    def find_max_code_with_prefix(self, prefix: str) -> str | None: ...

    def insert_product(self, product: Product) -> Product: ...


def prefix_for_area(area: str) -> str:
    """Map an area name to its single-letter code prefix."""
    prefix = Settings.AREA_PREFIXES.get(area)
    if prefix is None:
        raise InvalidAreaError(area)
    return prefix


def parse_sequence(code: str | None, prefix: str) -> int:
    """Return the numeric suffix of *code*, or 0 if there is none."""
    if not code or not code.startswith(prefix):
        return 0
    digits = code[len(prefix):]
    return int(digits) if digits.isdigit() else 0


def format_code(prefix: str, sequence: int) -> str:
    """Render ``A`` + 7 as ``A007``; wider numbers are not truncated."""
    return f"{prefix}{sequence:0{Settings.CODE_SEQUENCE_WIDTH}d}"


class CodeAllocator:
    """Derives the next code for an area and persists it atomically.

    The read-max-then-insert sequence is not serialised here; the
    store's uniqueness constraint rejects a losing concurrent insert and
    the allocator recomputes from the fresh maximum.
    """

    def __init__(
        self,
        store: CodeStore,
        max_retries: int | None = None,
    ) -> None:
        if max_retries is None:
            max_retries = Settings.ALLOCATION_MAX_RETRIES
        if max_retries < 1:
            raise ValueError(f"max_retries must be at least 1, got {max_retries}")
        self.store = store
        self.max_retries = max_retries

    def next_code(self, area: str) -> str:
        """Preview the code the next allocation would try. Writes nothing."""
        prefix = prefix_for_area(area)
        current = parse_sequence(
            self.store.find_max_code_with_prefix(prefix), prefix,
        )
        return format_code(prefix, current + 1)

    def allocate_product(
        self,
        area: str,
        build: Callable[[str], Product],
    ) -> Product:
        """Allocate a code, build the record for it and insert it.

        *build* receives the candidate code and returns the product to
        persist; it is called again with a new code after a collision.
        """
        prefix = prefix_for_area(area)

        for attempt in range(1, self.max_retries + 1):
            current = parse_sequence(
                self.store.find_max_code_with_prefix(prefix), prefix,
            )
            code = format_code(prefix, current + 1)
            product = build(code)
            try:
                stored = self.store.insert_product(product)
            except DuplicateCodeError:
                logger.warning(
                    "Code %s taken by a concurrent writer "
                    "(attempt %d/%d)",
                    code,
                    attempt,
                    self.max_retries,
                )
                continue
            logger.info("Allocated %s for area %s", code, area)
            return stored

        logger.error(
            "Allocation for %s gave up after %d attempts",
            area,
            self.max_retries,
        )
        raise AllocationConflictError(area, self.max_retries)

    def allocate(
        self,
        area: str,
        build: Callable[[str], Product] | None = None,
    ) -> str:
        """Allocate and persist the next code for *area*; return the code."""
        factory = build or (
            lambda code: Product(
                code=code, name="", area=area, description="",
            )
        )
        return self.allocate_product(area, factory).code

# catalog_schedule/services/schedule_builder.py

"""Turns a product selection into a downloadable schedule document."""

import asyncio
import logging
from dataclasses import dataclass, field

from catalog_schedule.config.settings import Settings
from catalog_schedule.errors import SelectionValidationError
from catalog_schedule.merge.engine import DocumentMergeEngine
from catalog_schedule.models.selection import (
    ProductSelection,
    ScheduleHeader,
    build_binding,
    output_filename,
)
from catalog_schedule.services.image_fetcher import ImageFetcher
from catalog_schedule.storage.template_factory import load_template

logger = logging.getLogger("catalog_schedule.schedule")


@dataclass
class ScheduleResult:
    """A rendered schedule ready to save or stream."""

    filename: str
    content: bytes
    row_count: int
    mime_type: str = Settings.DOCX_MIME_TYPE
    missing_images: list[str] = field(
        default_factory=lambda: list[str]()
    )


def validate_selection(
    header: ScheduleHeader, selection: ProductSelection,
) -> None:
    """Raise :class:`SelectionValidationError` if the schedule is incomplete."""
    if not header.address.strip():
        raise SelectionValidationError("Address is required.")
    if len(selection) == 0:
        raise SelectionValidationError(
            "Add at least one product to the selection."
        )
    for row in selection.rows:
        if row.quantity < 1 or not row.area_description:
            raise SelectionValidationError(
                "Quantity and area description are required for each "
                f"product (check {row.code})."
            )


class ScheduleBuilder:
    """Fetches row images, binds the selection and renders the template."""

    def __init__(
        self,
        engine: DocumentMergeEngine | None = None,
        image_fetcher: ImageFetcher | None = None,
        template_bytes: bytes | None = None,
    ) -> None:
        self.engine = engine or DocumentMergeEngine()
        self.image_fetcher = image_fetcher or ImageFetcher()
        self._template_bytes = template_bytes

    def _template(self) -> bytes:
        if self._template_bytes is None:
            self._template_bytes = load_template()
        return self._template_bytes

    async def generate(
        self,
        header: ScheduleHeader,
        selection: ProductSelection,
    ) -> ScheduleResult:
        """Render *selection* and clear it once the document exists."""
        validate_selection(header, selection)
        rows = selection.rows

        images = await self.image_fetcher.fetch_all(
            [row.product.image_url for row in rows]
        )
        missing = [
            row.code for row, image in zip(rows, images) if image is None
        ]

        binding = build_binding(header, rows, list(images))
        content: bytes = await asyncio.to_thread(
            self.engine.render, self._template(), binding,
        )

        result = ScheduleResult(
            filename=output_filename(header),
            content=content,
            row_count=len(rows),
            missing_images=missing,
        )
        selection.clear()
        logger.info(
            "Generated %s: %d rows, %d without images",
            result.filename,
            result.row_count,
            len(missing),
        )
        return result

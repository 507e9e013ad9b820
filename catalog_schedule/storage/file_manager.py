# catalog_schedule/storage/file_manager.py

"""Handles saving generated schedules to disk."""

import logging
from pathlib import Path, PurePath

from catalog_schedule.config.settings import Settings

logger = logging.getLogger("catalog_schedule.storage")


class FileManager:
    """Handles saving generated schedules to disk."""

    def __init__(self, output_dir: Path | None = None) -> None:
        self.output_dir: Path = output_dir or Settings.OUTPUT_DIR
        self.output_dir.mkdir(parents=True, exist_ok=True)
        logger.debug("FileManager initialised, output_dir=%s", self.output_dir)

    def save_document(self, filename: str, content: bytes) -> Path:
        """Write *content* under *filename*, never outside ``output_dir``.

        An existing file with the same name gets a numeric suffix rather
        than being overwritten.
        """
        name = PurePath(filename).name or "document.docx"
        filepath = self.output_dir / name
        counter = 1
        while filepath.exists():
            filepath = self.output_dir / f"{Path(name).stem}-{counter}{Path(name).suffix}"
            counter += 1

        filepath.write_bytes(content)
        logger.info("Saved %d bytes to %s", len(content), filepath)
        return filepath

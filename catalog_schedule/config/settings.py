# catalog_schedule/config/settings.py

"""Central configuration for the catalog_schedule tool."""

import os
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Central configuration for the catalog_schedule tool."""

    # --- Code allocation ---
    AREA_PREFIXES: dict[str, str] = {
        "Kitchen": "A",
        "Bedroom": "B",
        "Living Room": "C",
        "Patio": "D",
    }
    CODE_SEQUENCE_WIDTH: int = 3        # Zero-padding for code sequences
    ALLOCATION_MAX_RETRIES: int = 5     # Insert attempts before giving up

    # --- Catalog ---
    SEARCH_RESULT_LIMIT: int = 50       # Max products per search
    ALLOWED_IMAGE_TYPES: list[str] = [
        "image/jpeg",
        "image/png",
        "image/webp",
        "image/avif",
        "image/gif",
    ]
    UPLOAD_CONTENT_TYPES: list[str] = [
        "image/jpeg",
        "image/png",
        "image/webp",
        "image/avif",
        "video/mp4",
        "video/quicktime",
        "video/webm",
    ]

    # --- Document merge ---
    IMAGE_SIZE_PX: tuple[int, int] = (120, 90)  # Width x height box
    EMU_PER_PIXEL: int = 9525                   # 96 DPI
    DOCX_MIME_TYPE: str = (
        "application/vnd.openxmlformats-officedocument"
        ".wordprocessingml.document"
    )
    OUTPUT_FILENAME_PREFIX: str = "Product-Selection"

    # --- Image fetching ---
    IMAGE_FETCH_TIMEOUT: int = 15       # Seconds before a fetch times out
    IMAGE_FETCH_RETRIES: int = 2        # Attempts per image
    IMAGE_FETCH_DELAY: float = 0.5      # Seconds between attempts
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"

    # --- Sessions ---
    SESSION_TTL_SECONDS: int = 60 * 60 * 12
    ADMIN_USERNAME: str = os.getenv("ADMIN_USERNAME", "")
    ADMIN_PASSWORD: str = os.getenv("ADMIN_PASSWORD", "")
    SESSION_SECRET: str = (
        os.getenv("ADMIN_SESSION_SECRET")
        or os.getenv("ADMIN_PASSWORD")
        or os.getenv("ADMIN_USERNAME")
        or "set-admin-session-secret"
    )

    # --- Blob storage ---
    BLOB_BACKEND: str = os.getenv("CATALOG_BLOB_BACKEND", "local")
    BLOB_ENDPOINT: str = os.getenv("CATALOG_BLOB_ENDPOINT", "")
    BLOB_TOKEN: str = os.getenv("CATALOG_BLOB_TOKEN", "")
    PUBLIC_BASE_URL: str = os.getenv("CATALOG_PUBLIC_BASE_URL", "")

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    DATA_DIR: Path = BASE_DIR / "data"
    DB_PATH: Path = Path(
        os.getenv("CATALOG_DB_PATH", str(DATA_DIR / "catalog.db"))
    )
    BLOB_DIR: Path = Path(
        os.getenv("CATALOG_BLOB_DIR", str(DATA_DIR / "blobs"))
    )
    TEMPLATE_PATH: Path = BASE_DIR / "templates" / "product-selection.docx"
    OUTPUT_DIR: Path = BASE_DIR / "output"
    LOGS_DIR: Path = Path(
        os.getenv("CATALOG_LOGS_DIR", str(BASE_DIR / "logs"))
    )

    # --- Logging ---
    LOG_KEEP_RUNS: int = int(os.getenv("CATALOG_LOG_KEEP_RUNS", "30"))

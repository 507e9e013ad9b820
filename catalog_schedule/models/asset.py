# catalog_schedule/models/asset.py

"""Tagged static asset (logos and similar) stored alongside products."""

from dataclasses import dataclass


@dataclass
class Asset:
    """A publicly hosted file looked up by its tag, e.g. ``header-logo``."""

    tag: str
    filename: str
    public_url: str
    content_type: str = "application/octet-stream"
    alt: str = ""

# catalog_schedule/merge/images.py

"""Decode row image payloads and embed them as inline drawings."""

import base64
import binascii
import logging
import re
from io import BytesIO
from typing import Any

from docx.oxml import OxmlElement
from docx.shared import Emu
from lxml import etree

from catalog_schedule.config.settings import Settings

logger = logging.getLogger("catalog_schedule.merge")

_DATA_URI_RE = re.compile(r"^data:[\w/+.\-]+;base64,", re.IGNORECASE)


def decode_image_payload(payload: object) -> bytes | None:
    """Turn raw bytes or a base64 string into image bytes.

    Empty payloads and undecodable strings return ``None`` so the caller
    renders an empty image region.
    """
    if payload is None:
        return None
    if isinstance(payload, (bytes, bytearray, memoryview)):
        data = bytes(payload)
        return data or None
    if isinstance(payload, str):
        text = "".join(_DATA_URI_RE.sub("", payload.strip()).split())
        if not text:
            return None
        try:
            return base64.b64decode(text, validate=True)
        except (binascii.Error, ValueError):
            logger.warning(
                "Image payload is not valid base64 (%d chars)", len(text),
            )
            return None
    logger.warning(
        "Unsupported image payload type: %s", type(payload).__name__,
    )
    return None


def build_drawing(
    part: Any,
    data: bytes,
    size_px: tuple[int, int] | None = None,
) -> etree._Element | None:
    """Register *data* as a media part of *part* and return a ``w:drawing``.

    The picture is stretched to the fixed box *size_px*; aspect ratio is
    not preserved. Returns ``None`` if the bytes are not a recognised
    image format.
    """
    width_px, height_px = size_px or Settings.IMAGE_SIZE_PX
    try:
        inline = part.new_pic_inline(
            BytesIO(data),
            Emu(width_px * Settings.EMU_PER_PIXEL),
            Emu(height_px * Settings.EMU_PER_PIXEL),
        )
    except Exception as exc:
        logger.warning(
            "Skipping unreadable image (%d bytes): %s",
            len(data),
            exc,
            exc_info=True,
        )
        return None
    drawing = OxmlElement("w:drawing")
    drawing.append(inline)
    return drawing

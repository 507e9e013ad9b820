# catalog_schedule/storage/template_factory.py

"""Builds the default product-selection template from scratch.

Authoring the template in Word tends to fragment placeholders across
runs; generating it here keeps every token in a single run. Open the
result in Word afterwards to restyle it.
"""

import logging
from io import BytesIO
from pathlib import Path

from docx import Document
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Twips

from catalog_schedule.config.settings import Settings
from catalog_schedule.errors import TemplateLoadError

logger = logging.getLogger("catalog_schedule.templates")

# (header label, row placeholder, grid width in twips)
_COLUMNS: list[tuple[str, str, int]] = [
    ("Code", "{{code}}", 800),
    ("Image", "{%image}", 1200),
    ("Description", "{{description}}", 1500),
    ("Manufacturer", "{{manufacturer-description}}", 1500),
    ("Product Details", "{{product-details}}", 1500),
    ("Area", "{{area-description}}", 1200),
    ("Qty", "{{quantity}}", 800),
    ("Price", "{{price}}", 800),
    ("Notes", "{{notes}}", 1200),
]

_HEADER_LINES: list[str] = [
    "{{address}}",
    "Date: {{date}}",
    "",
    "Contact Name: {{contact-name}}",
    "Company: {{company}}",
    "Phone: {{phone-number}}",
    "Email: {{email}}",
]

_HEADING_FILL = "CCCCCC"


def _add_borders(table) -> None:
    """Single-line outer and inner borders, full page width."""
    tbl_pr = table._element.tblPr
    tbl_w = tbl_pr.find(qn("w:tblW"))
    if tbl_w is None:
        tbl_w = OxmlElement("w:tblW")
        tbl_pr.append(tbl_w)
    tbl_w.set(qn("w:w"), "5000")
    tbl_w.set(qn("w:type"), "pct")

    borders = OxmlElement("w:tblBorders")
    for side in ("top", "left", "bottom", "right", "insideH", "insideV"):
        border = OxmlElement(f"w:{side}")
        border.set(qn("w:val"), "single")
        border.set(qn("w:sz"), "4")
        border.set(qn("w:space"), "0")
        border.set(qn("w:color"), "auto")
        borders.append(border)
    tbl_w.addnext(borders)


def _shade(cell, fill: str) -> None:
    shd = OxmlElement("w:shd")
    shd.set(qn("w:val"), "clear")
    shd.set(qn("w:color"), "auto")
    shd.set(qn("w:fill"), fill)
    cell._tc.get_or_add_tcPr().append(shd)


def build_default_template() -> bytes:
    """The default product-selection template as ``.docx`` bytes.

    A bold title and the contact block, then one bordered table: a
    shaded heading row, and the item row wrapped by ``{#items}`` and
    ``{/items}`` marker rows.
    """
    document = Document()
    document.add_paragraph().add_run("PRODUCT SELECTION").bold = True
    document.add_paragraph()
    for line in _HEADER_LINES:
        document.add_paragraph(line)
    document.add_paragraph()

    table = document.add_table(rows=4, cols=len(_COLUMNS))
    _add_borders(table)
    heading, open_row, item_row, close_row = table.rows
    for index, (label, token, width) in enumerate(_COLUMNS):
        table.columns[index].width = Twips(width)
        for row in table.rows:
            row.cells[index].width = Twips(width)
        cell = heading.cells[index]
        cell.paragraphs[0].add_run(label).bold = True
        _shade(cell, _HEADING_FILL)
        item_row.cells[index].text = token
    open_row.cells[0].text = "{#items}"
    close_row.cells[0].text = "{/items}"
    document.add_paragraph()

    buffer = BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def write_default_template(path: Path | None = None) -> Path:
    """Write the default template to *path* (default: TEMPLATE_PATH)."""
    target = path or Settings.TEMPLATE_PATH
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(build_default_template())
    logger.info("Wrote default template to %s", target)
    return target


def load_template(path: Path | None = None) -> bytes:
    """Read the template at *path*, falling back to the built-in default.

    An explicit *path* that cannot be read raises
    :class:`TemplateLoadError`; a missing default template does not.
    """
    if path is None:
        if not Settings.TEMPLATE_PATH.exists():
            logger.info(
                "No template at %s, using the built-in default",
                Settings.TEMPLATE_PATH,
            )
            return build_default_template()
        path = Settings.TEMPLATE_PATH
    try:
        return path.read_bytes()
    except OSError as exc:
        raise TemplateLoadError(f"Cannot read template {path}: {exc}") from exc

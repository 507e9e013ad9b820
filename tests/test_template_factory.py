# tests/test_template_factory.py

"""Tests for the built-in product-selection template."""

import tempfile
import unittest
from io import BytesIO
from pathlib import Path
from unittest.mock import patch

from docx import Document
from docx.oxml.ns import qn

from catalog_schedule.config.settings import Settings
from catalog_schedule.errors import TemplateLoadError
from catalog_schedule.storage.template_factory import (
    build_default_template,
    load_template,
    write_default_template,
)


class TestDefaultTemplate(unittest.TestCase):
    """Shape of the generated template."""

    def test_opens_as_word_document(self) -> None:
        """python-docx can read the generated package."""
        doc = Document(BytesIO(build_default_template()))
        self.assertEqual(len(doc.tables), 1)
        self.assertEqual(len(doc.tables[0].rows), 4)
        self.assertEqual(len(doc.sections), 1)

    def test_header_placeholders_present(self) -> None:
        """Every header key appears once."""
        xml = Document(BytesIO(build_default_template())).element.xml
        for token in (
            "{{address}}", "{{date}}", "{{contact-name}}", "{{company}}",
            "{{phone-number}}", "{{email}}",
        ):
            with self.subTest(token=token):
                self.assertEqual(xml.count(token), 1)

    def test_row_placeholders_present(self) -> None:
        """The repeated row carries every item column."""
        doc = Document(BytesIO(build_default_template()))
        cells = [c.text for c in doc.tables[0].rows[2].cells]
        self.assertEqual(
            cells,
            [
                "{{code}}", "{%image}", "{{description}}",
                "{{manufacturer-description}}", "{{product-details}}",
                "{{area-description}}", "{{quantity}}", "{{price}}",
                "{{notes}}",
            ],
        )

    def test_heading_row_is_bold_and_shaded(self) -> None:
        """Column labels are bold on a grey fill inside a bordered table."""
        doc = Document(BytesIO(build_default_template()))
        table = doc.tables[0]
        heading = table.rows[0].cells
        self.assertEqual(heading[0].text, "Code")
        self.assertTrue(heading[0].paragraphs[0].runs[0].bold)
        shd = heading[0]._tc.tcPr.find(qn("w:shd"))
        self.assertEqual(shd.get(qn("w:fill")), "CCCCCC")
        borders = table._element.tblPr.find(qn("w:tblBorders"))
        self.assertEqual(len(borders), 6)

    def test_loop_markers_wrap_the_row(self) -> None:
        """Marker rows sit directly above and below the repeated row."""
        doc = Document(BytesIO(build_default_template()))
        rows = doc.tables[0].rows
        self.assertEqual(rows[1].cells[0].text, "{#items}")
        self.assertEqual(rows[3].cells[0].text, "{/items}")


class TestLoadTemplate(unittest.TestCase):
    """Template source resolution."""

    def setUp(self) -> None:
        """Create a temp directory."""
        self.tmp_dir = Path(tempfile.mkdtemp())

    def test_falls_back_to_builtin(self) -> None:
        """Without a template file the default is used."""
        with patch.object(
            Settings, "TEMPLATE_PATH", self.tmp_dir / "missing.docx",
        ):
            doc = Document(BytesIO(load_template()))
        self.assertEqual(doc.tables[0].rows[1].cells[0].text, "{#items}")

    def test_reads_configured_template(self) -> None:
        """An existing TEMPLATE_PATH wins over the default."""
        path = self.tmp_dir / "custom.docx"
        path.write_bytes(b"custom-bytes")
        with patch.object(Settings, "TEMPLATE_PATH", path):
            self.assertEqual(load_template(), b"custom-bytes")

    def test_explicit_missing_path_raises(self) -> None:
        """An explicit path that cannot be read is an error."""
        with self.assertRaises(TemplateLoadError):
            load_template(self.tmp_dir / "nope.docx")

    def test_write_default_template(self) -> None:
        """The written file matches the built-in bytes."""
        target = write_default_template(self.tmp_dir / "t" / "template.docx")
        self.assertTrue(target.exists())
        Document(str(target))


if __name__ == "__main__":
    unittest.main()

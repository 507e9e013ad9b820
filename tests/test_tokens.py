# tests/test_tokens.py

"""Tests for the placeholder token grammar."""

import unittest

from catalog_schedule.merge.tokens import (
    IMAGE,
    LOOP_CLOSE,
    LOOP_OPEN,
    SCALAR,
    TEXT,
    find_stray_delimiter,
    find_tokens,
    tokenize,
)


class TestFindTokens(unittest.TestCase):
    """Recognising each token kind."""

    def test_all_kinds(self) -> None:
        """Scalar, loop open/close and image tokens are recognised."""
        tokens = find_tokens("{#items}{{code}} {%image}{/items}")
        self.assertEqual(
            [(t.kind, t.value) for t in tokens],
            [
                (LOOP_OPEN, "items"),
                (SCALAR, "code"),
                (IMAGE, "image"),
                (LOOP_CLOSE, "items"),
            ],
        )

    def test_hyphenated_and_dotted_keys(self) -> None:
        """Keys may contain hyphens and dots."""
        tokens = find_tokens("{{contact-name}} {{room.name}} {{.}}")
        self.assertEqual(
            [t.value for t in tokens], ["contact-name", "room.name", "."],
        )

    def test_inner_whitespace_allowed(self) -> None:
        """Spaces inside the braces are ignored."""
        token = find_tokens("{{ address }}")[0]
        self.assertEqual(token.value, "address")
        self.assertEqual(token.raw, "{{ address }}")

    def test_offsets(self) -> None:
        """start/end index into the source text."""
        text = "Date: {{date}}"
        token = find_tokens(text)[0]
        self.assertEqual(text[token.start:token.end], "{{date}}")


class TestTokenize(unittest.TestCase):
    """Splitting text into literal and token segments."""

    def test_segments_cover_text(self) -> None:
        """Concatenated raw segments reproduce the input."""
        text = "Phone: {{phone-number}} / Email: {{email}}!"
        segments = tokenize(text)
        self.assertEqual("".join(s.raw for s in segments), text)
        self.assertEqual(
            [s.kind for s in segments],
            [TEXT, SCALAR, TEXT, SCALAR, TEXT],
        )

    def test_plain_text(self) -> None:
        """Text without tokens is one literal segment."""
        segments = tokenize("PRODUCT SELECTION")
        self.assertEqual(len(segments), 1)
        self.assertEqual(segments[0].kind, TEXT)

    def test_empty_text(self) -> None:
        """Empty text yields no segments."""
        self.assertEqual(tokenize(""), [])


class TestStrayDelimiters(unittest.TestCase):
    """Delimiters outside any complete token."""

    def test_valid_text_has_none(self) -> None:
        """Well-formed tokens and ordinary braces pass."""
        self.assertIsNone(find_stray_delimiter("{{a}} {#b}{/b} {%c} {x}"))

    def test_unclosed_scalar(self) -> None:
        """A scalar missing a closing brace is reported."""
        match = find_stray_delimiter("Date: {{date}")
        assert match is not None
        self.assertEqual(match.group(0), "{{")
        self.assertEqual(match.start(), 6)

    def test_dangling_close(self) -> None:
        """A lone '}}' after a valid token is reported."""
        match = find_stray_delimiter("{{a}} b}}")
        assert match is not None
        self.assertEqual(match.start(), 7)

    def test_bad_loop_marker(self) -> None:
        """A loop marker with an invalid name is reported."""
        self.assertIsNotNone(find_stray_delimiter("{#my items}"))


if __name__ == "__main__":
    unittest.main()

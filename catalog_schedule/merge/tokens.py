# catalog_schedule/merge/tokens.py

"""Placeholder token grammar used inside template text.

``{{key}}``   scalar value
``{#name}``   start of a repeated block
``{/name}``   end of a repeated block
``{%key}``    image
"""

import re
from dataclasses import dataclass

TEXT = "text"
SCALAR = "scalar"
LOOP_OPEN = "open"
LOOP_CLOSE = "close"
IMAGE = "image"

_KEY = r"[\w.\-]+"

TOKEN_RE = re.compile(
    rf"\{{\{{\s*(?P<{SCALAR}>{_KEY})\s*\}}\}}"
    rf"|\{{#\s*(?P<{LOOP_OPEN}>{_KEY})\s*\}}"
    rf"|\{{/\s*(?P<{LOOP_CLOSE}>{_KEY})\s*\}}"
    rf"|\{{%\s*(?P<{IMAGE}>{_KEY})\s*\}}"
)

# Delimiters that may only appear as part of a complete token
STRAY_RE = re.compile(r"\{\{|\}\}|\{[#/%]")


@dataclass(frozen=True)
class Segment:
    """A run of literal text or one placeholder token."""

    kind: str
    value: str
    start: int
    end: int
    raw: str


def find_tokens(text: str) -> list[Segment]:
    """Return the placeholder tokens in *text*, in order."""
    tokens: list[Segment] = []
    for match in TOKEN_RE.finditer(text):
        kind = match.lastgroup or TEXT
        tokens.append(Segment(
            kind=kind,
            value=match.group(kind),
            start=match.start(),
            end=match.end(),
            raw=match.group(0),
        ))
    return tokens


def tokenize(text: str) -> list[Segment]:
    """Split *text* into literal and token segments covering all of it."""
    segments: list[Segment] = []
    pos = 0
    for token in find_tokens(text):
        if token.start > pos:
            segments.append(Segment(
                TEXT, text[pos:token.start], pos, token.start,
                text[pos:token.start],
            ))
        segments.append(token)
        pos = token.end
    if pos < len(text):
        segments.append(Segment(
            TEXT, text[pos:], pos, len(text), text[pos:],
        ))
    return segments


def find_stray_delimiter(text: str) -> re.Match[str] | None:
    """Find a delimiter that is not part of any valid token.

    Valid tokens are blanked out first (with a brace-free filler of the
    same length) so reported positions still index into *text*.
    """
    blanked = TOKEN_RE.sub(lambda m: "\x00" * len(m.group(0)), text)
    return STRAY_RE.search(blanked)

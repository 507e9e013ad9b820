# catalog_schedule/merge/run_normalizer.py

"""Run normalisation and placeholder validation for WordprocessingML.

Word routinely splits what the author typed as one word into several
``<w:r>`` runs (spell-check marks, revision ids, autocorrect). Runs that
carry identical formatting are merged back together here before any
token scanning. A token that still spans several text nodes afterwards
was typed with a formatting change in the middle of it, and is reported
as a :class:`PlaceholderSyntaxError` instead of being half-substituted.
"""

import logging

from docx.oxml.ns import qn
from lxml import etree

from catalog_schedule.errors import PlaceholderSyntaxError
from catalog_schedule.merge.tokens import find_stray_delimiter, find_tokens

logger = logging.getLogger("catalog_schedule.merge")

W_P = qn("w:p")
W_R = qn("w:r")
W_T = qn("w:t")
W_RPR = qn("w:rPr")
W_PROOF_ERR = qn("w:proofErr")
XML_SPACE = "{http://www.w3.org/XML/1998/namespace}space"

_CONTEXT_CHARS = 20


def nearest(element: etree._Element, tag: str) -> etree._Element | None:
    """Return *element* or its closest ancestor with *tag*."""
    current: etree._Element | None = element
    while current is not None:
        if current.tag == tag:
            return current
        current = current.getparent()
    return None


def paragraph_texts(paragraph: etree._Element) -> list[etree._Element]:
    """Text nodes that belong to *paragraph* itself.

    Paragraphs nested in text boxes are excluded; they are handled as
    paragraphs of their own.
    """
    return [
        t for t in paragraph.iter(W_T)
        if nearest(t.getparent(), W_P) is paragraph
    ]


def _preserve_space(text_el: etree._Element) -> None:
    text_el.set(XML_SPACE, "preserve")


def _is_plain_run(run: etree._Element) -> bool:
    has_text = False
    for child in run:
        if child.tag == W_T:
            has_text = True
        elif child.tag != W_RPR:
            return False
    return has_text


def _format_key(run: etree._Element) -> bytes:
    rpr = run.find(W_RPR)
    return etree.tostring(rpr) if rpr is not None else b""


def _merge_text_nodes(run: etree._Element) -> None:
    """Join consecutive ``<w:t>`` siblings inside one run."""
    previous: etree._Element | None = None
    for child in list(run):
        if child.tag != W_T:
            previous = None
            continue
        if previous is None:
            previous = child
            continue
        previous.text = (previous.text or "") + (child.text or "")
        _preserve_space(previous)
        run.remove(child)


def _merge_runs(container: etree._Element) -> int:
    """Merge adjacent plain-text runs with identical formatting."""
    merged = 0
    previous: etree._Element | None = None
    previous_key = b""
    for child in list(container):
        if child.tag != W_R or not _is_plain_run(child):
            previous = None
            continue
        _merge_text_nodes(child)
        key = _format_key(child)
        if previous is not None and key == previous_key:
            target = previous.find(W_T)
            source = child.find(W_T)
            if target is not None and source is not None:
                target.text = (target.text or "") + (source.text or "")
                _preserve_space(target)
                container.remove(child)
                merged += 1
                continue
        previous = child
        previous_key = key
    return merged


def normalize_runs(root: etree._Element) -> int:
    """Merge same-formatted runs in every paragraph under *root*.

    Returns the number of runs folded into a neighbour.
    """
    merged = 0
    for paragraph in list(root.iter(W_P)):
        for mark in list(paragraph.iter(W_PROOF_ERR)):
            parent = mark.getparent()
            if parent is not None:
                parent.remove(mark)
        containers: list[etree._Element] = []
        for run in paragraph.iter(W_R):
            parent = run.getparent()
            if (
                parent is not None
                and nearest(parent, W_P) is paragraph
                and not any(parent is c for c in containers)
            ):
                containers.append(parent)
        for container in containers:
            merged += _merge_runs(container)
    if merged:
        logger.debug("Merged %d fragmented runs", merged)
    return merged


def validate_placeholders(root: etree._Element, part_name: str) -> None:
    """Reject split or malformed tokens in every paragraph under *root*."""
    for paragraph in root.iter(W_P):
        texts = paragraph_texts(paragraph)
        if not texts:
            continue

        spans: list[tuple[int, int]] = []
        pieces: list[str] = []
        offset = 0
        for t in texts:
            chunk = t.text or ""
            spans.append((offset, offset + len(chunk)))
            pieces.append(chunk)
            offset += len(chunk)
        full = "".join(pieces)

        for token in find_tokens(full):
            inside_one = any(
                start <= token.start and token.end <= end
                for start, end in spans
            )
            if not inside_one:
                raise PlaceholderSyntaxError(
                    f"the placeholder '{token.raw}' is split across "
                    "differently formatted pieces of text. Delete it and "
                    "retype it in one go, without changing bold, italic, "
                    "font or colour part-way through the placeholder.",
                    part_name=part_name,
                    token=token.raw,
                )

        stray = find_stray_delimiter(full)
        if stray is not None:
            lo = max(0, stray.start() - _CONTEXT_CHARS)
            hi = min(len(full), stray.end() + _CONTEXT_CHARS)
            context = full[lo:hi]
            raise PlaceholderSyntaxError(
                f"malformed placeholder near '{context}'. Placeholders "
                "must be typed as {{name}}, {#list} ... {/list} or "
                "{%image}, with every brace in place and the whole "
                "placeholder inside one paragraph.",
                part_name=part_name,
                token=stray.group(0),
            )

# catalog_schedule/merge/document_model.py

"""Tagged block model of a template part.

A part (or any run of sibling elements) is read as a sequence of blocks:

* :class:`LiteralBlock`     no placeholders at all
* :class:`PlaceholderBlock` scalar and/or image placeholders, no loops
* :class:`LoopBlock`        sibling units between ``{#name}`` and
  ``{/name}``, repeated once per bound item
* :class:`ContainerBlock`   an element (body, table, cell, paragraph) whose
  children hold a loop somewhere below

Every loop marker is first moved into a run of its own. Loop units are
then the runs between the markers when both sit in one paragraph,
paragraphs when the markers' paragraphs are siblings, and otherwise
rows of the same table. Units that hold nothing but the marker are
dropped from the repeated template.
"""

import copy
from dataclasses import dataclass, field

from docx.oxml.ns import qn
from lxml import etree

from catalog_schedule.errors import PlaceholderSyntaxError
from catalog_schedule.merge.run_normalizer import (
    W_P,
    W_R,
    W_RPR,
    W_T,
    XML_SPACE,
    nearest,
)
from catalog_schedule.merge.tokens import (
    LOOP_CLOSE,
    LOOP_OPEN,
    Segment,
    find_tokens,
)

W_TR = qn("w:tr")
_MEDIA_TAGS = frozenset({qn("w:drawing"), qn("w:pict"), qn("w:object")})


@dataclass
class LiteralBlock:
    element: etree._Element


@dataclass
class PlaceholderBlock:
    element: etree._Element


@dataclass
class LoopBlock:
    """A repeated block.

    ``units`` are every sibling the markers spanned (all removed after
    rendering); ``template`` is the subset cloned per item.
    """

    name: str
    units: list[etree._Element]
    template: list[etree._Element]


@dataclass
class ContainerBlock:
    element: etree._Element
    children: list["Block"] = field(default_factory=lambda: list["Block"]())


Block = LiteralBlock | PlaceholderBlock | LoopBlock | ContainerBlock


@dataclass
class _Marker:
    text_el: etree._Element
    token: Segment


@dataclass
class _LoopSpan:
    name: str
    open: _Marker
    close: _Marker
    start_unit: etree._Element
    end_unit: etree._Element


def _is_one_of(element: etree._Element, nodes: list[etree._Element]) -> bool:
    return any(element is node for node in nodes)


def _unit_ancestor(
    element: etree._Element,
    tag: str,
    roots: list[etree._Element],
) -> etree._Element | None:
    """Closest ancestor with *tag* that does not lie above *roots*."""
    current: etree._Element | None = element
    while current is not None:
        if current.tag == tag:
            return current
        if _is_one_of(current, roots):
            return None
        current = current.getparent()
    return None


def _contains(ancestor: etree._Element, element: etree._Element) -> bool:
    current: etree._Element | None = element
    while current is not None:
        if current is ancestor:
            return True
        current = current.getparent()
    return False


def _loop_tokens(text: str) -> list[Segment]:
    return [
        token for token in find_tokens(text)
        if token.kind in (LOOP_OPEN, LOOP_CLOSE)
    ]


def _is_isolated(run: etree._Element, text_el: etree._Element) -> bool:
    """True if *run* holds nothing but the one marker in *text_el*."""
    return (
        _loop_tokens(text_el.text or "")[0].raw == (text_el.text or "")
        and all(child is text_el or child.tag == W_RPR for child in run)
    )


def _split_run(
    run: etree._Element, text_el: etree._Element,
) -> list[etree._Element]:
    """Replace *run* with runs that give each marker in *text_el* its own run.

    Every new run keeps the original formatting. Returns the new runs.
    """
    rpr = run.find(W_RPR)
    before: list[etree._Element] = []
    after: list[etree._Element] = []
    seen = False
    for child in run:
        if child is text_el:
            seen = True
        elif child.tag != W_RPR:
            (after if seen else before).append(child)

    def new_run(children: list[etree._Element]) -> etree._Element:
        created = run.makeelement(W_R, {})
        if rpr is not None:
            created.append(copy.deepcopy(rpr))
        for child in children:
            created.append(child)
        return created

    def new_text(chunk: str) -> etree._Element:
        created = run.makeelement(W_T, {})
        created.text = chunk
        created.set(XML_SPACE, "preserve")
        return created

    runs: list[etree._Element] = []
    if before:
        runs.append(new_run(before))
    text = text_el.text or ""
    pos = 0
    for token in _loop_tokens(text):
        for chunk in (text[pos:token.start], token.raw):
            if chunk:
                runs.append(new_run([new_text(chunk)]))
        pos = token.end
    if pos < len(text):
        runs.append(new_run([new_text(text[pos:])]))
    if after:
        runs.append(new_run(after))

    for created in runs:
        run.addprevious(created)
    parent = run.getparent()
    if parent is not None:
        parent.remove(run)
    return runs


def _isolate_markers(nodes: list[etree._Element]) -> None:
    """Move every loop marker under *nodes* into a run of its own.

    A root in *nodes* that gets split is replaced by its new runs.
    """
    while True:
        target: tuple[etree._Element, etree._Element] | None = None
        for node in nodes:
            for t in node.iter(W_T):
                run = t.getparent()
                if (
                    run is not None
                    and run.tag == W_R
                    and _loop_tokens(t.text or "")
                    and not _is_isolated(run, t)
                ):
                    target = (run, t)
                    break
            if target is not None:
                break
        if target is None:
            return
        run, t = target
        index = next(
            (i for i, node in enumerate(nodes) if node is run), None,
        )
        runs = _split_run(run, t)
        if index is not None:
            nodes[index:index + 1] = runs


def _collect_markers(nodes: list[etree._Element]) -> list[_Marker]:
    markers: list[_Marker] = []
    for node in nodes:
        for t in node.iter(W_T):
            for token in find_tokens(t.text or ""):
                if token.kind in (LOOP_OPEN, LOOP_CLOSE):
                    markers.append(_Marker(t, token))
    return markers


def _resolve_units(
    opened: _Marker,
    closed: _Marker,
    roots: list[etree._Element],
    part_name: str,
) -> _LoopSpan:
    paragraph = nearest(opened.text_el, W_P)
    if paragraph is not None and paragraph is nearest(closed.text_el, W_P):
        start_run = opened.text_el.getparent()
        end_run = closed.text_el.getparent()
        if (
            start_run is not None
            and end_run is not None
            and start_run.getparent() is end_run.getparent()
        ):
            return _LoopSpan(
                opened.token.value, opened, closed, start_run, end_run,
            )
        raise PlaceholderSyntaxError(
            f"the loop '{opened.token.raw}' ... '{closed.token.raw}' starts "
            "and ends at different levels of one paragraph, for example "
            "one marker inside a hyperlink. Keep both markers at the same "
            "level.",
            part_name=part_name,
            token=opened.token.raw,
        )
    for tag in (W_P, W_TR):
        start = _unit_ancestor(opened.text_el, tag, roots)
        end = _unit_ancestor(closed.text_el, tag, roots)
        if (
            start is not None
            and end is not None
            and start.getparent() is end.getparent()
        ):
            return _LoopSpan(opened.token.value, opened, closed, start, end)
    raise PlaceholderSyntaxError(
        f"the loop '{opened.token.raw}' ... '{closed.token.raw}' must start "
        "and end in the same paragraph, in paragraphs next to each other, "
        "or in rows of the same table.",
        part_name=part_name,
        token=opened.token.raw,
    )


def _pair_loops(
    nodes: list[etree._Element], part_name: str,
) -> list[_LoopSpan]:
    """Pair loop markers and return the outermost spans in order."""
    stack: list[_Marker] = []
    spans: list[_LoopSpan] = []
    for marker in _collect_markers(nodes):
        if marker.token.kind == LOOP_OPEN:
            stack.append(marker)
            continue
        if not stack:
            raise PlaceholderSyntaxError(
                f"'{marker.token.raw}' closes a loop that was never opened.",
                part_name=part_name,
                token=marker.token.raw,
            )
        opened = stack.pop()
        if opened.token.value != marker.token.value:
            raise PlaceholderSyntaxError(
                f"'{marker.token.raw}' does not match the open loop "
                f"'{opened.token.raw}'.",
                part_name=part_name,
                token=marker.token.raw,
            )
        if not stack:
            spans.append(_resolve_units(opened, marker, nodes, part_name))
    if stack:
        raise PlaceholderSyntaxError(
            f"the loop '{stack[-1].token.raw}' is never closed.",
            part_name=part_name,
            token=stack[-1].token.raw,
        )
    return spans


def _strip_markers(span: _LoopSpan) -> None:
    """Remove the span's own marker text; later offsets go first."""
    markers = sorted(
        (span.open, span.close),
        key=lambda m: m.token.start,
        reverse=True,
    )
    for marker in markers:
        text = marker.text_el.text or ""
        marker.text_el.text = (
            text[:marker.token.start] + text[marker.token.end:]
        )


def _is_blank(unit: etree._Element) -> bool:
    for node in unit.iter():
        if node.tag in _MEDIA_TAGS:
            return False
        if node.tag == W_T and (node.text or "").strip():
            return False
    return True


def _has_tokens(element: etree._Element) -> bool:
    return any(find_tokens(t.text or "") for t in element.iter(W_T))


def _make_loop(span: _LoopSpan, units: list[etree._Element]) -> LoopBlock:
    _strip_markers(span)
    template = [
        unit for index, unit in enumerate(units)
        if not (index in (0, len(units) - 1) and _is_blank(unit))
    ]
    return LoopBlock(name=span.name, units=units, template=template)


def _build(
    children: list[etree._Element], spans: list[_LoopSpan],
) -> list[Block]:
    blocks: list[Block] = []
    index = 0
    while index < len(children):
        child = children[index]
        span = next((s for s in spans if s.start_unit is child), None)
        if span is not None:
            end = index
            while children[end] is not span.end_unit:
                end += 1
            blocks.append(_make_loop(span, children[index:end + 1]))
            index = end + 1
            continue

        inner = [s for s in spans if _contains(child, s.start_unit)]
        if inner:
            grandchildren = [c for c in child if isinstance(c.tag, str)]
            blocks.append(ContainerBlock(child, _build(grandchildren, inner)))
        elif _has_tokens(child):
            blocks.append(PlaceholderBlock(child))
        else:
            blocks.append(LiteralBlock(child))
        index += 1
    return blocks


def parse_blocks(
    nodes: list[etree._Element], part_name: str = "",
) -> list[Block]:
    """Read sibling *nodes* as a block sequence.

    Raises :class:`PlaceholderSyntaxError` for unbalanced or
    mismatched loop markers.
    """
    elements = [n for n in nodes if isinstance(n.tag, str)]
    _isolate_markers(elements)
    spans = _pair_loops(elements, part_name)
    return _build(elements, spans)

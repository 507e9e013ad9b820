# catalog_schedule/merge/engine.py

"""Merge a binding into a ``.docx`` template.

The engine is stateless: every :meth:`DocumentMergeEngine.render` call
loads its own copy of the template, so calls may run concurrently.
"""

import copy
import logging
from collections import ChainMap
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from io import BytesIO
from typing import Any
from zipfile import BadZipFile

from docx import Document
from docx.opc.constants import RELATIONSHIP_TYPE as RT
from docx.opc.exceptions import PackageNotFoundError
from docx.oxml import OxmlElement
from lxml import etree

from catalog_schedule.config.settings import Settings
from catalog_schedule.errors import MissingKeyError, TemplateLoadError
from catalog_schedule.merge.document_model import (
    Block,
    ContainerBlock,
    LoopBlock,
    PlaceholderBlock,
    parse_blocks,
)
from catalog_schedule.merge.images import build_drawing, decode_image_payload
from catalog_schedule.merge.run_normalizer import (
    W_T,
    XML_SPACE,
    normalize_runs,
    validate_placeholders,
)
from catalog_schedule.merge.tokens import IMAGE, SCALAR, TEXT, tokenize

logger = logging.getLogger("catalog_schedule.merge")

_MISSING = object()
_STORY_RELTYPES = frozenset({RT.HEADER, RT.FOOTER})


@dataclass
class _RenderContext:
    """Per-part state threaded through one render."""

    part: Any
    part_name: str
    strict: bool
    image_size_px: tuple[int, int]
    images_embedded: int = 0
    images_skipped: int = 0


def _lookup(scope: Mapping[str, Any], key: str) -> Any:
    """Resolve *key* in *scope*; dotted keys walk nested mappings."""
    if key in scope:
        return scope[key]
    if "." in key and key != ".":
        current: Any = scope
        for piece in key.split("."):
            if isinstance(current, Mapping) and piece in current:
                current = current[piece]
            else:
                return _MISSING
        return current
    return _MISSING


def _to_text(value: Any) -> str:
    if value is None or value is _MISSING:
        return ""
    return str(value)


def _text_nodes(text: str) -> list[etree._Element]:
    """``w:t`` nodes for *text*, with ``w:br`` at each newline."""
    nodes: list[etree._Element] = []
    for index, line in enumerate(text.split("\n")):
        if index:
            nodes.append(OxmlElement("w:br"))
        if line:
            t = OxmlElement("w:t")
            t.text = line
            t.set(XML_SPACE, "preserve")
            nodes.append(t)
    return nodes


def _loop_items(value: Any) -> list[Any]:
    if value is _MISSING or value is None or value is False:
        return []
    if value is True:
        return [{}]
    if isinstance(value, Mapping):
        return [value]
    if isinstance(value, (str, bytes)):
        return [value] if value else []
    if isinstance(value, Iterable):
        return list(value)
    return [value]


class DocumentMergeEngine:
    """Renders ``{{key}}``, ``{#list}...{/list}`` and ``{%image}`` tokens.

    Missing keys render empty unless *strict* is set, in which case
    :class:`MissingKeyError` is raised.
    """

    def __init__(
        self,
        image_size_px: tuple[int, int] | None = None,
        strict: bool = False,
    ) -> None:
        self.image_size_px = image_size_px or Settings.IMAGE_SIZE_PX
        self.strict = strict

    # ── Public API ───────────────────────────────────────

    def render(
        self,
        template_bytes: bytes,
        binding: Mapping[str, Any],
    ) -> bytes:
        """Return the merged document as ``.docx`` bytes."""
        document = self._load(template_bytes)

        embedded = 0
        skipped = 0
        for part in self._story_parts(document):
            ctx = _RenderContext(
                part=part,
                part_name=str(part.partname),
                strict=self.strict,
                image_size_px=self.image_size_px,
            )
            self._render_part(ctx, binding)
            embedded += ctx.images_embedded
            skipped += ctx.images_skipped

        out = BytesIO()
        document.save(out)
        content = out.getvalue()
        logger.info(
            "Rendered document: %d bytes, %d images embedded, "
            "%d image slots left empty",
            len(content),
            embedded,
            skipped,
        )
        return content

    # ── Loading ──────────────────────────────────────────

    @staticmethod
    def _load(template_bytes: bytes) -> Any:
        if not isinstance(template_bytes, (bytes, bytearray)):
            raise TemplateLoadError(
                f"Template must be bytes, got {type(template_bytes).__name__}"
            )
        if not template_bytes:
            raise TemplateLoadError("Template is empty")
        try:
            return Document(BytesIO(bytes(template_bytes)))
        except (
            BadZipFile,
            PackageNotFoundError,
            KeyError,
            ValueError,
            etree.LxmlError,
        ) as exc:
            raise TemplateLoadError(
                f"Template is not a readable Word document: {exc}"
            ) from exc

    @staticmethod
    def _story_parts(document: Any) -> list[Any]:
        """The main document part plus its header and footer parts."""
        main = document.part
        parts: list[Any] = [main]
        for rel in main.rels.values():
            if rel.is_external or rel.reltype not in _STORY_RELTYPES:
                continue
            parts.append(rel.target_part)
        return parts

    # ── Rendering ────────────────────────────────────────

    def _render_part(
        self, ctx: _RenderContext, binding: Mapping[str, Any],
    ) -> None:
        root = ctx.part.element
        normalize_runs(root)
        validate_placeholders(root, ctx.part_name)
        blocks = parse_blocks([root], ctx.part_name)
        self._render_blocks(blocks, binding, ctx)

    def _render_blocks(
        self,
        blocks: list[Block],
        scope: Mapping[str, Any],
        ctx: _RenderContext,
    ) -> None:
        for block in blocks:
            if isinstance(block, PlaceholderBlock):
                self._substitute(block.element, scope, ctx)
            elif isinstance(block, ContainerBlock):
                self._render_blocks(block.children, scope, ctx)
            elif isinstance(block, LoopBlock):
                self._render_loop(block, scope, ctx)

    def _render_loop(
        self,
        block: LoopBlock,
        scope: Mapping[str, Any],
        ctx: _RenderContext,
    ) -> None:
        value = self._resolve(block.name, scope, ctx)
        items = _loop_items(value)
        anchor = block.units[0]

        for item in items:
            clones = [copy.deepcopy(unit) for unit in block.template]
            for clone in clones:
                anchor.addprevious(clone)
            item_scope: Mapping[str, Any] = (
                item if isinstance(item, Mapping) else {".": item}
            )
            self._render_blocks(
                parse_blocks(clones, ctx.part_name),
                ChainMap(dict(item_scope), scope),
                ctx,
            )

        for unit in block.units:
            parent = unit.getparent()
            if parent is not None:
                parent.remove(unit)
        logger.debug(
            "Loop '%s' in %s rendered %d times",
            block.name,
            ctx.part_name,
            len(items),
        )

    def _resolve(
        self, key: str, scope: Mapping[str, Any], ctx: _RenderContext,
    ) -> Any:
        value = _lookup(scope, key)
        if value is _MISSING:
            if ctx.strict:
                raise MissingKeyError(key, ctx.part_name)
            logger.debug(
                "No value for '%s' in %s; rendering empty",
                key,
                ctx.part_name,
            )
        return value

    def _substitute(
        self,
        element: etree._Element,
        scope: Mapping[str, Any],
        ctx: _RenderContext,
    ) -> None:
        for t in list(element.iter(W_T)):
            segments = tokenize(t.text or "")
            if all(s.kind == TEXT for s in segments):
                continue

            pieces: list[str | etree._Element] = []
            buffer = ""
            for segment in segments:
                if segment.kind == SCALAR:
                    buffer += _to_text(self._resolve(segment.value, scope, ctx))
                elif segment.kind == IMAGE:
                    drawing = self._image(segment.value, scope, ctx)
                    if drawing is not None:
                        pieces.append(buffer)
                        pieces.append(drawing)
                        buffer = ""
                else:
                    buffer += segment.raw
            pieces.append(buffer)

            if len(pieces) == 1 and "\n" not in buffer:
                t.text = buffer
                t.set(XML_SPACE, "preserve")
                continue

            for piece in pieces:
                nodes = _text_nodes(piece) if isinstance(piece, str) else [piece]
                for node in nodes:
                    t.addprevious(node)
            parent = t.getparent()
            if parent is not None:
                parent.remove(t)

    def _image(
        self, key: str, scope: Mapping[str, Any], ctx: _RenderContext,
    ) -> etree._Element | None:
        data = decode_image_payload(self._resolve(key, scope, ctx))
        drawing = (
            build_drawing(ctx.part, data, ctx.image_size_px)
            if data is not None
            else None
        )
        if drawing is None:
            ctx.images_skipped += 1
        else:
            ctx.images_embedded += 1
        return drawing


def render(
    template_bytes: bytes,
    binding: Mapping[str, Any],
    *,
    strict: bool = False,
) -> bytes:
    """Render *binding* into *template_bytes* with default settings."""
    return DocumentMergeEngine(strict=strict).render(template_bytes, binding)

"""
Block Reconstructor
===================
Deterministic single-pass classifier that rebuilds ordered content blocks
(paragraphs, tables, images) from a parsed document's paragraph stream.

Each section is walked with a paragraph cursor. At every position the
paragraph, plus a short lookahead, is classified into exactly one step:

    EXPLICIT_TABLE   paragraph carries a table descriptor; the next N
                     paragraphs are its cells
    ANCHORED_IMAGE   blank paragraph followed by a caption paragraph
    INFERRED_TABLE   blank paragraph followed by 2+ non-blank paragraphs
    EMPTY_PARAGRAPH  blank paragraph with nothing special after it
    CAPTION_IMAGE    caption paragraph without a preceding blank
    TEXT             anything else

Steps tile the section: every paragraph is covered by exactly one step.
Embedded assets are consumed in document order through a cursor shared by
all sections; whatever is left at the end is appended as unanchored images.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import NamedTuple, Optional

from .context import ReconstructionContext, RichOptions
from .contracts import CAPTION_MARKER
from .images import ImageMaterializer
from .models import (
    BinaryAsset,
    ContentBlock,
    Document,
    ImageBlock,
    Paragraph,
    ParagraphBlock,
    TableBlock,
)
from .tables import build_declared_grid, fill_row_major, infer_table_dims

logger = logging.getLogger(__name__)

UNANCHORED = "unanchored"


class StepKind(Enum):
    """Classification of the paragraph under the cursor."""
    EXPLICIT_TABLE = "explicit_table"
    ANCHORED_IMAGE = "anchored_image"
    INFERRED_TABLE = "inferred_table"
    EMPTY_PARAGRAPH = "empty_paragraph"
    CAPTION_IMAGE = "caption_image"
    TEXT = "text"


class Step(NamedTuple):
    """
    One classified step of the walk.

    ``index`` is the paragraph the block is attributed to; the step covers
    paragraphs ``index`` up to (not including) ``next_index``. For inferred
    tables ``run_end`` is the first paragraph after the cell run.
    """
    kind: StepKind
    index: int
    next_index: int
    run_end: int = 0


# ─── Classification ───────────────────────────────────────────────────────────


def caption_of(paragraph: Paragraph) -> Optional[str]:
    """Caption text after the marker, or ``None`` if this is no caption."""
    if paragraph.table is not None:
        return None
    stripped = paragraph.text.strip()
    if not stripped.startswith(CAPTION_MARKER):
        return None
    return stripped[len(CAPTION_MARKER):].strip()


def _is_caption(paragraphs: list[Paragraph], index: int) -> bool:
    return index < len(paragraphs) and caption_of(paragraphs[index]) is not None


def _is_plain_blank(paragraph: Paragraph) -> bool:
    return paragraph.table is None and paragraph.is_blank


def _text_run_end(paragraphs: list[Paragraph], start: int) -> int:
    """First index at or after ``start`` that is blank or a table."""
    j = start
    while j < len(paragraphs):
        p = paragraphs[j]
        if p.table is not None or p.is_blank:
            break
        j += 1
    return j


def classify(paragraphs: list[Paragraph], i: int) -> Step:
    """Classify the paragraph at ``i`` using the paragraphs after it."""
    paragraph = paragraphs[i]

    if paragraph.table is not None:
        cell_count = len(paragraph.table.cells)
        return Step(StepKind.EXPLICIT_TABLE, i, i + 1 + cell_count)

    if paragraph.is_blank:
        if _is_caption(paragraphs, i + 1):
            return Step(StepKind.ANCHORED_IMAGE, i, i + 2)

        run_end = _text_run_end(paragraphs, i + 1)
        if run_end - (i + 1) >= 2:
            next_index = run_end
            # A trailing blank closes the run, unless it anchors a caption.
            if (
                run_end < len(paragraphs)
                and _is_plain_blank(paragraphs[run_end])
                and not _is_caption(paragraphs, run_end + 1)
            ):
                next_index = run_end + 1
            return Step(StepKind.INFERRED_TABLE, i, next_index, run_end)

        return Step(StepKind.EMPTY_PARAGRAPH, i, i + 1)

    if caption_of(paragraph) is not None:
        return Step(StepKind.CAPTION_IMAGE, i, i + 1)

    return Step(StepKind.TEXT, i, i + 1)


def plan_section(paragraphs: list[Paragraph]) -> list[Step]:
    """Walk a section and return the steps that cover it, in order."""
    steps: list[Step] = []
    i = 0
    while i < len(paragraphs):
        step = classify(paragraphs, i)
        steps.append(step)
        i = step.next_index
    return steps


# ─── Reconstruction ───────────────────────────────────────────────────────────


class BlockReconstructor:
    """
    Emits content blocks for a document under one call's context.

    The context's asset cursor, inline byte counter and warnings are
    mutated as blocks are produced; a ``ToolError`` raised by the image
    materializer aborts the whole reconstruction.
    """

    def __init__(self, context: ReconstructionContext):
        self.context = context
        self.images = ImageMaterializer(context)
        self._emitters = {
            StepKind.EXPLICIT_TABLE: self._explicit_table,
            StepKind.ANCHORED_IMAGE: self._anchored_image,
            StepKind.INFERRED_TABLE: self._inferred_table,
            StepKind.EMPTY_PARAGRAPH: self._empty_paragraph,
            StepKind.CAPTION_IMAGE: self._caption_image,
            StepKind.TEXT: self._text,
        }

    def reconstruct(self, document: Document) -> list[ContentBlock]:
        logger.info(
            f"Reconstructing {len(document.sections)} sections, "
            f"{document.paragraph_count} paragraphs, "
            f"{len(document.assets)} assets"
        )

        blocks: list[ContentBlock] = []
        for section_index, section in enumerate(document.sections):
            paragraphs = section.paragraphs
            for step in plan_section(paragraphs):
                emit = self._emitters[step.kind]
                blocks.append(
                    emit(step, section_index, paragraphs, document.assets)
                )

        for asset in self.context.pending_assets(document.assets):
            block = self.images.materialize(asset, None, None)
            block.placement = UNANCHORED
            blocks.append(block)

        logger.info(
            f"Reconstructed {len(blocks)} blocks "
            f"({len(self.context.warnings)} warnings)"
        )
        return blocks

    # ─── Emitters ─────────────────────────────────────────────────────────

    def _explicit_table(self, step, section_index, paragraphs, assets):
        descriptor = paragraphs[step.index].table
        cell_count = len(descriptor.cells)
        start = step.index + 1

        cell_texts = [p.text for p in paragraphs[start:start + cell_count]]
        if len(cell_texts) < cell_count:
            self.context.warn(
                f"table at section {section_index} paragraph {step.index}: "
                f"expected {cell_count} cell paragraphs but only "
                f"{len(cell_texts)} remain"
            )
            cell_texts.extend([""] * (cell_count - len(cell_texts)))

        grid, spans = build_declared_grid(descriptor, cell_texts)
        return TableBlock(
            section_index=section_index,
            paragraph_index=step.index,
            rows=grid,
            spans=spans,
            inferred=False,
            cells_count=cell_count,
        )

    def _inferred_table(self, step, section_index, paragraphs, assets):
        cells = [p.text.strip() for p in paragraphs[step.index + 1:step.run_end]]
        rows, cols = infer_table_dims(len(cells))
        return TableBlock(
            section_index=section_index,
            paragraph_index=step.index,
            rows=fill_row_major(cells, rows, cols),
            inferred=True,
            cells_count=len(cells),
        )

    def _anchored_image(self, step, section_index, paragraphs, assets):
        caption = caption_of(paragraphs[step.index + 1])
        return self._anchor(section_index, step.index, caption, assets)

    def _caption_image(self, step, section_index, paragraphs, assets):
        caption = caption_of(paragraphs[step.index])
        return self._anchor(section_index, step.index, caption, assets)

    def _anchor(
        self,
        section_index: int,
        paragraph_index: int,
        caption: Optional[str],
        assets: list[BinaryAsset],
    ) -> ImageBlock:
        asset = self.context.next_asset(assets)
        if asset is None:
            return self.images.missing(section_index, paragraph_index, caption)
        return self.images.materialize(
            asset, section_index, paragraph_index, caption
        )

    def _empty_paragraph(self, step, section_index, paragraphs, assets):
        return ParagraphBlock(
            section_index=section_index,
            paragraph_index=step.index,
            text="",
        )

    def _text(self, step, section_index, paragraphs, assets):
        return ParagraphBlock(
            section_index=section_index,
            paragraph_index=step.index,
            text=paragraphs[step.index].text.rstrip("\r\n"),
        )


def reconstruct_document(
    document: Document,
    options: Optional[RichOptions] = None,
    warnings: Optional[list[str]] = None,
) -> tuple[list[ContentBlock], list[str]]:
    """
    Reconstruct ``document`` with a fresh per-call context.

    ``warnings`` seeds the context (reader warnings come first).

    Returns:
        The block list and the warnings recorded along the way.

    Raises:
        ToolError: When the call must fail as a whole (inline budget
            exceeded, unknown image mode, resource write failure).
    """
    context = ReconstructionContext(
        options=options or RichOptions(),
        warnings=list(warnings or []),
    )
    blocks = BlockReconstructor(context).reconstruct(document)
    return blocks, context.warnings

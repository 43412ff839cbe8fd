"""
Document Tools
==============
The tool operations exposed to clients. Each tool takes the raw argument
mapping and the engine configuration, and returns a success envelope or
raises ``ToolError`` for the engine to turn into a failure envelope.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Optional

from .context import RichOptions, parse_image_mode
from .contracts import (
    TOOL_EXTRACT_RICH,
    TOOL_EXTRACT_TEXT,
    TOOL_INSPECT_METADATA,
    TOOL_SUMMARIZE_STRUCTURE,
)
from .document_loader import parse_document
from .errors import ToolError
from .models import ParsedDocument, RichExtraction, ToolResult
from .payload import InputPayload, load_input
from .reconstruct import reconstruct_document
from .results import success_result

if TYPE_CHECKING:
    from .engine import ToolConfig

logger = logging.getLogger(__name__)

DEFAULT_PREVIEW_CHARS = 120


# ─── Argument Helpers ─────────────────────────────────────────────────────────


def _bool_arg(args: dict, name: str, default: bool) -> bool:
    value = args.get(name)
    return value if isinstance(value, bool) else default


def _uint_arg(args: dict, name: str) -> Optional[int]:
    """Non-negative integer argument, or ``None`` when absent or mistyped."""
    value = args.get(name)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        return None
    return value


def _str_arg(args: dict, name: str) -> Optional[str]:
    value = args.get(name)
    return value if isinstance(value, str) else None


def load_document(args: dict) -> tuple[InputPayload, ParsedDocument]:
    """Resolve the input arguments and parse the document they name."""
    payload = load_input(args)
    try:
        parsed = parse_document(payload.data, payload.format)
    except ToolError as e:
        raise e.with_source(payload.source)
    return payload, parsed


# ─── Text ─────────────────────────────────────────────────────────────────────


def normalize_text(
    text: str,
    include_newlines: bool = True,
    normalize_whitespace: bool = False,
) -> str:
    output = text.replace("\r\n", "\n").replace("\r", "\n")

    if not include_newlines:
        output = output.replace("\n", " ")

    if normalize_whitespace:
        if include_newlines:
            output = "\n".join(
                " ".join(line.split()) for line in output.splitlines()
            )
        else:
            output = " ".join(output.split())

    return output


def apply_max_chars(text: str, max_chars: Optional[int]) -> str:
    if max_chars is None:
        return text
    return text[:max_chars]


def extract_text(args: dict, config: "ToolConfig") -> ToolResult:
    """Plain text of every paragraph, optionally normalized and truncated."""
    _, parsed = load_document(args)

    include_newlines = _bool_arg(args, "include_newlines", True)
    normalize_whitespace = _bool_arg(args, "normalize_whitespace", False)
    max_chars = _uint_arg(args, "max_chars")

    text = normalize_text(
        parsed.document.extract_text(), include_newlines, normalize_whitespace
    )
    text = apply_max_chars(text, max_chars)
    return success_result(text, {"text": text}, parsed.warnings)


# ─── Metadata & Structure ─────────────────────────────────────────────────────


def inspect_metadata(args: dict, config: "ToolConfig") -> ToolResult:
    _, parsed = load_document(args)
    document = parsed.document

    sections = len(document.sections)
    paragraphs = document.paragraph_count
    structured = {
        "format": parsed.format.value,
        "sections": sections,
        "paragraphs": paragraphs,
        "encrypted": document.header.encrypted,
        "compressed": document.header.compressed,
        "version": document.header.version,
    }
    return success_result(
        f"sections: {sections}, paragraphs: {paragraphs}",
        structured,
        parsed.warnings,
    )


def summarize_structure(args: dict, config: "ToolConfig") -> ToolResult:
    """Per-section paragraph previews, limited by section / paragraph counts."""
    _, parsed = load_document(args)

    max_sections = _uint_arg(args, "max_sections")
    max_paragraphs = _uint_arg(args, "max_paragraphs_per_section")
    preview_chars = _uint_arg(args, "preview_chars")
    if preview_chars is None:
        preview_chars = DEFAULT_PREVIEW_CHARS

    sections_out = []
    paragraph_count = 0
    for section_index, section in enumerate(parsed.document.sections):
        if max_sections is not None and section_index >= max_sections:
            break

        paragraphs_out = []
        for paragraph_index, paragraph in enumerate(section.paragraphs):
            if max_paragraphs is not None and paragraph_index >= max_paragraphs:
                break
            paragraphs_out.append({
                "index": paragraph_index,
                "char_count": len(paragraph.text),
                "preview": paragraph.text[:preview_chars],
            })
            paragraph_count += 1

        sections_out.append({
            "index": section_index,
            "paragraphs": paragraphs_out,
        })

    summary = (
        f"sections: {len(sections_out)}, paragraphs: {paragraph_count} "
        f"(preview_chars={preview_chars})"
    )
    return success_result(
        summary,
        {"format": parsed.format.value, "sections": sections_out},
        parsed.warnings,
    )


# ─── Rich Extraction ──────────────────────────────────────────────────────────


def extract_rich(args: dict, config: "ToolConfig") -> ToolResult:
    """
    Ordered paragraphs, tables and images.

    The image mode is validated before the document is parsed; an inline
    budget breach fails the whole call and no blocks are returned.
    """
    payload = load_input(args)

    images_value = args.get("images")
    if not isinstance(images_value, str):
        images_value = config.default_images
    try:
        images = parse_image_mode(images_value)
    except ToolError as e:
        raise e.with_source(payload.source)

    options = RichOptions(
        images=images,
        max_image_bytes=_uint_arg(args, "max_image_bytes") or 0,
        output_path=_str_arg(args, "output_path") or config.resource_dir,
        source=payload.source,
    )

    try:
        parsed = parse_document(payload.data, payload.format)
    except ToolError as e:
        raise e.with_source(payload.source)

    blocks, warnings = reconstruct_document(
        parsed.document, options, parsed.warnings
    )

    extraction = RichExtraction(
        format=parsed.format,
        blocks=blocks,
        warnings=warnings,
    )
    return success_result(f"extracted {len(blocks)} blocks", extraction)


TOOLS: dict[str, Callable[[dict, "ToolConfig"], ToolResult]] = {
    TOOL_EXTRACT_TEXT: extract_text,
    TOOL_INSPECT_METADATA: inspect_metadata,
    TOOL_SUMMARIZE_STRUCTURE: summarize_structure,
    TOOL_EXTRACT_RICH: extract_rich,
}

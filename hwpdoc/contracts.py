"""
Tool Contracts
==============
Tool names, protocol limits, and the JSON input schemas published to
clients in ``tools/list``.
"""

from __future__ import annotations

TOOL_EXTRACT_TEXT = "hwp.extract_text"
TOOL_INSPECT_METADATA = "hwp.inspect_metadata"
TOOL_SUMMARIZE_STRUCTURE = "hwp.summarize_structure"
TOOL_EXTRACT_RICH = "hwp.extract_rich"

MAX_INPUT_BYTES = 50 * 1024 * 1024
MAX_OUTPUT_BYTES = 20 * 1024 * 1024

PROTOCOL_VERSION = "2025-11-25"

# Literal prefix that marks a paragraph as an image caption ("figure:").
CAPTION_MARKER = "그림:"

FORMAT_VALUES = ["auto", "hwp", "hwpx"]
IMAGE_MODE_VALUES = ["none", "metadata", "inline", "resource"]


def _input_properties() -> dict:
    return {
        "path": {"type": "string"},
        "base64": {"type": "string"},
        "format": {"type": "string", "enum": list(FORMAT_VALUES)},
    }


def _document_schema(extra: dict) -> dict:
    properties = _input_properties()
    properties.update(extra)
    return {
        "type": "object",
        "properties": properties,
        "oneOf": [
            {"required": ["path"]},
            {"required": ["base64"]},
        ],
        "additionalProperties": False,
    }


def extract_text_schema() -> dict:
    return _document_schema({
        "max_chars": {"type": "integer", "minimum": 0},
        "include_newlines": {"type": "boolean"},
        "normalize_whitespace": {"type": "boolean"},
    })


def inspect_metadata_schema() -> dict:
    return _document_schema({})


def summarize_structure_schema() -> dict:
    return _document_schema({
        "max_sections": {"type": "integer", "minimum": 0},
        "max_paragraphs_per_section": {"type": "integer", "minimum": 0},
        "preview_chars": {"type": "integer", "minimum": 0},
    })


def extract_rich_schema() -> dict:
    return _document_schema({
        "images": {"type": "string", "enum": list(IMAGE_MODE_VALUES)},
        "max_image_bytes": {"type": "integer", "minimum": 0},
        "output_path": {"type": "string"},
    })


def tool_definitions() -> list[dict]:
    """Tool descriptors in ``tools/list`` order."""
    return [
        {
            "name": TOOL_EXTRACT_TEXT,
            "description": "Extract plain text from HWP documents.",
            "inputSchema": extract_text_schema(),
        },
        {
            "name": TOOL_INSPECT_METADATA,
            "description": "Inspect metadata from HWP documents.",
            "inputSchema": inspect_metadata_schema(),
        },
        {
            "name": TOOL_SUMMARIZE_STRUCTURE,
            "description": "Summarize document structure for HWP documents.",
            "inputSchema": summarize_structure_schema(),
        },
        {
            "name": TOOL_EXTRACT_RICH,
            "description": (
                "Extract ordered paragraphs, tables and images "
                "from HWP documents."
            ),
            "inputSchema": extract_rich_schema(),
        },
    ]

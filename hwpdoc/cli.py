"""
CLI Interface
=============
Command-line interface for the HWP document tools.

Usage:
    python -m hwpdoc extract-text --path report.hwp [--json]
    python -m hwpdoc inspect-metadata --path report.hwpx
    python -m hwpdoc summarize-structure --path report.hwp --preview-chars 40
    python -m hwpdoc extract-rich --path report.hwpx --images resource
    python -m hwpdoc tools
    python -m hwpdoc serve [--stdio]
"""

from __future__ import annotations

import json
import sys

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .contracts import (
    FORMAT_VALUES,
    IMAGE_MODE_VALUES,
    TOOL_EXTRACT_RICH,
    TOOL_EXTRACT_TEXT,
    TOOL_INSPECT_METADATA,
    TOOL_SUMMARIZE_STRUCTURE,
)
from .engine import ToolConfig, ToolEngine

console = Console()
err_console = Console(stderr=True)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


@click.group()
@click.version_option(version=__version__, prog_name="hwpdoc")
def cli():
    """HWP / HWPX document tools: text, metadata, structure, rich content."""
    pass


_INPUT_OPTIONS = [
    click.option("--path", default=None, help="Path to the HWP/HWPX file"),
    click.option("--base64", "base64_data", default=None,
                 help="Base64-encoded HWP/HWPX bytes"),
    click.option("--format", "fmt", default=None,
                 type=click.Choice(FORMAT_VALUES),
                 help="Input format override"),
    click.option("--json", "json_output", is_flag=True, default=False,
                 help="Print structuredContent as JSON"),
    click.option("--log-level", default="WARNING",
                 type=click.Choice(LOG_LEVELS), help="Logging level"),
    click.option("--log-file", default=None, help="Path to log file"),
]


def input_options(func):
    """Options shared by every document command."""
    for option in reversed(_INPUT_OPTIONS):
        func = option(func)
    return func


def _input_arguments(path, base64_data, fmt) -> dict:
    arguments = {}
    if path is not None:
        arguments["path"] = path
    if base64_data is not None:
        arguments["base64"] = base64_data
    if fmt is not None:
        arguments["format"] = fmt
    return arguments


def _run(
    tool: str,
    arguments: dict,
    json_output: bool,
    log_level: str,
    log_file,
    display=None,
):
    """Run a tool, print its output, and exit 1 on failure."""
    if json_output:
        # Suppress console logging for JSON mode
        log_level = "ERROR"

    engine = ToolEngine(ToolConfig(log_level=log_level, log_file=log_file))
    result = engine.call(tool, arguments)

    if result.is_error:
        message = result.structured_content.get("error", {}).get(
            "message", "tool error"
        )
        err_console.print(f"[red]Error:[/] {escape(message)}")
        sys.exit(1)

    if json_output:
        click.echo(json.dumps(
            result.structured_content, indent=2, ensure_ascii=False
        ))
    elif display is not None:
        display(result)
    else:
        click.echo(result.summary)


# ─── Document Commands ────────────────────────────────────────────────────────


@cli.command("extract-text")
@input_options
@click.option("--max-chars", default=None, type=click.IntRange(min=0),
              help="Maximum characters to return")
@click.option("--include-newlines/--no-include-newlines", default=None,
              help="Preserve newline characters (default: preserve)")
@click.option("--normalize-whitespace/--no-normalize-whitespace",
              default=None, help="Collapse runs of whitespace")
def extract_text(
    path, base64_data, fmt, json_output, log_level, log_file,
    max_chars, include_newlines, normalize_whitespace,
):
    """Extract plain text from an HWP/HWPX document."""
    arguments = _input_arguments(path, base64_data, fmt)
    if max_chars is not None:
        arguments["max_chars"] = max_chars
    if include_newlines is not None:
        arguments["include_newlines"] = include_newlines
    if normalize_whitespace is not None:
        arguments["normalize_whitespace"] = normalize_whitespace

    _run(TOOL_EXTRACT_TEXT, arguments, json_output, log_level, log_file)


@cli.command("inspect-metadata")
@input_options
def inspect_metadata(path, base64_data, fmt, json_output, log_level, log_file):
    """Inspect document metadata."""
    arguments = _input_arguments(path, base64_data, fmt)
    _run(
        TOOL_INSPECT_METADATA, arguments, json_output, log_level, log_file,
        display=_display_metadata,
    )


@cli.command("summarize-structure")
@input_options
@click.option("--max-sections", default=None, type=click.IntRange(min=0),
              help="Maximum sections to return")
@click.option("--max-paragraphs-per-section", default=None,
              type=click.IntRange(min=0),
              help="Maximum paragraphs per section")
@click.option("--preview-chars", default=None, type=click.IntRange(min=0),
              help="Preview character length (default 120)")
def summarize_structure(
    path, base64_data, fmt, json_output, log_level, log_file,
    max_sections, max_paragraphs_per_section, preview_chars,
):
    """Summarize sections and paragraph previews."""
    arguments = _input_arguments(path, base64_data, fmt)
    if max_sections is not None:
        arguments["max_sections"] = max_sections
    if max_paragraphs_per_section is not None:
        arguments["max_paragraphs_per_section"] = max_paragraphs_per_section
    if preview_chars is not None:
        arguments["preview_chars"] = preview_chars

    _run(
        TOOL_SUMMARIZE_STRUCTURE, arguments, json_output, log_level, log_file,
        display=_display_structure,
    )


@cli.command("extract-rich")
@input_options
@click.option("--images", default=None, type=click.Choice(IMAGE_MODE_VALUES),
              help="Image mode (default: metadata)")
@click.option("--max-image-bytes", default=None, type=click.IntRange(min=0),
              help="Per-image inline cap; larger images fall back to metadata")
@click.option("--output-path", default=None,
              help="Directory for images written in resource mode")
def extract_rich(
    path, base64_data, fmt, json_output, log_level, log_file,
    images, max_image_bytes, output_path,
):
    """Extract ordered paragraphs, tables and images."""
    arguments = _input_arguments(path, base64_data, fmt)
    if images is not None:
        arguments["images"] = images
    if max_image_bytes is not None:
        arguments["max_image_bytes"] = max_image_bytes
    if output_path is not None:
        arguments["output_path"] = output_path

    _run(
        TOOL_EXTRACT_RICH, arguments, json_output, log_level, log_file,
        display=_display_blocks,
    )


# ─── Service Commands ─────────────────────────────────────────────────────────


@cli.command()
def tools():
    """List the available tools."""
    table = Table(title="Tools", border_style="cyan")
    table.add_column("Name", style="bold", no_wrap=True)
    table.add_column("Description")
    for tool in ToolEngine(ToolConfig(log_level="WARNING")).list_tools():
        table.add_row(tool["name"], tool["description"])
    console.print(table)


@cli.command()
@click.option("--stdio", is_flag=True, default=False,
              help="Serve MCP over stdin/stdout")
@click.option("--host", default="127.0.0.1", help="Server host")
@click.option("--port", default=5000, type=int, help="Server port")
@click.option("--debug", is_flag=True, default=False, help="Debug mode")
@click.option("--log-level", default="INFO",
              type=click.Choice(LOG_LEVELS), help="Logging level")
@click.option("--log-file", default=None, help="Path to log file")
@click.option("--resource-dir", default=None,
              help="Default directory for resource-mode images")
def serve(stdio, host, port, debug, log_level, log_file, resource_dir):
    """Start the stdio MCP server or the HTTP service."""
    if stdio:
        from .rpc import serve_stdio

        engine = ToolEngine(ToolConfig(
            log_level=log_level,
            log_file=log_file,
            resource_dir=resource_dir,
        ))
        serve_stdio(engine)
        return

    from .server import run_server

    console.print()
    console.print(
        Panel.fit(
            f"[bold cyan]HWP Document Tools v{__version__}[/]\n"
            f"[dim]Starting on {host}:{port}[/]",
            border_style="cyan",
        )
    )
    console.print()

    run_server(host=host, port=port, debug=debug, config={
        "HWPDOC_LOG_LEVEL": log_level,
        "HWPDOC_LOG_FILE": log_file,
        "HWPDOC_RESOURCE_DIR": resource_dir,
    })


# ─── Display Helpers ──────────────────────────────────────────────────────────


def _display_warnings(warnings: list):
    for warning in warnings:
        console.print(f"[yellow]warning:[/] {escape(warning)}")


def _display_metadata(result):
    data = result.structured_content

    table = Table(title="Document Metadata", border_style="cyan")
    table.add_column("Property", style="bold")
    table.add_column("Value")
    table.add_row("Format", str(data.get("format", "")))
    table.add_row("Version", str(data.get("version") or "(unknown)"))
    table.add_row("Sections", str(data.get("sections", 0)))
    table.add_row("Paragraphs", str(data.get("paragraphs", 0)))
    table.add_row("Compressed", "yes" if data.get("compressed") else "no")
    table.add_row("Encrypted", "yes" if data.get("encrypted") else "no")

    console.print(table)
    _display_warnings(data.get("warnings", []))


def _display_structure(result):
    data = result.structured_content

    console.print(Panel.fit(escape(result.summary), border_style="cyan"))
    for section in data.get("sections", []):
        table = Table(
            title=f"Section {section['index']}", border_style="cyan"
        )
        table.add_column("#", justify="right")
        table.add_column("Chars", justify="right")
        table.add_column("Preview")
        for paragraph in section["paragraphs"]:
            table.add_row(
                str(paragraph["index"]),
                str(paragraph["char_count"]),
                escape(paragraph["preview"]),
            )
        console.print(table)
    _display_warnings(data.get("warnings", []))


def _describe_block(block: dict) -> str:
    if block["type"] == "paragraph":
        return block["text"]
    if block["type"] == "table":
        rows = block.get("rows", [])
        cols = len(rows[0]) if rows else 0
        kind = "inferred" if block.get("inferred") else "declared"
        return f"{len(rows)}x{cols} {kind} table, {block['cells_count']} cells"

    parts = []
    if block.get("caption"):
        parts.append(block["caption"])
    if block.get("mimeType"):
        parts.append(block["mimeType"])
    if block.get("bytes_len") is not None:
        parts.append(f"{block['bytes_len']} bytes")
    payload = block.get("payload") or {}
    if payload.get("kind") == "resource":
        parts.append(payload["path"])
    if block.get("note"):
        parts.append(block["note"])
    return ", ".join(parts)


def _display_blocks(result):
    data = result.structured_content

    table = Table(title=escape(result.summary), border_style="cyan")
    table.add_column("Type", style="bold")
    table.add_column("Sec", justify="right")
    table.add_column("Para", justify="right")
    table.add_column("Content")
    for block in data.get("blocks", []):
        section = block.get("section_index")
        paragraph = block.get("paragraph_index")
        table.add_row(
            block["type"],
            "-" if section is None else str(section),
            "-" if paragraph is None else str(paragraph),
            escape(_describe_block(block)),
        )

    console.print(table)
    _display_warnings(data.get("warnings", []))

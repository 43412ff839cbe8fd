"""
Result Assembler
================
Builds the success and failure envelopes every tool returns.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from .errors import ErrorKind, ToolError
from .models import ErrorDetail, TextContent, ToolResult


def success_result(
    summary: str,
    payload: dict | BaseModel,
    warnings: Optional[list[str]] = None,
) -> ToolResult:
    """
    Wrap a structured payload in a success envelope.

    ``warnings`` is merged into the payload, so callers that already carry
    warnings on their model can leave it unset.
    """
    if isinstance(payload, BaseModel):
        structured = payload.model_dump(by_alias=True, mode="json")
    else:
        structured = dict(payload)
    if warnings is not None:
        structured["warnings"] = list(warnings)

    return ToolResult(
        content=[TextContent(text=summary)],
        structured_content=structured,
        is_error=False,
    )


def error_result(
    kind: ErrorKind,
    message: str,
    source: Optional[str] = None,
) -> ToolResult:
    detail = ErrorDetail(kind=kind, message=message, source=source)
    return ToolResult(
        content=[TextContent(text=f"Error: {message}")],
        structured_content={
            "error": detail.model_dump(mode="json", exclude_none=True),
        },
        is_error=True,
    )


def result_from_error(error: ToolError) -> ToolResult:
    return error_result(error.kind, error.message, error.source)

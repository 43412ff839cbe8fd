"""
Document Loader
===============
Format selection shared by every document tool.

With an explicit format the matching reader is used and its error keeps
its own kind. With ``auto`` the HWP reader is tried first and the HWPX
reader second; a fallback success is reported as a warning, and a double
failure is a ``parse_failed`` error citing both reader messages.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from .errors import ErrorKind, ToolError
from .hwp5_reader import Hwp5Reader
from .hwpx_reader import HwpxReader
from .models import Document, InputFormat, ParsedDocument

logger = logging.getLogger(__name__)

AUTO_FALLBACK_WARNING = "auto format: hwp parse failed; hwpx succeeded"


class DocumentReader(Protocol):
    def read(self, data: bytes) -> Document:
        ...


def default_readers() -> dict[InputFormat, DocumentReader]:
    return {
        InputFormat.HWP: Hwp5Reader(),
        InputFormat.HWPX: HwpxReader(),
    }


def _read_with(
    reader: DocumentReader, data: bytes, fmt: InputFormat
) -> Document:
    """Run one reader, normalizing unexpected failures to ``parse_failed``."""
    try:
        return reader.read(data)
    except ToolError:
        raise
    except Exception as e:
        logger.debug(f"{fmt.value} reader raised {type(e).__name__}: {e}")
        raise ToolError(ErrorKind.PARSE_FAILED, str(e)) from e


def parse_document(
    data: bytes,
    fmt: InputFormat,
    readers: Optional[dict[InputFormat, DocumentReader]] = None,
) -> ParsedDocument:
    """
    Parse ``data`` as ``fmt`` (or detect it when ``fmt`` is auto).

    Raises:
        ToolError: The reader's error for an explicit format (message
            prefixed with the format), or ``parse_failed`` when auto
            detection exhausts both readers.
    """
    readers = readers or default_readers()

    if fmt is not InputFormat.AUTO:
        try:
            document = _read_with(readers[fmt], data, fmt)
        except ToolError as e:
            raise ToolError(
                e.kind, f"{fmt.value} parse failed: {e.message}"
            ) from e
        return ParsedDocument(document=document, format=fmt)

    try:
        document = _read_with(readers[InputFormat.HWP], data, InputFormat.HWP)
        return ParsedDocument(document=document, format=InputFormat.HWP)
    except ToolError as hwp_error:
        try:
            document = _read_with(
                readers[InputFormat.HWPX], data, InputFormat.HWPX
            )
        except ToolError as hwpx_error:
            raise ToolError(
                ErrorKind.PARSE_FAILED,
                f"auto format parse failed (hwp: {hwp_error.message}; "
                f"hwpx: {hwpx_error.message})",
            ) from hwpx_error

    logger.info("Auto format detection fell back to hwpx")
    return ParsedDocument(
        document=document,
        format=InputFormat.HWPX,
        warnings=[AUTO_FALLBACK_WARNING],
    )

"""
Input Payload Loader
====================
Resolves the ``path`` / ``base64`` / ``format`` tool arguments shared by
every document tool into raw bytes, the requested format and a source tag.
"""

from __future__ import annotations

import base64
import binascii
import logging
import os
from dataclasses import dataclass

from .contracts import MAX_INPUT_BYTES
from .errors import ErrorKind, ToolError
from .models import InputFormat

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InputPayload:
    data: bytes
    format: InputFormat
    source: str


def parse_format(value) -> InputFormat:
    """``None`` means auto; non-strings are invalid, unknown strings unsupported."""
    if value is None:
        return InputFormat.AUTO
    if not isinstance(value, str):
        raise ToolError(ErrorKind.INVALID_INPUT, "format must be a string")
    try:
        return InputFormat(value)
    except ValueError:
        raise ToolError(
            ErrorKind.UNSUPPORTED_FORMAT,
            "format must be auto, hwp, or hwpx",
        ) from None


def _too_large(size: int) -> ToolError:
    return ToolError(
        ErrorKind.TOO_LARGE,
        f"input exceeds limit: {size} bytes (max {MAX_INPUT_BYTES})",
    )


def load_input(args) -> InputPayload:
    """
    Load the document bytes named by the tool arguments.

    Raises:
        ToolError: ``invalid_input`` for malformed arguments or unreadable
            files, ``too_large`` above the input limit,
            ``unsupported_format`` for an unknown format name.
    """
    if not isinstance(args, dict):
        raise ToolError(ErrorKind.INVALID_INPUT, "arguments must be an object")

    has_path = "path" in args
    has_base64 = "base64" in args
    if not has_path and not has_base64:
        raise ToolError(
            ErrorKind.INVALID_INPUT, "either path or base64 is required"
        )
    if has_path and has_base64:
        raise ToolError(
            ErrorKind.INVALID_INPUT, "path and base64 cannot both be set"
        )

    fmt = parse_format(args.get("format"))

    if has_path:
        path = args["path"]
        if not isinstance(path, str):
            raise ToolError(ErrorKind.INVALID_INPUT, "path must be a string")
        if not os.path.exists(path):
            raise ToolError(
                ErrorKind.INVALID_INPUT, "path must exist and be a file"
            )
        if not os.path.isfile(path):
            raise ToolError(ErrorKind.INVALID_INPUT, "path must be a file")

        size = os.path.getsize(path)
        if size > MAX_INPUT_BYTES:
            raise _too_large(size)

        try:
            with open(path, "rb") as f:
                data = f.read()
        except OSError:
            raise ToolError(
                ErrorKind.INVALID_INPUT, "failed to read path contents"
            ) from None

        logger.debug(f"Loaded {size} bytes from {path}")
        return InputPayload(data=data, format=fmt, source=f"path:{path}")

    encoded = args["base64"]
    if not isinstance(encoded, str):
        raise ToolError(ErrorKind.INVALID_INPUT, "base64 must be a string")
    try:
        data = base64.b64decode(encoded.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError):
        raise ToolError(ErrorKind.INVALID_INPUT, "base64 must be valid") from None

    if len(data) > MAX_INPUT_BYTES:
        raise _too_large(len(data))

    return InputPayload(data=data, format=fmt, source="base64")

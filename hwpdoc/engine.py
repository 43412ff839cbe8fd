"""
Tool Engine
===========
Entry point shared by the CLI, the HTTP service and the stdio JSON-RPC
server: resolves a tool name, runs it, and always returns an envelope.

Usage:
    engine = ToolEngine(ToolConfig(log_level="DEBUG"))
    result = engine.call("hwp.extract_rich", {"path": "doc.hwpx"})
    # result is a ToolResult; result.to_wire() is the JSON envelope

Architecture:
    arguments → load_input → parse_document (hwp / hwpx / auto) →
    tool payload → ToolResult (success or error envelope)
"""

from __future__ import annotations

import logging
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .contracts import tool_definitions
from .errors import ErrorKind, ToolError
from .models import ToolResult
from .results import error_result, result_from_error
from .tools import TOOLS

logger = logging.getLogger(__name__)

LOG_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


@dataclass
class ToolConfig:
    """Configuration for the tool engine."""

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    # Rich extraction defaults
    resource_dir: Optional[str] = None
    default_images: str = "metadata"


class ToolEngine:
    """
    Dispatches tool calls.

    Every call gets its own reconstruction context, so one engine can serve
    concurrent callers.
    """

    def __init__(self, config: Optional[ToolConfig] = None):
        self.config = config or ToolConfig()
        self._setup_logging()

    def _setup_logging(self):
        """Configure the package logger; console output goes to stderr."""
        log_level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        package_logger = logging.getLogger("hwpdoc")
        package_logger.setLevel(log_level)

        formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)

        # Console handler
        if not package_logger.handlers:
            console = logging.StreamHandler(sys.stderr)
            console.setLevel(log_level)
            console.setFormatter(formatter)
            package_logger.addHandler(console)
        else:
            for handler in package_logger.handlers:
                handler.setLevel(log_level)

        # File handler
        if self.config.log_file:
            log_path = Path(self.config.log_file)
            already = any(
                isinstance(h, logging.FileHandler)
                and Path(h.baseFilename) == log_path.resolve()
                for h in package_logger.handlers
            )
            if not already:
                log_path.parent.mkdir(parents=True, exist_ok=True)
                file_handler = logging.FileHandler(log_path, encoding="utf-8")
                file_handler.setLevel(log_level)
                file_handler.setFormatter(formatter)
                package_logger.addHandler(file_handler)

    def list_tools(self) -> list[dict]:
        return tool_definitions()

    def call(self, name: str, arguments=None) -> ToolResult:
        """
        Run tool ``name`` with ``arguments``.

        Never raises: unknown tools, tool errors and unexpected exceptions
        all come back as error envelopes.
        """
        tool = TOOLS.get(name)
        if tool is None:
            logger.warning(f"Unknown tool requested: {name}")
            return error_result(
                ErrorKind.INVALID_INPUT,
                f"tool not implemented: {name}",
                source=name,
            )

        if arguments is None:
            arguments = {}

        start_time = time.time()
        logger.info(f"Tool call started: {name}")

        try:
            result = tool(arguments, self.config)
        except ToolError as e:
            logger.error(f"Tool call failed: {name} ({e})")
            return result_from_error(e)
        except Exception as e:
            logger.exception(f"Unexpected error in {name}: {e}")
            return error_result(ErrorKind.INTERNAL_ERROR, str(e))

        elapsed = time.time() - start_time
        logger.info(f"Tool call finished: {name} in {elapsed:.2f}s")
        return result

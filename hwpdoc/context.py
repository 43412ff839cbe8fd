"""
Per-Call Context
================
Options and mutable state for one rich extraction call.

A fresh ``ReconstructionContext`` is created for every call and passed
explicitly through the reconstruction engine and the image materializer;
nothing here is shared between calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from .contracts import MAX_OUTPUT_BYTES
from .errors import ErrorKind, ToolError
from .models import BinaryAsset, ImageMode

logger = logging.getLogger(__name__)


def parse_image_mode(value) -> ImageMode:
    """Validate an ``images`` argument; unknown values are invalid input."""
    if isinstance(value, ImageMode):
        return value
    try:
        return ImageMode(value)
    except ValueError:
        raise ToolError(
            ErrorKind.INVALID_INPUT,
            "images must be none, metadata, inline, or resource",
        ) from None


@dataclass(frozen=True)
class RichOptions:
    """Caller-supplied settings for rich extraction."""

    images: ImageMode = ImageMode.METADATA
    max_image_bytes: int = 0
    output_path: Optional[str] = None
    source: Optional[str] = None
    output_budget: int = MAX_OUTPUT_BYTES


@dataclass
class ReconstructionContext:
    """Asset cursor, inline byte counter and warnings for one call."""

    options: RichOptions = field(default_factory=RichOptions)
    warnings: list[str] = field(default_factory=list)
    asset_cursor: int = 0
    inline_bytes: int = 0

    def warn(self, message: str):
        logger.warning(message)
        self.warnings.append(message)

    def next_asset(self, assets: list[BinaryAsset]) -> Optional[BinaryAsset]:
        """Consume the next pending asset, or ``None`` when all are used."""
        if self.asset_cursor >= len(assets):
            return None
        asset = assets[self.asset_cursor]
        self.asset_cursor += 1
        return asset

    def pending_assets(self, assets: list[BinaryAsset]) -> list[BinaryAsset]:
        """Consume and return every asset not yet anchored."""
        pending = assets[self.asset_cursor:]
        self.asset_cursor = len(assets)
        return pending

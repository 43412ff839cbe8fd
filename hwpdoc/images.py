"""
Image Materializer
==================
Turns one embedded binary asset into an image block under the requested
image mode, the per-image byte cap and the call-wide inline byte budget.

Modes:
    none      → size / mime metadata only, payload marked omitted
    metadata  → size / mime metadata only
    inline    → base64 bytes, counted against the shared output budget
    resource  → bytes written to disk, returned as a path and file:// URI
"""

from __future__ import annotations

import base64
import itertools
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Optional

from .context import ReconstructionContext, parse_image_mode
from .errors import ErrorKind, ToolError
from .models import (
    BinaryAsset,
    ImageBlock,
    ImageMode,
    InlinePayload,
    MetadataPayload,
    OmittedPayload,
    ResourcePayload,
)

logger = logging.getLogger(__name__)

MIME_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "bmp": "image/bmp",
}

DEFAULT_RESOURCE_DIR = Path(tempfile.gettempdir()) / "hwpdoc"

# Process-wide sequence so resource file names never collide.
_resource_sequence = itertools.count(1)


def mime_from_extension(extension: Optional[str]) -> Optional[str]:
    if not extension:
        return None
    return MIME_TYPES.get(extension.strip().lower())


def resource_filename(bin_id: int, extension: str) -> str:
    ext = extension.strip() or "bin"
    return (
        f"image-{os.getpid()}-{time.time_ns()}-"
        f"{next(_resource_sequence)}-{bin_id}.{ext}"
    )


class ImageMaterializer:
    """
    Builds image blocks for one call.

    Holds no state of its own: the inline byte counter and the warnings
    list live on the ``ReconstructionContext`` it is given.
    """

    def __init__(self, context: ReconstructionContext):
        self.context = context

    def materialize(
        self,
        asset: BinaryAsset,
        section_index: Optional[int],
        paragraph_index: Optional[int],
        caption: Optional[str] = None,
    ) -> ImageBlock:
        """
        Build the image block for ``asset``.

        Raises:
            ToolError: ``invalid_input`` for an unknown image mode,
                ``too_large`` when the inline budget is exceeded,
                ``internal_error`` when a resource file cannot be written.
        """
        mode = parse_image_mode(self.context.options.images)
        data = self._load(asset)

        block = ImageBlock(
            section_index=section_index,
            paragraph_index=paragraph_index,
            bin_id=asset.id,
            bytes_len=len(data),
            extension=asset.extension,
            mime_type=mime_from_extension(asset.extension),
            caption=caption,
        )

        if mode is ImageMode.NONE:
            block.payload = OmittedPayload()
        elif mode is ImageMode.METADATA:
            block.payload = MetadataPayload()
        elif mode is ImageMode.INLINE:
            block.payload = self._inline(asset, data)
        else:
            block.payload = self._resource(asset, data)

        return block

    def missing(
        self,
        section_index: int,
        paragraph_index: int,
        caption: Optional[str] = None,
    ) -> ImageBlock:
        """Caption-only block for an anchor with no asset left to consume."""
        self.context.warn(
            "image bytes are not available from parser; "
            "returning caption-only image block"
        )
        return ImageBlock(
            section_index=section_index,
            paragraph_index=paragraph_index,
            caption=caption,
            note="image data not available",
        )

    def _load(self, asset: BinaryAsset) -> bytes:
        try:
            return asset.load()
        except Exception as e:
            self.context.warn(
                f"failed to load image data bin_id={asset.id}: {e}"
            )
            return b""

    def _inline(self, asset: BinaryAsset, data: bytes):
        options = self.context.options
        size = len(data)

        if options.max_image_bytes > 0 and size > options.max_image_bytes:
            self.context.warn(
                f"image bin_id={asset.id} exceeds max_image_bytes "
                f"({size} > {options.max_image_bytes}); returning metadata"
            )
            return MetadataPayload()

        self.context.inline_bytes += size
        if self.context.inline_bytes > options.output_budget:
            raise ToolError(
                ErrorKind.TOO_LARGE,
                f"inline images exceed output limit: "
                f"{self.context.inline_bytes} bytes "
                f"(max {options.output_budget})",
                source=options.source,
            )

        return InlinePayload(base64=base64.b64encode(data).decode("ascii"))

    def _resource(self, asset: BinaryAsset, data: bytes) -> ResourcePayload:
        options = self.context.options
        directory = (
            Path(options.output_path) if options.output_path
            else DEFAULT_RESOURCE_DIR
        )

        try:
            directory.mkdir(parents=True, exist_ok=True)
            path = directory / resource_filename(asset.id, asset.extension)
            with open(path, "wb") as f:
                f.write(data)
        except OSError as e:
            raise ToolError(
                ErrorKind.INTERNAL_ERROR,
                f"failed to write image bin_id={asset.id}: {e}",
                source=options.source,
            ) from e

        path = path.resolve()
        logger.debug(f"Wrote image resource: {path}")
        return ResourcePayload(path=str(path), uri=path.as_uri())

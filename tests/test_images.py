"""
Tests for the image materializer.
"""

from __future__ import annotations

import base64
import re
from pathlib import Path

import pytest

from hwpdoc.context import ReconstructionContext, RichOptions, parse_image_mode
from hwpdoc.errors import ErrorKind, ToolError
from hwpdoc.images import (
    ImageMaterializer,
    mime_from_extension,
    resource_filename,
)
from hwpdoc.models import ImageMode

from .builders import PNG_BYTES, make_asset


def _materializer(**options) -> ImageMaterializer:
    return ImageMaterializer(ReconstructionContext(options=RichOptions(**options)))


class TestHelpers:

    @pytest.mark.parametrize("ext,mime", [
        ("png", "image/png"),
        ("PNG", "image/png"),
        ("jpg", "image/jpeg"),
        ("jpeg", "image/jpeg"),
        ("gif", "image/gif"),
        ("bmp", "image/bmp"),
        ("tiff", None),
        ("", None),
        (None, None),
    ])
    def test_mime_from_extension(self, ext, mime):
        assert mime_from_extension(ext) == mime

    def test_resource_filename_unique(self):
        first = resource_filename(5, "png")
        second = resource_filename(5, "png")
        assert re.fullmatch(r"image-\d+-\d+-\d+-5\.png", first)
        assert first != second

    def test_resource_filename_default_extension(self):
        assert resource_filename(1, "").endswith("-1.bin")

    def test_parse_image_mode(self):
        assert parse_image_mode("inline") is ImageMode.INLINE
        with pytest.raises(ToolError) as excinfo:
            parse_image_mode("thumbnail")
        assert excinfo.value.kind == ErrorKind.INVALID_INPUT
        assert excinfo.value.message == (
            "images must be none, metadata, inline, or resource"
        )


class TestModes:

    def test_none_mode_omits_payload(self):
        block = _materializer(images=ImageMode.NONE).materialize(
            make_asset(1), 0, 2, "cap"
        )
        assert block.payload.kind == "omitted"
        assert block.bytes_len == len(PNG_BYTES)
        assert block.caption == "cap"
        assert (block.section_index, block.paragraph_index) == (0, 2)

    def test_metadata_mode(self):
        block = _materializer().materialize(make_asset(4, ext="gif"), 0, 0)
        assert block.payload.kind == "metadata"
        assert block.mime_type == "image/gif"
        assert block.extension == "gif"

    def test_inline_mode(self):
        materializer = _materializer(images=ImageMode.INLINE)
        block = materializer.materialize(make_asset(1), 0, 0)

        assert block.payload.kind == "inline"
        assert base64.b64decode(block.payload.base64) == PNG_BYTES
        assert materializer.context.inline_bytes == len(PNG_BYTES)

    def test_inline_cap_downgrades(self):
        materializer = _materializer(images=ImageMode.INLINE, max_image_bytes=4)
        block = materializer.materialize(make_asset(9), 0, 0)

        assert block.payload.kind == "metadata"
        assert materializer.context.inline_bytes == 0
        assert materializer.context.warnings == [
            f"image bin_id=9 exceeds max_image_bytes "
            f"({len(PNG_BYTES)} > 4); returning metadata"
        ]

    def test_resource_mode_writes_file(self, tmp_path):
        materializer = _materializer(
            images=ImageMode.RESOURCE, output_path=str(tmp_path / "out")
        )
        block = materializer.materialize(make_asset(3), 0, 0)

        path = Path(block.payload.path)
        assert path.is_absolute()
        assert path.parent == (tmp_path / "out").resolve()
        assert path.read_bytes() == PNG_BYTES
        assert block.payload.uri == path.as_uri()
        assert block.payload.uri.startswith("file://")

    def test_resource_write_failure(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        materializer = _materializer(
            images=ImageMode.RESOURCE, output_path=str(blocker), source="base64"
        )

        with pytest.raises(ToolError) as excinfo:
            materializer.materialize(make_asset(3), 0, 0)
        assert excinfo.value.kind == ErrorKind.INTERNAL_ERROR
        assert excinfo.value.message.startswith("failed to write image bin_id=3")
        assert excinfo.value.source == "base64"

    def test_unknown_mode_is_invalid_input(self):
        with pytest.raises(ToolError) as excinfo:
            _materializer(images="bogus").materialize(make_asset(1), 0, 0)
        assert excinfo.value.kind == ErrorKind.INVALID_INPUT

    def test_missing_asset_block(self):
        materializer = _materializer()
        block = materializer.missing(1, 4, "lost")

        assert block.caption == "lost"
        assert block.bin_id is None
        assert block.payload is None
        assert block.note == "image data not available"
        assert len(materializer.context.warnings) == 1

    def test_wire_uses_mime_alias(self):
        block = _materializer().materialize(make_asset(1), 0, 0)
        wire = block.model_dump(by_alias=True, mode="json")
        assert wire["mimeType"] == "image/png"
        assert "mime_type" not in wire

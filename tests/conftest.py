"""
Shared Fixtures
===============
"""

from __future__ import annotations

import pytest

from .builders import PNG_BYTES, build_hwpx, hwpx_para, hwpx_table


# ─── Fixtures ─────────────────────────────────────────────────────────────────


@pytest.fixture
def simple_hwpx() -> bytes:
    """Two sections of plain text."""
    return build_hwpx([
        [hwpx_para("First paragraph"), hwpx_para("Second paragraph")],
        [hwpx_para("Third paragraph")],
    ])


@pytest.fixture
def rich_hwpx() -> bytes:
    """Text, a declared 2x2 table, a captioned image, and one spare image."""
    return build_hwpx(
        [[
            hwpx_para("Quarterly report"),
            hwpx_table(2, 2, [
                (0, 0, "Region"), (0, 1, "Sales"),
                (1, 0, "North"), (1, 1, "120"),
            ]),
            hwpx_para(""),
            hwpx_para("그림: Sales chart"),
            hwpx_para("End of report"),
        ]],
        bindata={"image1.png": PNG_BYTES, "image2.jpg": b"\xff\xd8\xff\xe0"},
    )


@pytest.fixture
def hwpx_file(tmp_path, rich_hwpx):
    path = tmp_path / "report.hwpx"
    path.write_bytes(rich_hwpx)
    return path

"""
Test Builders
=============
In-memory HWPX packages, HWP record streams and document-model builders.
"""

from __future__ import annotations

import base64
import struct
import io
import zipfile
import zlib
from typing import Optional
from xml.sax.saxutils import escape

from hwpdoc.models import (
    BinaryAsset,
    CellRef,
    Document,
    Paragraph,
    Section,
    TableDescriptor,
)

HP_NS = "http://www.hancom.co.kr/hwpml/2011/paragraph"
HS_NS = "http://www.hancom.co.kr/hwpml/2011/section"

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24


# ─── HWPX Builders ────────────────────────────────────────────────────────────


def hwpx_para(text: str) -> str:
    return f"<hp:p><hp:run><hp:t>{escape(text)}</hp:t></hp:run></hp:p>"


def hwpx_table(
    rows: int,
    cols: int,
    cells: list[tuple],
    text: str = "",
) -> str:
    """
    A paragraph hosting one table. ``cells`` holds
    ``(row, col, text[, row_span, col_span])`` tuples, written row by row.
    """
    by_row: dict[int, list[str]] = {}
    for cell in cells:
        row, col, cell_text = cell[:3]
        row_span = cell[3] if len(cell) > 3 else 1
        col_span = cell[4] if len(cell) > 4 else 1
        by_row.setdefault(row, []).append(
            "<hp:tc>"
            f"<hp:subList>{hwpx_para(cell_text)}</hp:subList>"
            f'<hp:cellAddr colAddr="{col}" rowAddr="{row}"/>'
            f'<hp:cellSpan colSpan="{col_span}" rowSpan="{row_span}"/>'
            "</hp:tc>"
        )
    trs = "".join(
        f"<hp:tr>{''.join(tcs)}</hp:tr>" for _, tcs in sorted(by_row.items())
    )
    return (
        "<hp:p><hp:run>"
        f"<hp:t>{escape(text)}</hp:t>"
        f'<hp:tbl rowCnt="{rows}" colCnt="{cols}">{trs}</hp:tbl>'
        "</hp:run></hp:p>"
    )


def hwpx_section(paragraphs: list[str]) -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<hs:sec xmlns:hs="{HS_NS}" xmlns:hp="{HP_NS}">'
        f"{''.join(paragraphs)}"
        "</hs:sec>"
    )


def build_hwpx(
    sections: list[list[str]],
    bindata: Optional[dict[str, bytes]] = None,
    version: Optional[dict[str, str]] = None,
    encrypted: bool = False,
) -> bytes:
    """Zip an HWPX package. ``sections`` holds paragraph XML snippets."""
    version = version or {"major": "5", "minor": "1", "micro": "0",
                          "buildNumber": "1"}
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr(
            "mimetype", "application/hwp+zip", compress_type=zipfile.ZIP_STORED
        )
        attrs = " ".join(f'{k}="{v}"' for k, v in version.items())
        zf.writestr(
            "version.xml",
            f'<?xml version="1.0"?><hv:HCFVersion '
            f'xmlns:hv="http://www.hancom.co.kr/hwpml/2011/version" {attrs}/>',
            compress_type=zipfile.ZIP_DEFLATED,
        )
        manifest_entry = (
            '<odf:file-entry odf:full-path="Contents/section0.xml">'
            "<odf:encryption-data/></odf:file-entry>"
            if encrypted else ""
        )
        zf.writestr(
            "META-INF/manifest.xml",
            '<?xml version="1.0"?><odf:manifest '
            'xmlns:odf="urn:oasis:names:tc:opendocument:xmlns:manifest:1.0">'
            f"{manifest_entry}</odf:manifest>",
        )
        for idx, paragraphs in enumerate(sections):
            zf.writestr(
                f"Contents/section{idx}.xml",
                hwpx_section(paragraphs),
                compress_type=zipfile.ZIP_DEFLATED,
            )
        for name, data in (bindata or {}).items():
            zf.writestr(f"BinData/{name}", data)
    return buf.getvalue()


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


# ─── Document Model Builders ──────────────────────────────────────────────────


def paragraphs(*texts) -> list[Paragraph]:
    """Plain paragraphs; ``Paragraph`` instances are passed through."""
    return [t if isinstance(t, Paragraph) else Paragraph(text=t) for t in texts]


def table_paragraph(rows: int, cols: int, cells: list[tuple]) -> Paragraph:
    """``cells`` holds ``(row, col[, row_span, col_span])`` tuples."""
    refs = [
        CellRef(
            row=c[0],
            col=c[1],
            row_span=c[2] if len(c) > 2 else 1,
            col_span=c[3] if len(c) > 3 else 1,
        )
        for c in cells
    ]
    return Paragraph(table=TableDescriptor(rows=rows, cols=cols, cells=refs))


def make_asset(bin_id: int, data: bytes = PNG_BYTES, ext: str = "png"):
    return BinaryAsset(id=bin_id, extension=ext, loader=lambda: data)


def make_document(*sections, assets=None) -> Document:
    return Document(
        sections=[Section(paragraphs=list(s)) for s in sections],
        assets=list(assets or []),
    )


# ─── HWP 5.0 Builders ─────────────────────────────────────────────────────────


def hwp_record(tag: int, level: int, payload: bytes = b"") -> bytes:
    size = len(payload)
    if size >= 0xFFF:
        header = tag | (level << 10) | (0xFFF << 20)
        return struct.pack("<II", header, size) + payload
    return struct.pack("<I", tag | (level << 10) | (size << 20)) + payload


def utf16(text: str) -> bytes:
    return text.encode("utf-16-le")


def hwp_file_header(
    version: tuple = (5, 0, 3, 0),
    compressed: bool = False,
    encrypted: bool = False,
) -> bytes:
    major, minor, build, revision = version
    packed = (major << 24) | (minor << 16) | (build << 8) | revision
    flags = (0x01 if compressed else 0) | (0x02 if encrypted else 0)
    signature = b"HWP Document File".ljust(32, b"\x00")
    return (signature + struct.pack("<II", packed, flags)).ljust(256, b"\x00")


def deflate(data: bytes) -> bytes:
    compressor = zlib.compressobj(wbits=-15)
    return compressor.compress(data) + compressor.flush()

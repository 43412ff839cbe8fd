"""
HWP 5.0 Reader
==============
Reads binary HWP 5.0 documents (OLE compound files) into a Document.

File layout:
    FileHeader          signature, version, compressed / encrypted flags
    BodyText/SectionN   record streams (raw deflate when compressed)
    BinData/BINxxxx.ext embedded binaries, ordered by their hex id

Body records form a tree by level. Top-level PARA_HEADER records are the
section paragraphs; a paragraph hosting a table control ('tbl ') becomes a
paragraph carrying a TableDescriptor, followed by one paragraph per cell.
"""

from __future__ import annotations

import io
import logging
import re
import struct
import zlib
from dataclasses import dataclass, field
from typing import Callable, Iterator, NamedTuple

import olefile

from .errors import ErrorKind, ToolError
from .models import (
    BinaryAsset,
    CellRef,
    Document,
    DocumentHeader,
    Paragraph,
    Section,
    TableDescriptor,
)
from .tables import check_table_size

logger = logging.getLogger(__name__)

SIGNATURE = b"HWP Document File"

HWPTAG_BEGIN = 0x10
HWPTAG_PARA_HEADER = HWPTAG_BEGIN + 50
HWPTAG_PARA_TEXT = HWPTAG_BEGIN + 51
HWPTAG_CTRL_HEADER = HWPTAG_BEGIN + 55
HWPTAG_LIST_HEADER = HWPTAG_BEGIN + 56
HWPTAG_TABLE = HWPTAG_BEGIN + 61

CTRL_ID_TABLE = b"tbl "

FLAG_COMPRESSED = 0x01
FLAG_ENCRYPTED = 0x02

# Control codes that occupy 8 UTF-16 units (the code plus 7 units of data).
_EXTENDED_CONTROLS = frozenset(
    {1, 2, 3, 4, 5, 6, 7, 8, 9, 11, 12, 14, 15, 16, 17, 18, 19, 20, 21, 22, 23}
)
_CHAR_REPLACEMENTS = {
    9: "\t",
    10: "\n",
    24: "-",
    30: " ",
    31: " ",
}

SECTION_STREAM = re.compile(r"^Section(\d+)$")
BINDATA_STREAM = re.compile(r"^BIN([0-9A-Fa-f]+)(?:\.(\w+))?$")


# ─── Record Parsing ───────────────────────────────────────────────────────────


class Record(NamedTuple):
    tag: int
    level: int
    payload: bytes


@dataclass
class RecordNode:
    record: Record
    children: list["RecordNode"] = field(default_factory=list)

    @property
    def tag(self) -> int:
        return self.record.tag

    @property
    def payload(self) -> bytes:
        return self.record.payload


def iter_records(data: bytes) -> Iterator[Record]:
    """
    Split a decompressed stream into records.

    Header: 32 bits, tag (10) | level (10) | size (12); a size of 0xFFF
    means the real size follows as a 32-bit integer.
    """
    offset = 0
    while offset + 4 <= len(data):
        (header,) = struct.unpack_from("<I", data, offset)
        offset += 4
        tag = header & 0x3FF
        level = (header >> 10) & 0x3FF
        size = (header >> 20) & 0xFFF
        if size == 0xFFF:
            if offset + 4 > len(data):
                raise ToolError(ErrorKind.PARSE_FAILED, "truncated record header")
            (size,) = struct.unpack_from("<I", data, offset)
            offset += 4
        if offset + size > len(data):
            raise ToolError(
                ErrorKind.PARSE_FAILED, f"truncated record (tag {tag})"
            )
        yield Record(tag, level, data[offset:offset + size])
        offset += size


def build_record_tree(records) -> list[RecordNode]:
    """Nest records under the closest preceding record of a lower level."""
    roots: list[RecordNode] = []
    stack: list[RecordNode] = []
    for record in records:
        node = RecordNode(record)
        while stack and stack[-1].record.level >= record.level:
            stack.pop()
        (stack[-1].children if stack else roots).append(node)
        stack.append(node)
    return roots


def decode_para_text(payload: bytes) -> str:
    """Decode a PARA_TEXT payload, dropping inline and extended controls."""
    count = len(payload) // 2
    units = struct.unpack(f"<{count}H", payload[:count * 2])

    kept: list[int] = []
    i = 0
    while i < count:
        code = units[i]
        if code >= 32:
            kept.append(code)
            i += 1
            continue
        if code in _CHAR_REPLACEMENTS:
            kept.append(ord(_CHAR_REPLACEMENTS[code]))
        i += 8 if code in _EXTENDED_CONTROLS else 1

    return struct.pack(f"<{len(kept)}H", *kept).decode(
        "utf-16-le", errors="replace"
    )


def node_text(node: RecordNode) -> str:
    return "".join(
        decode_para_text(child.payload)
        for child in node.children
        if child.tag == HWPTAG_PARA_TEXT
    )


def _is_table_control(node: RecordNode) -> bool:
    # Control ids are stored as little-endian four-character codes.
    return (
        node.tag == HWPTAG_CTRL_HEADER
        and node.payload[:4][::-1] == CTRL_ID_TABLE
    )


def parse_cell(payload: bytes) -> CellRef:
    """Cell address and span from a table-cell LIST_HEADER payload."""
    if len(payload) < 16:
        raise ToolError(ErrorKind.PARSE_FAILED, "truncated table cell header")
    col, row, col_span, row_span = struct.unpack_from("<HHHH", payload, 8)
    return CellRef(row=row, col=col, row_span=row_span, col_span=col_span)


def parse_table(control: RecordNode) -> tuple[TableDescriptor, list[str]]:
    """
    Table descriptor and per-cell text for a 'tbl ' control node.
    Cell texts are returned in ``(row, col)`` order, matching the
    descriptor's sorted cells.
    """
    table = next((c for c in control.children if c.tag == HWPTAG_TABLE), None)
    if table is None or len(table.payload) < 8:
        raise ToolError(
            ErrorKind.PARSE_FAILED, "table control without table record"
        )
    rows, cols = struct.unpack_from("<HH", table.payload, 4)
    check_table_size(rows, cols)

    cells: list[tuple[CellRef, list[str]]] = []
    for child in control.children:
        if child.tag == HWPTAG_LIST_HEADER:
            lines = [
                node_text(grandchild)
                for grandchild in child.children
                if grandchild.tag == HWPTAG_PARA_HEADER
            ]
            cells.append((parse_cell(child.payload), lines))
        elif child.tag == HWPTAG_PARA_HEADER and cells:
            cells[-1][1].append(node_text(child))

    cells.sort(key=lambda item: item[0].address)
    descriptor = TableDescriptor(
        rows=rows, cols=cols, cells=[cell for cell, _ in cells]
    )
    return descriptor, ["\n".join(lines) for _, lines in cells]


def section_paragraphs(roots: list[RecordNode]) -> list[Paragraph]:
    """Flatten top-level paragraphs, expanding table hosts into cell runs."""
    paragraphs: list[Paragraph] = []
    for node in roots:
        if node.tag != HWPTAG_PARA_HEADER:
            continue
        text = node_text(node)
        tables = [c for c in node.children if _is_table_control(c)]
        if not tables:
            paragraphs.append(Paragraph(text=text))
            continue
        for idx, control in enumerate(tables):
            descriptor, cell_texts = parse_table(control)
            paragraphs.append(
                Paragraph(text=text if idx == 0 else "", table=descriptor)
            )
            paragraphs.extend(Paragraph(text=t) for t in cell_texts)
    return paragraphs


# ─── Reader ───────────────────────────────────────────────────────────────────


def _decompress(raw: bytes, name: str) -> bytes:
    try:
        return zlib.decompress(raw, -15)
    except zlib.error as e:
        raise ToolError(
            ErrorKind.PARSE_FAILED, f"failed to decompress {name}: {e}"
        ) from e


def _bin_loader(raw: bytes, compressed: bool) -> Callable[[], bytes]:
    def load() -> bytes:
        if not compressed:
            return raw
        try:
            return zlib.decompress(raw, -15)
        except zlib.error:
            # BinData items may be stored uncompressed in compressed documents.
            return raw
    return load


class Hwp5Reader:
    """Parses HWP 5.0 bytes into a Document."""

    def read(self, data: bytes) -> Document:
        if data[:len(olefile.MAGIC)] != olefile.MAGIC:
            raise ToolError(ErrorKind.PARSE_FAILED, "not an OLE compound file")

        try:
            with olefile.OleFileIO(io.BytesIO(data)) as ole:
                header = self._read_header(ole)
                if header.encrypted:
                    raise ToolError(
                        ErrorKind.ENCRYPTED,
                        "Password-encrypted documents are not supported",
                    )
                sections = self._read_sections(ole, header.compressed)
                assets = self._read_assets(ole, header.compressed)
        except OSError as e:
            raise ToolError(ErrorKind.PARSE_FAILED, str(e)) from e

        logger.debug(
            f"HWP {header.version}: {len(sections)} sections, "
            f"{len(assets)} binaries"
        )
        return Document(sections=sections, assets=assets, header=header)

    def _read_header(self, ole) -> DocumentHeader:
        if not ole.exists("FileHeader"):
            raise ToolError(ErrorKind.PARSE_FAILED, "missing FileHeader stream")
        data = ole.openstream("FileHeader").read()
        if len(data) < 40 or not data.startswith(SIGNATURE):
            raise ToolError(ErrorKind.PARSE_FAILED, "invalid HWP signature")

        version, flags = struct.unpack_from("<II", data, 32)
        version_str = ".".join(
            str((version >> shift) & 0xFF) for shift in (24, 16, 8, 0)
        )
        return DocumentHeader(
            version=version_str,
            compressed=bool(flags & FLAG_COMPRESSED),
            encrypted=bool(flags & FLAG_ENCRYPTED),
        )

    def _read_sections(self, ole, compressed: bool) -> list[Section]:
        names = []
        for entry in ole.listdir():
            if len(entry) == 2 and entry[0] == "BodyText":
                match = SECTION_STREAM.match(entry[1])
                if match:
                    names.append((int(match.group(1)), "/".join(entry)))
        if not names:
            raise ToolError(ErrorKind.PARSE_FAILED, "missing BodyText sections")

        sections = []
        for _, name in sorted(names):
            raw = ole.openstream(name).read()
            stream = _decompress(raw, name) if compressed else raw
            roots = build_record_tree(iter_records(stream))
            sections.append(Section(paragraphs=section_paragraphs(roots)))
        return sections

    def _read_assets(self, ole, compressed: bool) -> list[BinaryAsset]:
        assets = []
        for entry in ole.listdir():
            if len(entry) != 2 or entry[0] != "BinData":
                continue
            match = BINDATA_STREAM.match(entry[1])
            if not match:
                continue
            raw = ole.openstream("/".join(entry)).read()
            assets.append(BinaryAsset(
                id=int(match.group(1), 16),
                extension=(match.group(2) or "").lower(),
                loader=_bin_loader(raw, compressed),
            ))
        assets.sort(key=lambda asset: asset.id)
        return assets

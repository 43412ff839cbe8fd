"""
HWPX Reader
===========
Reads HWPX documents (OWPML: a zip package of XML parts) into a Document.

Package layout:
    mimetype                 application/hwp+zip
    version.xml              HCFVersion major / minor / micro / buildNumber
    META-INF/manifest.xml    encryption-data entries mark encrypted parts
    Contents/sectionN.xml    <hs:sec> with <hp:p> paragraphs
    BinData/*                embedded binaries

Elements are matched by local name, so documents written with either the
2011 or the 2016 OWPML namespaces are read the same way.
"""

from __future__ import annotations

import io
import logging
import re
import zipfile
import xml.etree.ElementTree as ET
from typing import Callable, Optional

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

MIMETYPE = "application/hwp+zip"

SECTION_PART = re.compile(r"^Contents/section(\d+)\.xml$")
BINDATA_PART = re.compile(r"^BinData/([^/]+)$")
_DIGITS = re.compile(r"(\d+)")


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _int_attr(element: Optional[ET.Element], name: str, default: int) -> int:
    if element is None:
        return default
    value = element.get(name)
    try:
        return int(value) if value is not None else default
    except ValueError:
        raise ToolError(
            ErrorKind.PARSE_FAILED, f"invalid {name} attribute: {value!r}"
        ) from None


# ─── Paragraph Text ───────────────────────────────────────────────────────────


def text_of_t(element: ET.Element) -> str:
    """Text of an <hp:t>, mapping tab / line-break children."""
    parts = [element.text or ""]
    for child in element:
        name = _local(child.tag)
        if name == "tab":
            parts.append("\t")
        elif name == "lineBreak":
            parts.append("\n")
        parts.append(child.tail or "")
    return "".join(parts)


def paragraph_text(p: ET.Element) -> str:
    return "".join(
        text_of_t(t)
        for run in p.findall("{*}run")
        for t in run.findall("{*}t")
    )


def parse_table(tbl: ET.Element) -> tuple[TableDescriptor, list[str]]:
    """Descriptor and ``(row, col)``-ordered cell texts for an <hp:tbl>."""
    cells: list[tuple[CellRef, str]] = []
    # Nested tables are flattened into their host cell's text only.
    for tc in (tc for tr in tbl.findall("{*}tr") for tc in tr.findall("{*}tc")):
        addr = tc.find("{*}cellAddr")
        span = tc.find("{*}cellSpan")
        cell = CellRef(
            row=_int_attr(addr, "rowAddr", 0),
            col=_int_attr(addr, "colAddr", 0),
            row_span=_int_attr(span, "rowSpan", 1),
            col_span=_int_attr(span, "colSpan", 1),
        )
        sub = tc.find("{*}subList")
        lines = (
            [paragraph_text(p) for p in sub.findall("{*}p")]
            if sub is not None else []
        )
        cells.append((cell, "\n".join(lines)))

    cells.sort(key=lambda item: item[0].address)
    rows = _int_attr(tbl, "rowCnt", 0)
    cols = _int_attr(tbl, "colCnt", 0)
    check_table_size(rows, cols)
    descriptor = TableDescriptor(
        rows=rows,
        cols=cols,
        cells=[cell for cell, _ in cells],
    )
    return descriptor, [text for _, text in cells]


def section_paragraphs(root: ET.Element) -> list[Paragraph]:
    paragraphs: list[Paragraph] = []
    for p in root.findall("{*}p"):
        text = paragraph_text(p)
        tables = [
            tbl for run in p.findall("{*}run") for tbl in run.findall("{*}tbl")
        ]
        if not tables:
            paragraphs.append(Paragraph(text=text))
            continue
        for idx, tbl in enumerate(tables):
            descriptor, cell_texts = parse_table(tbl)
            paragraphs.append(
                Paragraph(text=text if idx == 0 else "", table=descriptor)
            )
            paragraphs.extend(Paragraph(text=t) for t in cell_texts)
    return paragraphs


# ─── Reader ───────────────────────────────────────────────────────────────────


def _asset_loader(package: bytes, name: str) -> Callable[[], bytes]:
    def load() -> bytes:
        with zipfile.ZipFile(io.BytesIO(package)) as zf:
            return zf.read(name)
    return load


class HwpxReader:
    """Parses HWPX bytes into a Document."""

    def read(self, data: bytes) -> Document:
        try:
            with zipfile.ZipFile(io.BytesIO(data)) as zf:
                names = zf.namelist()
                self._check_mimetype(zf, names)
                if self._is_encrypted(zf, names):
                    raise ToolError(
                        ErrorKind.ENCRYPTED,
                        "Password-encrypted documents are not supported",
                    )
                header = DocumentHeader(
                    version=self._read_version(zf, names),
                    compressed=any(
                        info.compress_type != zipfile.ZIP_STORED
                        for info in zf.infolist()
                    ),
                    encrypted=False,
                )
                sections = self._read_sections(zf, names)
        except zipfile.BadZipFile as e:
            raise ToolError(
                ErrorKind.PARSE_FAILED, f"not a zip package: {e}"
            ) from e
        except ET.ParseError as e:
            raise ToolError(ErrorKind.PARSE_FAILED, f"invalid XML: {e}") from e

        assets = self._collect_assets(data, names)
        logger.debug(
            f"HWPX {header.version}: {len(sections)} sections, "
            f"{len(assets)} binaries"
        )
        return Document(sections=sections, assets=assets, header=header)

    def _check_mimetype(self, zf: zipfile.ZipFile, names: list[str]):
        if "mimetype" not in names:
            return
        mimetype = zf.read("mimetype").decode("utf-8", errors="replace").strip()
        if mimetype != MIMETYPE:
            raise ToolError(
                ErrorKind.PARSE_FAILED, f"unexpected mimetype: {mimetype}"
            )

    def _is_encrypted(self, zf: zipfile.ZipFile, names: list[str]) -> bool:
        if "META-INF/manifest.xml" not in names:
            return False
        root = ET.fromstring(zf.read("META-INF/manifest.xml"))
        return any(_local(el.tag) == "encryption-data" for el in root.iter())

    def _read_version(self, zf: zipfile.ZipFile, names: list[str]) -> str:
        if "version.xml" not in names:
            return ""
        root = ET.fromstring(zf.read("version.xml"))
        parts = [
            root.get(key)
            for key in ("major", "minor", "micro", "buildNumber")
        ]
        return ".".join(p for p in parts if p is not None)

    def _read_sections(
        self, zf: zipfile.ZipFile, names: list[str]
    ) -> list[Section]:
        parts = []
        for name in names:
            match = SECTION_PART.match(name)
            if match:
                parts.append((int(match.group(1)), name))
        if not parts:
            raise ToolError(ErrorKind.PARSE_FAILED, "missing section parts")

        return [
            Section(paragraphs=section_paragraphs(ET.fromstring(zf.read(name))))
            for _, name in sorted(parts)
        ]

    def _collect_assets(
        self, data: bytes, names: list[str]
    ) -> list[BinaryAsset]:
        entries = []
        for name in names:
            match = BINDATA_PART.match(name)
            if not match:
                continue
            filename = match.group(1)
            digits = _DIGITS.search(filename)
            order = int(digits.group(1)) if digits else 0
            entries.append((order, filename, name))
        entries.sort()

        assets = []
        for position, (order, filename, name) in enumerate(entries, start=1):
            stem, _, ext = filename.rpartition(".")
            assets.append(BinaryAsset(
                id=order or position,
                extension=ext.lower() if stem else "",
                loader=_asset_loader(data, name),
            ))
        return assets

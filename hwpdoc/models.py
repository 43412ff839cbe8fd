"""
Data Models
===========
Pydantic models for the parsed document, the reconstructed content
blocks, and the tool result envelopes.
All output models are serializable to JSON for the transport layer.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Callable, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .errors import ErrorKind


# ─── Enums ────────────────────────────────────────────────────────────────────


class InputFormat(str, Enum):
    """Source format requested by the caller or detected by the loader."""
    AUTO = "auto"
    HWP = "hwp"
    HWPX = "hwpx"


class ImageMode(str, Enum):
    """How embedded images are returned by rich extraction."""
    NONE = "none"
    METADATA = "metadata"
    INLINE = "inline"
    RESOURCE = "resource"


# ─── Document Model ───────────────────────────────────────────────────────────


class CellRef(BaseModel):
    """Address and merge extent of one declared table cell."""
    row: int = Field(ge=0)
    col: int = Field(ge=0)
    row_span: int = Field(default=1, ge=0)
    col_span: int = Field(default=1, ge=0)

    @property
    def address(self) -> tuple[int, int]:
        return (self.row, self.col)

    @property
    def is_merged(self) -> bool:
        return self.row_span > 1 or self.col_span > 1


class TableDescriptor(BaseModel):
    """
    Explicit table structure carried by a paragraph.
    The cell text lives in the sibling paragraphs that follow it.
    """
    rows: int = Field(ge=0)
    cols: int = Field(ge=0)
    cells: list[CellRef] = Field(default_factory=list)


class Paragraph(BaseModel):
    """One paragraph of a section, optionally carrying a table descriptor."""
    text: str = ""
    table: Optional[TableDescriptor] = None

    @property
    def is_blank(self) -> bool:
        return not self.text.strip()


class Section(BaseModel):
    paragraphs: list[Paragraph] = Field(default_factory=list)


class BinaryAsset(BaseModel):
    """
    An embedded binary (usually an image) with a lazy, fallible loader.
    Assets are ordered document-wide, independent of paragraph position.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: int
    extension: str = ""
    loader: Callable[[], bytes] = Field(exclude=True, repr=False)

    def load(self) -> bytes:
        return self.loader()


class DocumentHeader(BaseModel):
    version: str = ""
    compressed: bool = False
    encrypted: bool = False


class Document(BaseModel):
    """A parsed document: sections of paragraphs plus the asset list."""
    sections: list[Section] = Field(default_factory=list)
    assets: list[BinaryAsset] = Field(default_factory=list)
    header: DocumentHeader = Field(default_factory=DocumentHeader)

    @property
    def paragraph_count(self) -> int:
        return sum(len(s.paragraphs) for s in self.sections)

    def extract_text(self) -> str:
        """Paragraph texts in document order, one per line."""
        lines = [
            p.text.rstrip("\r\n")
            for section in self.sections
            for p in section.paragraphs
        ]
        return "\n".join(lines)


class ParsedDocument(BaseModel):
    """Reader output: the document, the format that parsed it, and notes."""
    document: Document
    format: InputFormat
    warnings: list[str] = Field(default_factory=list)


# ─── Image Payloads ───────────────────────────────────────────────────────────


class OmittedPayload(BaseModel):
    kind: Literal["omitted"] = "omitted"


class MetadataPayload(BaseModel):
    kind: Literal["metadata"] = "metadata"


class InlinePayload(BaseModel):
    kind: Literal["inline"] = "inline"
    base64: str


class ResourcePayload(BaseModel):
    kind: Literal["resource"] = "resource"
    path: str
    uri: str


ImagePayload = Annotated[
    Union[OmittedPayload, MetadataPayload, InlinePayload, ResourcePayload],
    Field(discriminator="kind"),
]


# ─── Content Blocks ───────────────────────────────────────────────────────────


class ParagraphBlock(BaseModel):
    type: Literal["paragraph"] = "paragraph"
    section_index: int = Field(ge=0)
    paragraph_index: int = Field(ge=0)
    text: str


class TableSpan(BaseModel):
    row: int
    col: int
    row_span: int
    col_span: int


class TableBlock(BaseModel):
    """
    A table, either declared by the document (``inferred=False``) or
    reconstructed from a run of paragraphs (``inferred=True``).
    """
    type: Literal["table"] = "table"
    section_index: int = Field(ge=0)
    paragraph_index: int = Field(ge=0)
    rows: list[list[str]] = Field(default_factory=list)
    spans: list[TableSpan] = Field(default_factory=list)
    inferred: bool = False
    cells_count: int = Field(default=0, ge=0)


class ImageBlock(BaseModel):
    """
    An image anchored by a caption, or appended at the end of the output
    (``placement="unanchored"``, no section / paragraph index).
    """
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["image"] = "image"
    section_index: Optional[int] = None
    paragraph_index: Optional[int] = None
    bin_id: Optional[int] = None
    bytes_len: Optional[int] = None
    extension: Optional[str] = None
    mime_type: Optional[str] = Field(default=None, alias="mimeType")
    caption: Optional[str] = None
    placement: Optional[str] = None
    note: Optional[str] = None
    payload: Optional[ImagePayload] = None


ContentBlock = Annotated[
    Union[ParagraphBlock, TableBlock, ImageBlock],
    Field(discriminator="type"),
]


class RichExtraction(BaseModel):
    """Structured payload of a successful rich extraction."""
    format: InputFormat
    blocks: list[ContentBlock] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


# ─── Result Envelopes ─────────────────────────────────────────────────────────


class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ErrorDetail(BaseModel):
    kind: ErrorKind
    message: str
    source: Optional[str] = None


class ToolResult(BaseModel):
    """
    The envelope every tool call returns, success or failure.
    Serialized with camelCase aliases for the wire.
    """
    model_config = ConfigDict(populate_by_name=True)

    content: list[TextContent] = Field(default_factory=list)
    structured_content: dict = Field(
        default_factory=dict, alias="structuredContent"
    )
    is_error: bool = Field(default=False, alias="isError")

    @property
    def summary(self) -> str:
        return self.content[0].text if self.content else ""

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")

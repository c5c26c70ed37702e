"""Page-level models."""

from typing import Annotated, Literal, Optional, Union

from pydantic import Field

from .base import BoundingBox, OcrBaseModel, OcrFeature
from .block import Block, Line, Paragraph, join_texts
from .word import Word


class ImageSource(OcrBaseModel):
    """Information about the scanned image a page was recognized from."""

    file_name: Optional[str] = Field(None, description="File name or path of the image")
    file_identifier: Optional[str] = Field(None, description="Generic identifier of the image file")
    document_identifier: Optional[str] = Field(
        None, description="Generic identifier of the source document"
    )
    ppi: Optional[int] = Field(None, gt=0, description="Scan resolution in pixels per inch")
    checksum: Optional[str] = None
    checksum_type: Optional[str] = Field(None, description="Checksum algorithm, e.g. MD5")


class Page(OcrBaseModel):
    """
    A page of recognized text.

    Maps to ``ocr_page`` in hOCR and ``Page`` in ALTO. Direct children may be
    blocks, paragraphs or lines since formats are free to skip levels.
    """

    type: Literal["page"] = "page"
    bbox: BoundingBox
    id: Optional[str] = None
    physical_page_number: Optional[int] = None
    logical_page_number: Optional[str] = Field(
        None, description="Page number as printed on the page"
    )
    image_source: Optional[ImageSource] = None
    features: list[OcrFeature] = Field(default_factory=list)
    children: list[
        Annotated[Union[Block, Paragraph, Line], Field(discriminator="type")]
    ] = Field(default_factory=list)

    @property
    def width(self) -> float:
        return self.bbox.width

    @property
    def height(self) -> float:
        return self.bbox.height

    @property
    def blocks(self) -> list[Block]:
        """Blocks on the page."""
        return [c for c in self.children if c.type == "block"]

    @property
    def paragraphs(self) -> list[Paragraph]:
        """All paragraphs on the page, including those inside blocks."""
        out: list[Paragraph] = []
        for child in self.children:
            if child.type == "block":
                out.extend(child.paragraphs)
            elif child.type == "paragraph":
                out.append(child)
        return out

    @property
    def lines(self) -> list[Line]:
        """All lines on the page."""
        out: list[Line] = []
        for child in self.children:
            if child.type == "line":
                out.append(child)
            else:
                out.extend(child.lines)
        return out

    @property
    def words(self) -> list[Word]:
        """All words on the page."""
        return [w for child in self.children for w in child.words]

    @property
    def text(self) -> str:
        """Text content of the page."""
        return join_texts(self.children)


def compute_features(page: Page) -> list[OcrFeature]:
    """Determine which optional features appear anywhere on a page.

    Args:
        page: Fully parsed page.

    Returns:
        Features in declaration order of :class:`OcrFeature`.
    """
    words = page.words
    lines = page.lines
    found = set()

    elements = [*page.blocks, *page.paragraphs, *lines, *words]
    if any(e.polygon is not None for e in elements):
        found.add(OcrFeature.POLYGONS)
    if any(line.baseline is not None for line in lines):
        found.add(OcrFeature.BASELINE)
    if any(w.confidence is not None for w in words):
        found.add(OcrFeature.CONFIDENCE)
    if any(w.choices for w in words):
        found.add(OcrFeature.CHOICES)
    if any(w.hyphen_start for w in words):
        found.add(OcrFeature.HYPHEN)

    return [f for f in OcrFeature if f in found]

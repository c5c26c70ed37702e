"""Line, paragraph and block models.

Children are the only stored state; every list or text view below is
recomputed from them on access.
"""

from typing import Annotated, Literal, Optional, Union

from pydantic import Field

from .base import BoundingBox, OcrBaseModel, Point
from .word import Word


def join_texts(children: list) -> str:
    """Join the texts of line/paragraph/block children.

    Adjacent children are separated by a space after a line and by a newline
    after a paragraph or block, except when the preceding child ends with a
    hyphen-start word.
    """
    out: list[str] = []
    last = len(children) - 1
    for idx, child in enumerate(children):
        out.append(child.text)
        if idx == last:
            break
        words = child.words
        if words and words[-1].hyphen_start:
            continue
        out.append(" " if child.type == "line" else "\n")
    return "".join(out)


class Line(OcrBaseModel):
    """
    A line of text.

    Maps to ``ocr_line`` in hOCR and ``TextLine`` in ALTO. Children are words
    interleaved with literal strings (usually single spaces).
    """

    type: Literal["line"] = "line"
    bbox: BoundingBox
    polygon: Optional[list[Point]] = None
    baseline: Optional[list[Point]] = Field(
        None, description="Polyline the glyphs rest upon"
    )
    children: list[Union[Word, str]] = Field(default_factory=list)

    @property
    def words(self) -> list[Word]:
        """Words on the line, without interleaved strings."""
        return [c for c in self.children if not isinstance(c, str)]

    @property
    def text(self) -> str:
        """Plain text of the line."""
        return "".join(c if isinstance(c, str) else c.text for c in self.children)


class Paragraph(OcrBaseModel):
    """
    A paragraph of lines.

    Maps to ``ocr_par`` in hOCR, ALTO has no equivalent. Geometry is optional
    since not every engine emits it.
    """

    type: Literal["paragraph"] = "paragraph"
    bbox: Optional[BoundingBox] = None
    polygon: Optional[list[Point]] = None
    children: list[Line] = Field(default_factory=list)

    @property
    def lines(self) -> list[Line]:
        return list(self.children)

    @property
    def words(self) -> list[Word]:
        return [w for line in self.children for w in line.words]

    @property
    def text(self) -> str:
        return join_texts(self.children)


class Block(OcrBaseModel):
    """
    A block of text.

    Maps to ``ocr_carea`` in hOCR and ``TextBlock`` in ALTO.
    """

    type: Literal["block"] = "block"
    bbox: BoundingBox
    polygon: Optional[list[Point]] = None
    children: list[
        Annotated[Union[Paragraph, Line], Field(discriminator="type")]
    ] = Field(default_factory=list)

    @property
    def paragraphs(self) -> list[Paragraph]:
        """Paragraphs directly in the block."""
        return [c for c in self.children if c.type == "paragraph"]

    @property
    def lines(self) -> list[Line]:
        """All lines in the block, including those inside paragraphs."""
        out: list[Line] = []
        for child in self.children:
            if child.type == "paragraph":
                out.extend(child.lines)
            else:
                out.append(child)
        return out

    @property
    def words(self) -> list[Word]:
        return [w for line in self.lines for w in line.words]

    @property
    def text(self) -> str:
        return join_texts(self.children)

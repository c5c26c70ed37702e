"""Word-level models."""

from typing import Literal, Optional

from pydantic import Field

from .base import BoundingBox, OcrBaseModel, Point


class WordChoice(OcrBaseModel):
    """An alternative reading for a word."""

    text: str
    probability: Optional[float] = Field(
        None, ge=0.0, le=1.0, description="Probability of this reading, if known"
    )


class Word(OcrBaseModel):
    """
    A word as recognized by the OCR engine.

    Maps to ``ocrx_word`` in hOCR and ``String`` in ALTO.
    """

    type: Literal["word"] = "word"
    bbox: BoundingBox
    polygon: Optional[list[Point]] = None
    text: str = Field(..., min_length=1)
    confidence: Optional[float] = Field(
        None, description="Recognition confidence, normalized to [0, 1] once its line is read"
    )
    choices: Optional[list[WordChoice]] = None
    hyphen_start: bool = Field(
        default=False, description="Word is the first part of a word hyphenated across lines"
    )

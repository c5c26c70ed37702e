"""Document tree models shared by all OCR formats.

Model Hierarchy:
- Page → Blocks → Paragraphs → Lines → Words
- Any level between Page and Line may be skipped by a format.

Lists of descendants and plain text are derived on access from each node's
``children`` and are never stored.
"""

from .base import (
    BoundingBox,
    Dimensions,
    OcrBaseModel,
    OcrFeature,
    Point,
    Polygon,
)
from .block import Block, Line, Paragraph, join_texts
from .page import ImageSource, Page, compute_features
from .word import Word, WordChoice

__all__ = [
    # Base
    "BoundingBox",
    "Dimensions",
    "OcrBaseModel",
    "OcrFeature",
    "Point",
    "Polygon",
    # Elements
    "Word",
    "WordChoice",
    "Line",
    "Paragraph",
    "Block",
    "Page",
    "ImageSource",
    # Helpers
    "compute_features",
    "join_texts",
]

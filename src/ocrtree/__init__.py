"""ocrtree - Streaming hOCR and ALTO parser producing one unified document tree."""

from .exceptions import (
    ConfigurationError,
    GeometryError,
    MissingWordTextError,
    OcrParseError,
    OcrTreeError,
    PolygonParseError,
    TokenizerNotInitializedError,
    UnexpectedEndOfInput,
    UnsupportedFormatError,
)
from .models import (
    Block,
    BoundingBox,
    Dimensions,
    ImageSource,
    Line,
    OcrFeature,
    Page,
    Paragraph,
    Point,
    Word,
    WordChoice,
)
from .reader import OcrFormat, parse_ocr_page, parse_ocr_pages
from .session import OcrSession

__all__ = [
    # Entry points
    "OcrSession",
    "OcrFormat",
    "parse_ocr_page",
    "parse_ocr_pages",
    # Models
    "Page",
    "Block",
    "Paragraph",
    "Line",
    "Word",
    "WordChoice",
    "ImageSource",
    "BoundingBox",
    "Dimensions",
    "Point",
    "OcrFeature",
    # Errors
    "OcrTreeError",
    "OcrParseError",
    "GeometryError",
    "MissingWordTextError",
    "UnexpectedEndOfInput",
    "PolygonParseError",
    "ConfigurationError",
    "TokenizerNotInitializedError",
    "UnsupportedFormatError",
]

__version__ = "0.1.0"

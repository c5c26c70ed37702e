"""Exceptions raised while decoding OCR markup."""


class OcrTreeError(Exception):
    """Base class for all ocrtree errors."""

    pass


class OcrParseError(OcrTreeError):
    """Raised when a document cannot be decoded."""

    pass


class GeometryError(OcrParseError):
    """Raised when an element has neither coordinates nor a shape to derive them from."""

    pass


class MissingWordTextError(OcrParseError):
    """Raised when an ALTO String carries no CONTENT."""

    pass


class UnexpectedEndOfInput(OcrParseError):
    """Raised when the event stream ends while an element is still open."""

    pass


class PolygonParseError(OcrParseError):
    """Raised when a polygon point list contains non-numeric values."""

    pass


class ConfigurationError(OcrTreeError):
    """Raised when the caller's configuration cannot produce pixel coordinates."""

    pass


class TokenizerNotInitializedError(OcrTreeError):
    """Raised when decoding is attempted on a session that was never initialized."""

    pass


class UnsupportedFormatError(OcrTreeError):
    """Raised for a markup format other than hOCR or ALTO."""

    pass

"""Format decoders for OCR markup.

Decoders:
1. hocr - hOCR (HTML with ``class``/``title`` conventions)
2. alto - ALTO XML

Both consume the same tokenizer events through an :class:`EventCursor` and
produce the same document tree models.
"""

from .alto import AltoDecoder, AltoRole
from .cursor import EventCursor
from .hocr import HocrDecoder, HocrRole, get_hocr_role, parse_hocr_title

__all__ = [
    "EventCursor",
    # hOCR
    "HocrDecoder",
    "HocrRole",
    "get_hocr_role",
    "parse_hocr_title",
    # ALTO
    "AltoDecoder",
    "AltoRole",
]

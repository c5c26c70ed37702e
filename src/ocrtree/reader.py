"""Unified entry point for reading hOCR and ALTO documents."""

import logging
from collections.abc import Iterator, Sequence
from enum import Enum
from typing import Optional, Union

from ocrtree.exceptions import OcrParseError, UnsupportedFormatError
from ocrtree.geometry import ReferenceSizeCallback
from ocrtree.models import Dimensions, Page
from ocrtree.parsers import AltoDecoder, HocrDecoder
from ocrtree.session import OcrSession
from ocrtree.streams import Markup

logger = logging.getLogger(__name__)

ReferenceSize = Union[Dimensions, tuple[float, float]]
ReferenceSizes = Union[Sequence[Optional[ReferenceSize]], ReferenceSizeCallback]


class OcrFormat(str, Enum):
    """Supported markup formats."""

    HOCR = "hocr"
    ALTO = "alto"


def to_format(fmt: Union[OcrFormat, str]) -> OcrFormat:
    """Validate a format tag.

    Raises:
        UnsupportedFormatError: For anything but ``hocr`` or ``alto``.
    """
    try:
        return OcrFormat(fmt.lower() if isinstance(fmt, str) else fmt)
    except ValueError:
        raise UnsupportedFormatError(
            f"Unsupported format {fmt!r}, expected one of: "
            + ", ".join(f.value for f in OcrFormat)
        ) from None


def to_dimensions(size: Optional[ReferenceSize]) -> Optional[Dimensions]:
    """Accept dimensions or a ``(width, height)`` tuple."""
    if size is None or isinstance(size, Dimensions):
        return size
    width, height = size
    return Dimensions(width=width, height=height)


def as_reference_callback(
    reference_sizes: Optional[ReferenceSizes],
) -> Optional[ReferenceSizeCallback]:
    """Turn a list of reference sizes into a lookup callback.

    Args:
        reference_sizes: One size per page in document order, or a callback
            receiving the page index and its raw attributes.

    Returns:
        Callback returning the size for a page, ``None`` (no scaling) for
        indices past the end of the list.
    """
    if reference_sizes is None:
        return None
    if callable(reference_sizes):
        callback = reference_sizes
        return lambda idx, attribs: to_dimensions(callback(idx, attribs))

    sizes = [to_dimensions(s) for s in reference_sizes]

    def lookup(idx: int, attribs: dict[str, str]) -> Optional[Dimensions]:
        return sizes[idx] if 0 <= idx < len(sizes) else None

    return lookup


def parse_ocr_pages(
    markup: Markup,
    fmt: Union[OcrFormat, str],
    reference_sizes: Optional[ReferenceSizes] = None,
    *,
    session: OcrSession,
) -> Iterator[Page]:
    """Parse all pages of an hOCR or ALTO document.

    Pages are decoded lazily, one per page element, in document order.
    Closing the returned generator stops tokenizing and releases the input.

    Args:
        markup: The document: text, bytes, a binary file, a path or an
            iterable of byte chunks.
        fmt: ``"hocr"`` or ``"alto"``.
        reference_sizes: Reference page dimensions to scale coordinates to,
            either one per page or a callback taking the page index and its
            attributes. For ALTO documents with non-pixel coordinates this is
            required.
        session: Initialized decode session.

    Returns:
        Generator of pages.

    Raises:
        UnsupportedFormatError: For unknown formats.
        TokenizerNotInitializedError: If the session is not initialized.
    """
    fmt = to_format(fmt)
    callback = as_reference_callback(reference_sizes)
    if fmt == OcrFormat.HOCR:
        cursor = session.open_events(markup, html=True)
        return HocrDecoder(cursor, callback).pages()
    cursor = session.open_events(markup, html=False)
    return AltoDecoder(cursor, callback).pages()


def parse_ocr_page(
    markup: Markup,
    fmt: Union[OcrFormat, str],
    reference_size: Optional[ReferenceSize] = None,
    *,
    session: OcrSession,
) -> Page:
    """Parse the first page of an hOCR or ALTO document.

    The rest of the document is not read.

    Raises:
        OcrParseError: If the document contains no page.
    """
    sizes = [reference_size] if reference_size is not None else None
    pages = parse_ocr_pages(markup, fmt, sizes, session=session)
    try:
        page = next(pages, None)
    finally:
        pages.close()
    if page is None:
        raise OcrParseError("Failed to parse page, no page element found")
    return page

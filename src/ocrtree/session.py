"""Decode sessions.

A session owns the tokenizer backend and is passed explicitly to every decode
call. It has to be initialized once before use; the tokenizer backend can be
replaced through the ``loader`` argument of :meth:`OcrSession.initialize`.
"""

import logging
from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING, Optional, Union

from ocrtree.config import Settings, settings as default_settings
from ocrtree.exceptions import TokenizerNotInitializedError
from ocrtree.parsers.cursor import EventCursor
from ocrtree.streams import Markup, is_text, iter_chunks
from ocrtree.tokenizer import LxmlTokenizer

if TYPE_CHECKING:
    from ocrtree.models import Dimensions, Page
    from ocrtree.reader import OcrFormat, ReferenceSizes

logger = logging.getLogger(__name__)

TokenizerLoader = Callable[[Settings], LxmlTokenizer]


class OcrSession:
    """Context shared by decode calls: settings and the tokenizer backend."""

    def __init__(self, settings: Optional[Settings] = None):
        """Create an uninitialized session.

        Args:
            settings: Settings to use, defaults to the environment settings.
        """
        self.settings = settings or default_settings
        self.tokenizer: Optional[LxmlTokenizer] = None

    @property
    def initialized(self) -> bool:
        return self.tokenizer is not None

    def initialize(self, loader: Optional[TokenizerLoader] = None) -> "OcrSession":
        """Load the tokenizer backend.

        Args:
            loader: Callable receiving the settings and returning a tokenizer.
                Defaults to the lxml tokenizer.

        Returns:
            The session itself, for chaining.
        """
        self.tokenizer = (loader or LxmlTokenizer)(self.settings)
        logger.debug(
            "Initialized tokenizer %s (lxml %s, libxml2 %s)",
            type(self.tokenizer).__name__,
            self.tokenizer.version,
            self.tokenizer.libxml_version,
        )
        return self

    def open_events(self, markup: Markup, html: bool) -> EventCursor:
        """Start tokenizing markup.

        Args:
            markup: Input in any supported form.
            html: Tokenize as HTML (hOCR) instead of XML (ALTO).

        Returns:
            A cursor over the lazily produced events.

        Raises:
            TokenizerNotInitializedError: If :meth:`initialize` was not called.
        """
        if self.tokenizer is None:
            raise TokenizerNotInitializedError(
                "Tokenizer not initialized, call OcrSession.initialize() first"
            )
        encoding = "utf-8" if is_text(markup) else None
        events = self.tokenizer.events(
            iter_chunks(markup, self.settings.chunk_size), html=html, encoding=encoding
        )
        return EventCursor(
            events, resolves_entities=getattr(self.tokenizer, "resolves_entities", False)
        )

    def parse_pages(
        self,
        markup: Markup,
        fmt: Union["OcrFormat", str],
        reference_sizes: Optional["ReferenceSizes"] = None,
    ) -> Iterator["Page"]:
        """Parse all pages, see :func:`ocrtree.reader.parse_ocr_pages`."""
        from ocrtree.reader import parse_ocr_pages

        return parse_ocr_pages(markup, fmt, reference_sizes, session=self)

    def parse_page(
        self,
        markup: Markup,
        fmt: Union["OcrFormat", str],
        reference_size: Optional["Dimensions"] = None,
    ) -> "Page":
        """Parse the first page, see :func:`ocrtree.reader.parse_ocr_page`."""
        from ocrtree.reader import parse_ocr_page

        return parse_ocr_page(markup, fmt, reference_size, session=self)

"""Streaming tokenizer built on lxml's feed parser interface.

lxml calls the target's ``start``/``data``/``end`` methods while chunks are
fed, so events become available chunk by chunk without building a tree.
"""

import logging
from collections import deque
from collections.abc import Iterable, Iterator
from typing import Optional

from lxml import etree

from ocrtree.config import Settings
from ocrtree.events import CloseTag, Event, OpenTag, Text, local_name
from ocrtree.exceptions import OcrParseError

logger = logging.getLogger(__name__)


class EventCollector:
    """Parser target that turns lxml callbacks into queued events."""

    def __init__(self):
        self.events: deque[Event] = deque()
        self._text: list[str] = []
        self._open: list[tuple[str, dict[str, str], list[str]]] = []
        self._index = 0

    def _emit(self, event_type, *args) -> None:
        self.events.append(event_type(*args, index=self._index))
        self._index += 1

    def _flush_text(self) -> None:
        if not self._text:
            return
        value = "".join(self._text)
        self._text = []
        # Text outside the root element is irrelevant to the decoders
        if not self._open:
            return
        self._open[-1][2].append(value)
        self._emit(Text, value)

    def start(self, tag, attrib) -> None:
        self._flush_text()
        name = local_name(tag)
        attributes = {local_name(k): v for k, v in attrib.items()}
        self._open.append((name, attributes, []))
        self._emit(OpenTag, name, attributes)

    def end(self, tag) -> None:
        self._flush_text()
        name, attributes, text_nodes = self._open.pop()
        self._emit(CloseTag, name, attributes, tuple(text_nodes))

    def data(self, data) -> None:
        self._text.append(data)

    def close(self) -> None:
        self._flush_text()


class LxmlTokenizer:
    """Tokenizer for XML (ALTO) and HTML (hOCR) markup."""

    #: lxml decodes character references itself
    resolves_entities = True

    def __init__(self, settings: Settings):
        """Initialize the tokenizer.

        Args:
            settings: Settings providing the lxml parser options.
        """
        self.settings = settings
        self.version = ".".join(str(v) for v in etree.LXML_VERSION[:3])
        self.libxml_version = ".".join(str(v) for v in etree.LIBXML_VERSION)

    def _make_parser(
        self, collector: EventCollector, html: bool, encoding: Optional[str]
    ):
        if html:
            return etree.HTMLParser(
                target=collector,
                encoding=encoding,
                recover=self.settings.recover_html,
                huge_tree=self.settings.huge_tree,
                no_network=True,
            )
        return etree.XMLParser(
            target=collector,
            encoding=encoding,
            huge_tree=self.settings.huge_tree,
            no_network=True,
            resolve_entities=False,
        )

    def events(
        self,
        chunks: Iterable[bytes],
        html: bool = False,
        encoding: Optional[str] = None,
    ) -> Iterator[Event]:
        """Tokenize byte chunks into events.

        Args:
            chunks: Markup as byte chunks.
            html: Use the lenient HTML parser instead of the XML parser.
            encoding: Override the encoding declared in the document.

        Yields:
            Events in document order.

        Raises:
            OcrParseError: If lxml rejects the markup.
        """
        collector = EventCollector()
        parser = self._make_parser(collector, html, encoding)
        chunks = iter(chunks)
        try:
            while True:
                try:
                    chunk = next(chunks)
                except StopIteration:
                    break
                try:
                    parser.feed(chunk)
                except etree.LxmlError as e:
                    raise OcrParseError(f"Failed to tokenize markup: {e}") from e
                while collector.events:
                    yield collector.events.popleft()
            try:
                parser.close()
            except etree.LxmlError as e:
                raise OcrParseError(f"Failed to tokenize markup: {e}") from e
            while collector.events:
                yield collector.events.popleft()
        finally:
            close = getattr(chunks, "close", None)
            if close is not None:
                close()

"""Depth-tracked cursor over a tokenizer event stream.

Every element handler reads the events of its own element through
:meth:`EventCursor.descend` and hands the cursor on to handlers of child
elements. Depth bookkeeping lives in the cursor alone, so a handler that
returns early or skips a child cannot leave the stream misaligned.
"""

from collections.abc import Iterable, Iterator
from typing import Optional

from ocrtree.events import CloseTag, Event, OpenTag
from ocrtree.exceptions import UnexpectedEndOfInput


class EventCursor:
    """Forward-only reader of events that knows the current nesting depth."""

    def __init__(self, events: Iterable[Event], resolves_entities: bool = False):
        """Initialize the cursor.

        Args:
            events: Event stream, consumed lazily.
            resolves_entities: Whether the tokenizer already decoded character
                references in text and attribute values.
        """
        self._events = iter(events)
        self.resolves_entities = resolves_entities
        self.depth = 0
        self.last: Optional[Event] = None

    def next_event(self) -> Optional[Event]:
        """Advance by one event, ``None`` once the stream is exhausted."""
        event = next(self._events, None)
        if isinstance(event, OpenTag):
            self.depth += 1
        elif isinstance(event, CloseTag):
            self.depth -= 1
        self.last = event
        return event

    def __iter__(self) -> Iterator[Event]:
        """Iterate over all remaining events regardless of depth."""
        while (event := self.next_event()) is not None:
            yield event

    def descend(self, element: Optional[OpenTag] = None) -> Iterator[Event]:
        """Iterate over the contents of the element that was just opened.

        Must be called right after the element's :class:`OpenTag` was read.
        The element's own :class:`CloseTag` is consumed but not yielded.

        Args:
            element: The open tag, used for error messages.

        Raises:
            UnexpectedEndOfInput: If the stream ends before the element closes.
        """
        floor = self.depth
        while True:
            event = self.next_event()
            if event is None:
                name = element.name if element is not None else "element"
                raise UnexpectedEndOfInput(f"Unexpected end of input inside <{name}>")
            if isinstance(event, CloseTag) and self.depth < floor:
                return
            yield event

    def skip(self, element: Optional[OpenTag] = None) -> None:
        """Consume the rest of the element that was just opened."""
        for _ in self.descend(element):
            pass

    def close(self) -> None:
        """Release the underlying event stream."""
        close = getattr(self._events, "close", None)
        if close is not None:
            close()

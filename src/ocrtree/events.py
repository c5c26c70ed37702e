"""Tokenizer events consumed by the format decoders.

Any tokenizer may feed the decoders as long as it yields these events in
document order and properly nested.
"""

from typing import NamedTuple, Union


class OpenTag(NamedTuple):
    """An element was opened."""

    name: str
    attributes: dict[str, str]
    index: int = 0


class Text(NamedTuple):
    """A run of character data."""

    value: str
    index: int = 0


class CloseTag(NamedTuple):
    """An element was closed.

    Carries the element's attributes again, plus the text nodes that were
    direct children of the element.
    """

    name: str
    attributes: dict[str, str]
    text_nodes: tuple[str, ...] = ()
    index: int = 0


Event = Union[OpenTag, Text, CloseTag]


def describe(event: Event) -> str:
    """Short description of an event's position for log messages."""
    if isinstance(event, Text):
        return f"[event {event.index}] "
    return f"[event {event.index}] <{event.name}> "


def local_name(name: str) -> str:
    """Strip a ``{namespace}`` prefix from a tag or attribute name."""
    if name.startswith("{"):
        return name.rsplit("}", 1)[1]
    return name

"""Normalization of the supported input types to a stream of byte chunks."""

import os
from collections.abc import Iterable, Iterator
from typing import BinaryIO, Union

Markup = Union[str, bytes, bytearray, memoryview, BinaryIO, os.PathLike, Iterable[bytes]]


def is_text(markup: Markup) -> bool:
    """True if the markup was handed in as decoded text."""
    return isinstance(markup, str)


def iter_chunks(markup: Markup, chunk_size: int = 64 * 1024) -> Iterator[bytes]:
    """Yield the markup as byte chunks.

    Args:
        markup: Text, a byte buffer, a binary file object, a path to a file or
            an iterable of byte chunks.
        chunk_size: Number of bytes to read at once from files.

    Yields:
        Non-empty byte chunks in input order.

    Files opened from a path are closed when the generator is exhausted or
    closed; file objects and iterables passed in by the caller are left open.
    """
    if isinstance(markup, str):
        yield markup.encode("utf-8")
        return
    if isinstance(markup, (bytes, bytearray, memoryview)):
        data = bytes(markup)
        for start in range(0, len(data), chunk_size):
            yield data[start : start + chunk_size]
        return
    if isinstance(markup, os.PathLike):
        with open(markup, "rb") as fp:
            yield from _read_file(fp, chunk_size)
        return
    if hasattr(markup, "read"):
        yield from _read_file(markup, chunk_size)
        return

    for chunk in markup:
        if isinstance(chunk, str):
            chunk = chunk.encode("utf-8")
        if chunk:
            yield bytes(chunk)


def _read_file(fp: BinaryIO, chunk_size: int) -> Iterator[bytes]:
    while True:
        chunk = fp.read(chunk_size)
        if not chunk:
            break
        if isinstance(chunk, str):
            chunk = chunk.encode("utf-8")
        yield chunk

"""Attribute coercion and geometry helpers shared by the format decoders."""

import logging
import re
from collections.abc import Callable, Iterable, Mapping
from typing import NamedTuple, Optional, Union

from ocrtree.exceptions import GeometryError, PolygonParseError
from ocrtree.models import BoundingBox, Dimensions, Point

logger = logging.getLogger(__name__)

ReferenceSizeCallback = Callable[[int, dict[str, str]], Optional[Dimensions]]

POINT_SEPARATOR = re.compile(r"[\s,]+")

NAMED_ENTITIES = {
    "amp": "&",
    "apos": "'",
    "quot": '"',
    "lt": "<",
    "gt": ">",
}
NAMED_ENTITY_REGEX = re.compile(rf"&({'|'.join(NAMED_ENTITIES)});")
NUMERIC_ENTITY_REGEX = re.compile(r"&#(\d+);")
HEX_ENTITY_REGEX = re.compile(r"&#[xX]([A-Fa-f0-9]+);")


def coerce_attributes(
    attributes: Mapping[str, str],
    numeric_fields: Iterable[str],
) -> dict[str, Union[float, str]]:
    """Parse the known numeric attributes of a tag as floats.

    Args:
        attributes: Raw attribute map of a tag.
        numeric_fields: Names of the attributes to parse as numbers.

    Returns:
        Attribute map with numeric fields as floats and everything else as
        raw text. Numeric fields that are missing or unparseable are absent.
    """
    numeric = set(numeric_fields)
    out: dict[str, Union[float, str]] = {}
    for name, value in attributes.items():
        if name not in numeric:
            out[name] = value
            continue
        try:
            out[name] = float(value)
        except (TypeError, ValueError):
            logger.debug("Ignoring non-numeric value %r for %s", value, name)
    return out


class PartialBox(NamedTuple):
    """Box fields as read from markup, any of which may be missing."""

    x: Optional[float] = None
    y: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None

    @property
    def complete(self) -> bool:
        """True if all four fields are present."""
        return None not in self

    def to_bbox(self, scale_factor: float = 1.0) -> BoundingBox:
        """Convert to a scaled bounding box.

        Raises:
            GeometryError: If any field is missing.
        """
        if not self.complete:
            raise GeometryError(f"Incomplete bounding box: {self._asdict()}")
        return BoundingBox(
            x=self.x, y=self.y, width=self.width, height=self.height
        ).scaled(scale_factor)


def extract_bbox(
    attributes: Mapping[str, str],
    x: str = "HPOS",
    y: str = "VPOS",
    width: str = "WIDTH",
    height: str = "HEIGHT",
) -> PartialBox:
    """Read the four box fields from a tag's attributes.

    The default names are ALTO's; pass other names for other dialects.
    """
    attrs = coerce_attributes(attributes, (x, y, width, height))
    return PartialBox(
        x=attrs.get(x),
        y=attrs.get(y),
        width=attrs.get(width),
        height=attrs.get(height),
    )


def parse_points(value: str, scale_factor: float = 1.0, position: str = "") -> list[Point]:
    """Parse a flat list of numbers into scaled points.

    Numbers may be separated by whitespace, commas or both, so both
    ``"1 2 3 4"`` and ``"1,2 3,4"`` give two points.

    Args:
        value: Point list as found in the markup.
        scale_factor: Factor to apply to every coordinate.
        position: Location prefix for the warning message.

    Returns:
        List of points. A trailing unpaired number is dropped with a warning.

    Raises:
        PolygonParseError: If a token is not a number.
    """
    tokens = [t for t in POINT_SEPARATOR.split(value.strip()) if t]
    try:
        coords = [float(t) for t in tokens]
    except ValueError as e:
        raise PolygonParseError(f"Invalid point list {value!r}: {e}")

    if len(coords) % 2:
        logger.warning(
            "%sOdd number of coordinates in point list %r, dropping the last one",
            position,
            value,
        )
        coords = coords[:-1]

    return [
        Point(x=coords[i] * scale_factor, y=coords[i + 1] * scale_factor)
        for i in range(0, len(coords), 2)
    ]


def bbox_from_polygon(polygon: Optional[list[Point]]) -> BoundingBox:
    """Compute the smallest axis-aligned box containing a polygon.

    Raises:
        GeometryError: If there is no polygon to derive the box from.
    """
    if not polygon:
        raise GeometryError("No coordinates and no polygon to derive them from")
    xs = [p.x for p in polygon]
    ys = [p.y for p in polygon]
    return BoundingBox.from_corners(min(xs), min(ys), max(xs), max(ys))


def resolve_entities(text: str) -> str:
    """Replace XML character references with the characters they stand for.

    Handles the five predefined named entities as well as decimal (``&#NN;``)
    and hexadecimal (``&#xHH;``) references.
    """
    if "&" not in text:
        return text
    text = NAMED_ENTITY_REGEX.sub(lambda m: NAMED_ENTITIES[m.group(1)], text)
    text = NUMERIC_ENTITY_REGEX.sub(lambda m: chr(int(m.group(1), 10)), text)
    text = HEX_ENTITY_REGEX.sub(lambda m: chr(int(m.group(1), 16)), text)
    return text


def determine_scale_factor(
    width: float,
    height: float,
    reference: Optional[Dimensions],
    position: str = "",
) -> float:
    """Determine the factor mapping native page coordinates to a reference size.

    Args:
        width: Native page width.
        height: Native page height.
        reference: Desired page size, ``None`` to keep native coordinates.
        position: Document position used to prefix the warning.

    Returns:
        Exactly ``1`` if no reference is given or it matches the native size,
        otherwise the x-axis factor.
    """
    if reference is None:
        return 1
    if width == reference.width and height == reference.height:
        return 1
    if not width or not height:
        raise GeometryError(f"Cannot scale a page of size {width}x{height}")

    factor_x = reference.width / width
    factor_y = reference.height / height
    # Factors agree if each one reproduces the other axis up to rounding
    if round(factor_y * width) != round(reference.width) or round(
        factor_x * height
    ) != round(reference.height):
        logger.warning(
            "%sDiffering scale factors for x and y axis, using x factor: x=%s, y=%s",
            position,
            factor_x,
            factor_y,
        )
    return factor_x

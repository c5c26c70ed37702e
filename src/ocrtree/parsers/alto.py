"""ALTO decoder.

ALTO uses dedicated element names per layout level (``Page``,
``TextBlock``, ``TextLine``, ``String``) and plain attributes for geometry.
Elements may describe their outline with a nested ``Shape``; if they lack
position attributes, their box is derived from that shape once it has been
read, which is why elements are built when they close.
"""

import logging
from collections.abc import Iterator
from enum import Enum
from typing import Optional

from ocrtree.events import CloseTag, OpenTag, describe
from ocrtree.exceptions import (
    ConfigurationError,
    GeometryError,
    MissingWordTextError,
    PolygonParseError,
)
from ocrtree.geometry import (
    PartialBox,
    ReferenceSizeCallback,
    bbox_from_polygon,
    coerce_attributes,
    determine_scale_factor,
    extract_bbox,
    parse_points,
    resolve_entities,
)
from ocrtree.models import (
    Block,
    BoundingBox,
    Dimensions,
    ImageSource,
    Line,
    Page,
    Point,
    Word,
    WordChoice,
    compute_features,
)
from ocrtree.parsers.cursor import EventCursor

logger = logging.getLogger(__name__)


class AltoRole(str, Enum):
    """Elements the ALTO decoder reacts to."""

    PAGE = "Page"
    BLOCK = "TextBlock"
    LINE = "TextLine"
    WORD = "String"
    SPACE = "SP"
    HYPHEN = "HYP"
    SHAPE = "Shape"
    GLYPH = "Glyph"


ALTO_ROLES = {role.value: role for role in AltoRole}

PAGE_CHILDREN = frozenset({AltoRole.BLOCK})
BLOCK_CHILDREN = frozenset({AltoRole.LINE, AltoRole.SHAPE})
LINE_CHILDREN = frozenset(
    {AltoRole.WORD, AltoRole.SPACE, AltoRole.HYPHEN, AltoRole.SHAPE}
)

PIXEL_UNIT = "pixel"
HYPHEN_START = "HypPart1"


class AltoDecoder:
    """Decodes the pages of a single ALTO document.

    Create one decoder per document, it holds the state of one decode run.
    """

    def __init__(
        self,
        cursor: EventCursor,
        reference_sizes: Optional[ReferenceSizeCallback] = None,
    ):
        """Initialize the decoder.

        Args:
            cursor: Cursor over the document's events.
            reference_sizes: Callback returning the reference size for a page
                given its index and attributes, or ``None`` for no scaling.
        """
        self.cursor = cursor
        self.reference_sizes = reference_sizes
        self.scale_factor: float = 1
        self.image_source: Optional[ImageSource] = None

    def pages(self) -> Iterator[Page]:
        """Yield each page as soon as it has been read completely.

        Raises:
            ConfigurationError: If coordinates are not in pixels and the caller
                supplied no reference sizes to convert them.
        """
        page_idx = 0
        try:
            for event in self.cursor:
                if isinstance(event, CloseTag) and event.name == "MeasurementUnit":
                    self._check_unit(event)
                    continue
                if not isinstance(event, OpenTag):
                    continue
                if event.name == "sourceImageInformation":
                    self.image_source = self._handle_image_source(event)
                elif event.name == AltoRole.PAGE.value:
                    reference = None
                    if self.reference_sizes is not None:
                        reference = self.reference_sizes(page_idx, dict(event.attributes))
                    yield self._handle_page(event, reference)
                    page_idx += 1
        finally:
            self.cursor.close()

    def _check_unit(self, tag: CloseTag) -> None:
        unit = "".join(tag.text_nodes).strip()
        if unit != PIXEL_UNIT and self.reference_sizes is None:
            raise ConfigurationError(
                f"Measurement unit {unit} requires a reference size to obtain pixel coordinates"
            )

    def _text(self, value: str) -> str:
        if not self.cursor.resolves_entities:
            return resolve_entities(value)
        return value

    def _handle_image_source(self, tag: OpenTag) -> Optional[ImageSource]:
        fields = {}
        for event in self.cursor.descend(tag):
            if not isinstance(event, CloseTag):
                continue
            value = self._text("".join(event.text_nodes).strip())
            if not value:
                continue
            if event.name == "fileName":
                fields["file_name"] = value
            elif event.name == "fileIdentifier":
                location = event.attributes.get("fileIdentifierLocation")
                fields["file_identifier"] = f"{location}:{value}" if location else value
            elif event.name == "documentIdentifier":
                location = event.attributes.get("documentIdentifierLocation")
                fields["document_identifier"] = f"{location}:{value}" if location else value
        return ImageSource(**fields) if fields else None

    def _resolve_bbox(
        self, box: PartialBox, polygon: Optional[list[Point]], tag: OpenTag
    ) -> BoundingBox:
        """Box from the element's attributes, or else from its shape.

        Raises:
            GeometryError: If there are neither attributes nor a shape.
        """
        if box.complete:
            return box.to_bbox(self.scale_factor)
        try:
            return bbox_from_polygon(polygon)
        except GeometryError:
            raise GeometryError(
                f"{describe(tag)}Could not get {tag.name} dimensions, "
                "no position attributes and no Shape"
            ) from None

    def _dispatch(self, event: OpenTag, allowed: frozenset) -> Optional[AltoRole]:
        """Role of a child element if it should be handled.

        Unknown elements are transparent and give ``None`` without consuming
        anything. Known elements that are not allowed here are skipped along
        with their subtree; shapes of elements that are not modelled, such as
        illustrations, are skipped silently.
        """
        role = ALTO_ROLES.get(event.name)
        if role is None or role in allowed:
            return role
        if role not in (AltoRole.SHAPE, AltoRole.GLYPH):
            logger.warning(
                "%sUnexpected ALTO element, expected one of [%s]",
                describe(event),
                ", ".join(sorted(r.value for r in allowed)),
            )
        self.cursor.skip(event)
        return None

    def _handle_shape(self, tag: OpenTag) -> Optional[list[Point]]:
        """Read the polygon inside a ``Shape``, ``None`` if it is unusable."""
        polygon = None
        for event in self.cursor.descend(tag):
            if not isinstance(event, OpenTag) or event.name != "Polygon":
                continue
            points = event.attributes.get("POINTS")
            if points is None:
                continue
            try:
                polygon = parse_points(points, self.scale_factor, describe(event))
            except PolygonParseError as e:
                logger.warning("%sIgnoring Shape with malformed POINTS: %s", describe(event), e)
                polygon = None
        return polygon or None

    def _handle_page(self, tag: OpenTag, reference: Optional[Dimensions]) -> Page:
        box = extract_bbox(tag.attributes)
        if not box.width or not box.height:
            raise GeometryError(f"{describe(tag)}Could not get Page dimensions")
        self.scale_factor = determine_scale_factor(
            box.width, box.height, reference, describe(tag)
        )
        page_box = PartialBox(box.x or 0, box.y or 0, box.width, box.height)

        page = Page(bbox=page_box.to_bbox(self.scale_factor), id=tag.attributes.get("ID"))
        attrs = coerce_attributes(tag.attributes, ("PHYSICAL_IMG_NR",))
        if "PHYSICAL_IMG_NR" in attrs:
            page.physical_page_number = int(attrs["PHYSICAL_IMG_NR"])
        if tag.attributes.get("PRINTED_IMG_NR"):
            page.logical_page_number = tag.attributes["PRINTED_IMG_NR"]

        # Source image information is only given once per document
        if self.image_source is not None:
            page.image_source = self.image_source
            self.image_source = None

        for event in self.cursor.descend(tag):
            if not isinstance(event, OpenTag):
                continue
            if self._dispatch(event, PAGE_CHILDREN) == AltoRole.BLOCK:
                page.children.append(self._handle_block(event))

        page.features = compute_features(page)
        return page

    def _handle_block(self, tag: OpenTag) -> Block:
        box = extract_bbox(tag.attributes)
        polygon = None
        lines: list[Line] = []
        for event in self.cursor.descend(tag):
            if not isinstance(event, OpenTag):
                continue
            match self._dispatch(event, BLOCK_CHILDREN):
                case AltoRole.LINE:
                    lines.append(self._handle_line(event))
                case AltoRole.SHAPE:
                    polygon = self._handle_shape(event)
        return Block(
            bbox=self._resolve_bbox(box, polygon, tag),
            polygon=polygon,
            children=lines,
        )

    def _handle_line(self, tag: OpenTag) -> Line:
        box = extract_bbox(tag.attributes)
        polygon = None
        children: list = []
        for event in self.cursor.descend(tag):
            if not isinstance(event, OpenTag):
                continue
            match self._dispatch(event, LINE_CHILDREN):
                case AltoRole.WORD:
                    children.append(self._handle_word(event))
                case AltoRole.SPACE:
                    children.append(" ")
                    self.cursor.skip(event)
                case AltoRole.HYPHEN:
                    # Hyphenation is read from the String's SUBS_TYPE
                    self.cursor.skip(event)
                case AltoRole.SHAPE:
                    polygon = self._handle_shape(event)

        # Without explicit SP elements, words are separated by single spaces
        if " " not in children:
            spaced: list = []
            for idx, child in enumerate(children):
                if idx:
                    spaced.append(" ")
                spaced.append(child)
            children = spaced

        bbox = self._resolve_bbox(box, polygon, tag)
        line = Line(bbox=bbox, polygon=polygon, children=children)
        if tag.attributes.get("BASELINE"):
            line.baseline = self._baseline(tag, bbox)
        return line

    def _baseline(self, tag: OpenTag, bbox: BoundingBox) -> Optional[list[Point]]:
        """Parse ``BASELINE``, either a single y coordinate or a point list."""
        value = tag.attributes["BASELINE"].strip()
        try:
            y = float(value) * self.scale_factor
        except ValueError:
            pass
        else:
            return [Point(x=bbox.x, y=y), Point(x=bbox.x2, y=y)]
        try:
            points = parse_points(value, self.scale_factor, describe(tag))
        except PolygonParseError as e:
            logger.warning("%sIgnoring malformed BASELINE: %s", describe(tag), e)
            return None
        return points if len(points) >= 2 else None

    def _handle_word(self, tag: OpenTag) -> Word:
        text = tag.attributes.get("CONTENT")
        if not text:
            raise MissingWordTextError(f"{describe(tag)}Could not get String text")
        box = extract_bbox(tag.attributes)
        attrs = coerce_attributes(tag.attributes, ("WC",))

        polygon = None
        choices: list[WordChoice] = []
        for event in self.cursor.descend(tag):
            if isinstance(event, CloseTag) and event.name == "ALTERNATIVE":
                alt_text = "".join(t.strip() for t in event.text_nodes if t.strip())
                choices.append(WordChoice(text=self._text(alt_text)))
            elif isinstance(event, OpenTag):
                match ALTO_ROLES.get(event.name):
                    case AltoRole.SHAPE:
                        polygon = self._handle_shape(event)
                    case AltoRole.GLYPH:
                        self.cursor.skip(event)

        return Word(
            bbox=self._resolve_bbox(box, polygon, tag),
            polygon=polygon,
            text=self._text(text),
            confidence=attrs.get("WC"),
            choices=choices or None,
            hyphen_start=tag.attributes.get("SUBS_TYPE") == HYPHEN_START,
        )

"""hOCR decoder.

hOCR encodes the layout hierarchy in the ``class`` attribute of ordinary HTML
elements and the geometry in a structured ``title`` attribute, e.g.::

    <span class="ocrx_word" title="bbox 100 200 150 220; x_wconf 94">Hello</span>

The decoder walks the event stream recursively, one handler per element
role. Each handler consumes exactly the events of its own element through
the shared cursor.
"""

import logging
import math
import re
from collections.abc import Iterator
from enum import Enum
from typing import Optional

from ocrtree.events import CloseTag, OpenTag, Text, describe
from ocrtree.exceptions import GeometryError, PolygonParseError
from ocrtree.geometry import (
    ReferenceSizeCallback,
    bbox_from_polygon,
    determine_scale_factor,
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
    Paragraph,
    Point,
    Word,
    WordChoice,
    compute_features,
)
from ocrtree.parsers.cursor import EventCursor

logger = logging.getLogger(__name__)

SOFT_HYPHEN = "\u00ad"
WHITESPACE = re.compile(r"\s+")


class HocrRole(str, Enum):
    """Semantic role of an hOCR element."""

    PAGE = "page"
    BLOCK = "block"
    PARAGRAPH = "paragraph"
    LINE = "line"
    WORD = "word"
    CHAR = "char"
    ALTERNATIVES = "alternatives"
    ALT = "alt"


HOCR_CLASS_MAP = {
    "ocr_page": HocrRole.PAGE,
    "ocr_carea": HocrRole.BLOCK,
    "ocrx_block": HocrRole.BLOCK,
    "ocr_par": HocrRole.PARAGRAPH,
    "ocr_line": HocrRole.LINE,
    "ocrx_line": HocrRole.LINE,
    # Tesseract's line variants
    "ocr_header": HocrRole.LINE,
    "ocr_caption": HocrRole.LINE,
    "ocr_textfloat": HocrRole.LINE,
    "ocrx_word": HocrRole.WORD,
    "ocrx_cinfo": HocrRole.CHAR,
    "alternatives": HocrRole.ALTERNATIVES,
    "alt": HocrRole.ALT,
}

PAGE_CHILDREN = frozenset({HocrRole.BLOCK, HocrRole.PARAGRAPH, HocrRole.LINE})
BLOCK_CHILDREN = frozenset({HocrRole.PARAGRAPH, HocrRole.LINE})
PARAGRAPH_CHILDREN = frozenset({HocrRole.LINE})
LINE_CHILDREN = frozenset({HocrRole.WORD})


def get_hocr_role(tag: OpenTag) -> Optional[HocrRole]:
    """Map an element's ``class`` attribute to its role.

    The first class with a known role wins, unknown classes are ignored.
    """
    for cls in tag.attributes.get("class", "").split():
        role = HOCR_CLASS_MAP.get(cls)
        if role is not None:
            return role
    return None


def parse_hocr_title(tag: OpenTag) -> dict[str, str]:
    """Parse the properties in an element's ``title`` attribute.

    Args:
        tag: Element to read the title from.

    Returns:
        Mapping of property name to its raw value with surrounding quotes
        removed, e.g. ``{"bbox": "0 0 800 600", "image": "page.png"}``.
    """
    title = tag.attributes.get("title")
    if not title:
        return {}
    props: dict[str, str] = {}
    for clause in title.split(";"):
        key, _, value = clause.strip().partition(" ")
        if not key:
            continue
        value = value.strip()
        if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
            value = value[1:-1]
        props[key] = value
    return props


def parse_hocr_bbox(value: Optional[str], scale_factor: float = 1) -> Optional[BoundingBox]:
    """Convert a ``bbox`` property (left top right bottom) to a scaled box."""
    if not value:
        return None
    parts = value.split()
    if len(parts) < 4:
        return None
    try:
        left, top, right, bottom = (float(p) for p in parts[:4])
    except ValueError:
        return None
    return BoundingBox.from_corners(left, top, right, bottom).scaled(scale_factor)


def parse_hocr_baseline(value: str, bbox: BoundingBox, scale_factor: float) -> Optional[list[Point]]:
    """Convert a ``baseline`` property (slope and intercept) to two points.

    The intercept is relative to the lower left corner of the line's box,
    the points span the full line width.

    Note:
        Some hOCR readers add the intercept to the top edge of the box
        instead, so their baselines sit one line height higher than ours.
    """
    parts = value.split()
    if len(parts) < 2:
        return None
    try:
        slope = float(parts[0])
        intercept = float(parts[1]) * scale_factor
    except ValueError:
        return None
    return [
        Point(x=bbox.x, y=bbox.y2 + intercept),
        Point(x=bbox.x2, y=bbox.y2 + intercept + bbox.width * slope),
    ]


class HocrDecoder:
    """Decodes the pages of a single hOCR document.

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

    def pages(self) -> Iterator[Page]:
        """Yield each page as soon as it has been read completely."""
        page_idx = 0
        try:
            for event in self.cursor:
                # Page handlers advance the cursor to the end of their page,
                # here we only need to spot the start of the next one.
                if (
                    not isinstance(event, OpenTag)
                    or event.name != "div"
                    or get_hocr_role(event) != HocrRole.PAGE
                ):
                    continue
                reference = None
                if self.reference_sizes is not None:
                    reference = self.reference_sizes(page_idx, dict(event.attributes))
                yield self._handle_page(event, reference)
                page_idx += 1
        finally:
            self.cursor.close()

    def _text(self, value: str) -> str:
        if not self.cursor.resolves_entities:
            return resolve_entities(value)
        return value

    def _polygon(self, props: dict[str, str], tag: OpenTag) -> Optional[list[Point]]:
        if "poly" not in props:
            return None
        try:
            return parse_points(props["poly"], self.scale_factor, describe(tag))
        except PolygonParseError as e:
            logger.warning("%sIgnoring malformed polygon: %s", describe(tag), e)
            return None

    def _geometry(self, props: dict[str, str], tag: OpenTag) -> tuple[BoundingBox, Optional[list[Point]]]:
        """Box and polygon of an element that must have coordinates.

        Raises:
            GeometryError: If neither a bbox nor a polygon is present.
        """
        polygon = self._polygon(props, tag)
        bbox = parse_hocr_bbox(props.get("bbox"), self.scale_factor)
        if bbox is None:
            try:
                bbox = bbox_from_polygon(polygon)
            except GeometryError:
                raise GeometryError(
                    f"{describe(tag)}Element has neither a bbox nor a polygon"
                ) from None
        return bbox, polygon

    def _handle_children(self, parent, allowed: frozenset, tag: OpenTag) -> None:
        """Dispatch the children of ``parent`` to their handlers.

        Elements without a role are transparent, their children are visited
        as if they were direct children. Elements whose role is not in
        ``allowed`` are skipped together with their subtree.
        """
        for event in self.cursor.descend(tag):
            if isinstance(event, Text):
                if isinstance(parent, Line):
                    self._handle_text(parent, event.value)
                continue
            if not isinstance(event, OpenTag):
                continue
            role = get_hocr_role(event)
            if role is None:
                continue
            if role not in allowed:
                logger.warning(
                    "%sUnexpected hOCR element type: %s, expected one of [%s]",
                    describe(event),
                    role.value,
                    ", ".join(sorted(r.value for r in allowed)),
                )
                self.cursor.skip(event)
                continue
            match role:
                case HocrRole.BLOCK:
                    self._handle_block(parent, event)
                case HocrRole.PARAGRAPH:
                    self._handle_paragraph(parent, event)
                case HocrRole.LINE:
                    self._handle_line(parent, event)
                case HocrRole.WORD:
                    self._handle_word(parent, event)
                case _:
                    self.cursor.skip(event)

    def _handle_page(self, tag: OpenTag, reference: Optional[Dimensions]) -> Page:
        props = parse_hocr_title(tag)

        # Native page coordinates, the factor is only known afterwards
        self.scale_factor = 1
        native = parse_hocr_bbox(props.get("bbox"))
        if native is None:
            polygon = self._polygon(props, tag)
            if polygon is None:
                raise GeometryError(f"{describe(tag)}Page has neither a bbox nor a polygon")
            native = bbox_from_polygon(polygon)
        self.scale_factor = determine_scale_factor(
            native.width, native.height, reference, describe(tag)
        )

        page = Page(bbox=native.scaled(self.scale_factor), id=tag.attributes.get("id"))
        if "ppageno" in props:
            try:
                page.physical_page_number = int(float(props["ppageno"]))
            except ValueError:
                logger.warning("%sInvalid ppageno %r", describe(tag), props["ppageno"])
        if "lpageno" in props:
            page.logical_page_number = props["lpageno"]

        self._handle_children(page, PAGE_CHILDREN, tag)

        page.image_source = self._image_source(props, tag)
        page.features = compute_features(page)
        return page

    def _image_source(self, props: dict[str, str], tag: OpenTag) -> Optional[ImageSource]:
        fields = {}
        if "image" in props:
            fields["file_name"] = props["image"]
        if "x_source" in props:
            fields["document_identifier"] = props["x_source"]
        if "imagemd5" in props:
            fields["checksum"] = props["imagemd5"]
            fields["checksum_type"] = "MD5"
        if "scan_res" in props:
            try:
                ppi = int(float(props["scan_res"].split()[0]))
            except (IndexError, ValueError):
                ppi = 0
            if ppi > 0:
                fields["ppi"] = ppi
            else:
                logger.warning("%sInvalid scan_res %r", describe(tag), props["scan_res"])
        return ImageSource(**fields) if fields else None

    def _handle_block(self, parent: Page, tag: OpenTag) -> None:
        bbox, polygon = self._geometry(parse_hocr_title(tag), tag)
        block = Block(bbox=bbox, polygon=polygon)
        parent.children.append(block)
        self._handle_children(block, BLOCK_CHILDREN, tag)

    def _handle_paragraph(self, parent, tag: OpenTag) -> None:
        props = parse_hocr_title(tag)
        paragraph = Paragraph(
            bbox=parse_hocr_bbox(props.get("bbox"), self.scale_factor),
            polygon=self._polygon(props, tag),
        )
        parent.children.append(paragraph)
        self._handle_children(paragraph, PARAGRAPH_CHILDREN, tag)

    def _handle_line(self, parent, tag: OpenTag) -> None:
        props = parse_hocr_title(tag)
        bbox = parse_hocr_bbox(props.get("bbox"), self.scale_factor)
        if bbox is None:
            logger.warning("%sMissing bbox attribute on line element, skipping", describe(tag))
            self.cursor.skip(tag)
            return

        line = Line(bbox=bbox, polygon=self._polygon(props, tag))
        if "baseline" in props:
            line.baseline = parse_hocr_baseline(props["baseline"], bbox, self.scale_factor)
        parent.children.append(line)

        self._handle_children(line, LINE_CHILDREN, tag)

        # Lines never end in whitespace
        if line.children and line.children[-1] == " ":
            line.children.pop()

        # Confidences are either fractions or percentages, assume the
        # latter if any value on the line is larger than 1
        words = line.words
        if any(w.confidence is not None and w.confidence > 1 for w in words):
            for word in words:
                if word.confidence is not None:
                    word.confidence /= 100

    def _handle_text(self, line: Line, value: str) -> None:
        text = WHITESPACE.sub(" ", value)
        if not text:
            return
        whitespace_only = text == " "
        if whitespace_only and (not line.children or line.children[-1] == " "):
            return
        line.children.append(self._text(text))

    def _handle_word(self, line: Line, tag: OpenTag) -> None:
        props = parse_hocr_title(tag)
        bbox, polygon = self._geometry(props, tag)

        parts: list[str] = []
        choices: Optional[list[WordChoice]] = None
        for event in self.cursor.descend(tag):
            if isinstance(event, OpenTag):
                if get_hocr_role(event) == HocrRole.ALTERNATIVES:
                    choices = []
            elif isinstance(event, CloseTag):
                if choices is None:
                    continue
                if event.name == "ins":
                    parts = [t.strip() for t in event.text_nodes]
                elif event.name == "del":
                    choices.append(self._word_choice(event))
            elif choices is None:
                parts.append(event.value.strip())

        text = self._text("".join(parts))
        hyphen_start = text.endswith(SOFT_HYPHEN)
        if hyphen_start:
            text = text[:-1]
        if not text:
            logger.debug("%sWord element has no text, skipping", describe(tag))
            return

        word = Word(
            bbox=bbox,
            polygon=polygon,
            text=text,
            choices=choices or None,
            hyphen_start=hyphen_start,
        )
        if "x_wconf" in props:
            try:
                word.confidence = float(props["x_wconf"])
            except ValueError:
                logger.warning("%sInvalid x_wconf %r", describe(tag), props["x_wconf"])

        # Words are separate even when no whitespace was encoded between them
        if line.children and not isinstance(line.children[-1], str):
            line.children.append(" ")
        line.children.append(word)

    def _word_choice(self, tag: CloseTag) -> WordChoice:
        choice = WordChoice(text=self._text("".join(t.strip() for t in tag.text_nodes)))
        nlp = tag.attributes.get("nlp")
        if nlp:
            try:
                choice.probability = math.exp(-float(nlp))
            except ValueError:
                logger.warning("%sInvalid nlp %r", describe(tag), nlp)
        return choice

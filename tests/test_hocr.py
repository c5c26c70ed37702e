"""Tests for the hOCR decoder."""

import logging
import math

import pytest

from ocrtree.events import CloseTag, OpenTag, Text
from ocrtree.exceptions import GeometryError, UnexpectedEndOfInput
from ocrtree.models import (
    Block,
    BoundingBox,
    Dimensions,
    Line,
    OcrFeature,
    Paragraph,
    Point,
    Word,
)
from ocrtree.parsers import EventCursor, HocrDecoder, HocrRole, get_hocr_role, parse_hocr_title
from ocrtree.parsers.hocr import parse_hocr_baseline, parse_hocr_bbox
from ocrtree.reader import parse_ocr_page, parse_ocr_pages

from .samples import BASIC_HOCR, HOCR_WITH_ALTERNATIVES, make_hocr


def page_markup(children: str, title: str = "bbox 0 0 800 600") -> str:
    return make_hocr(f"<div class='ocr_page' title='{title}'>{children}</div>")


def word_span(text: str, bbox: str, extra: str = "") -> str:
    title = f"bbox {bbox}" + (f"; {extra}" if extra else "")
    return f"<span class='ocrx_word' title='{title}'>{text}</span>"


class TestTitleParsing:
    """Tests for hOCR title and class helpers."""

    def test_parse_title(self):
        tag = OpenTag("div", {"title": 'image "/tmp/a b.png"; bbox 0 0 800 600; ppageno 3'})
        assert parse_hocr_title(tag) == {
            "image": "/tmp/a b.png",
            "bbox": "0 0 800 600",
            "ppageno": "3",
        }

    def test_parse_title_missing(self):
        assert parse_hocr_title(OpenTag("div", {})) == {}

    def test_parse_title_keeps_all_values(self):
        tag = OpenTag("div", {"title": "poly 1 2 3 4 5 6 7 8"})
        assert parse_hocr_title(tag)["poly"] == "1 2 3 4 5 6 7 8"

    def test_bbox(self):
        assert parse_hocr_bbox("100 200 150 220") == BoundingBox(x=100, y=200, width=50, height=20)
        assert parse_hocr_bbox("100 200 150 220", 2) == BoundingBox(x=200, y=400, width=100, height=40)

    @pytest.mark.parametrize("value", [None, "", "1 2 3", "a b c d"])
    def test_invalid_bbox(self, value):
        assert parse_hocr_bbox(value) is None

    def test_baseline_anchored_bottom_left(self):
        bbox = BoundingBox(x=100, y=200, width=400, height=20)
        points = parse_hocr_baseline("0.01 -5", bbox, 1)
        assert points == [Point(x=100, y=215), Point(x=500, y=219)]

    @pytest.mark.parametrize(
        "classes,role",
        [
            ("ocr_page", HocrRole.PAGE),
            ("ocrx_block", HocrRole.BLOCK),
            ("ocr_header", HocrRole.LINE),
            ("ocr_caption", HocrRole.LINE),
            ("custom ocrx_word", HocrRole.WORD),
            ("ocr_line ocrx_line", HocrRole.LINE),
            ("custom", None),
        ],
    )
    def test_roles(self, classes, role):
        assert get_hocr_role(OpenTag("span", {"class": classes})) == role


class TestBasicDocument:
    """Decoding of a complete Tesseract style hOCR page."""

    @pytest.fixture
    def page(self, session):
        return parse_ocr_page(BASIC_HOCR, "hocr", session=session)

    def test_text(self, page):
        assert page.text == "Hello World, how are the Nightingales"

    def test_structure(self, page):
        assert page.id == "page_1"
        assert page.physical_page_number == 0
        assert page.bbox == BoundingBox(x=0, y=0, width=800, height=600)
        assert len(page.blocks) == 1
        assert len(page.paragraphs) == 1
        assert len(page.lines) == 2
        assert len(page.words) == 7

    def test_word(self, page):
        word = page.words[0]
        assert word.text == "Hello"
        assert word.bbox == BoundingBox(x=100, y=200, width=50, height=20)
        assert word.confidence == pytest.approx(0.94)

    def test_hyphenation(self, page):
        nightin = page.words[5]
        assert nightin.text == "Nightin"
        assert nightin.hyphen_start
        assert page.lines[0].text == "Hello World, how are the Nightin"

    def test_line_children_alternate(self, page):
        children = page.lines[0].children
        assert isinstance(children[0], Word)
        assert children[1] == " "
        assert isinstance(children[-1], Word)

    def test_baseline(self, page):
        baseline = page.lines[0].baseline
        assert baseline[0] == Point(x=100, y=218)
        assert baseline[1].x == 500
        assert baseline[1].y == pytest.approx(218 - 0.053 * 400)

    def test_image_source(self, page):
        assert page.image_source.file_name == "sample.jpg"

    def test_features(self, page):
        assert page.features == [
            OcrFeature.BASELINE,
            OcrFeature.CONFIDENCE,
            OcrFeature.HYPHEN,
        ]


class TestAlternatives:
    """Decoding of words with alternative readings."""

    @pytest.fixture
    def page(self, session):
        return parse_ocr_page(HOCR_WITH_ALTERNATIVES, "hocr", session=session)

    def test_text_uses_inserted_reading(self, page):
        assert page.text == "i THE STANDARD UTAH 1909"

    def test_choices(self, page):
        utah = page.words[3]
        assert utah.text == "UTAH"
        assert [c.text for c in utah.choices] == ["UTAR"]
        assert utah.choices[0].probability == pytest.approx(math.exp(-0.1))

        year = page.words[4]
        assert [c.text for c in year.choices] == ["1900", "1809"]
        assert year.choices[0].probability is None

    def test_lines_directly_in_block(self, page):
        assert page.paragraphs == []
        assert len(page.blocks[0].lines) == 2
        assert page.features == [OcrFeature.CHOICES]

    def test_other_confidence_keys_ignored(self, page):
        assert all(w.confidence is None for w in page.words)


class TestLineText:
    """Whitespace handling inside lines."""

    def test_implicit_spaces(self, session):
        """N adjacent words without whitespace give N-1 spaces."""
        words = "".join(
            word_span(t, f"{i * 20} 0 {i * 20 + 10} 10") for i, t in enumerate("abcd")
        )
        markup = page_markup(f"<span class='ocr_line' title='bbox 0 0 100 10'>{words}</span>")

        line = parse_ocr_page(markup, "hocr", session=session).lines[0]

        assert line.text == "a b c d"
        assert line.children.count(" ") == 3
        assert isinstance(line.children[-1], Word)

    def test_whitespace_normalized(self, session):
        words = word_span("a", "0 0 10 10") + " \n\t  " + word_span("b", "20 0 30 10") + "\n  "
        markup = page_markup(f"<span class='ocr_line' title='bbox 0 0 100 10'>\n {words}</span>")

        line = parse_ocr_page(markup, "hocr", session=session).lines[0]

        assert line.children[1] == " "
        assert len(line.children) == 3

    def test_empty_word_dropped(self, session):
        words = word_span("a", "0 0 10 10") + word_span("  ", "20 0 30 10") + word_span("b", "40 0 50 10")
        markup = page_markup(f"<span class='ocr_line' title='bbox 0 0 100 10'>{words}</span>")

        line = parse_ocr_page(markup, "hocr", session=session).lines[0]

        assert line.text == "a b"
        assert len(line.words) == 2

    def test_entities_in_word(self, session):
        markup = page_markup(
            f"<span class='ocr_line' title='bbox 0 0 100 10'>{word_span('AT&amp;T', '0 0 10 10')}</span>"
        )
        assert parse_ocr_page(markup, "hocr", session=session).text == "AT&T"


class TestConfidence:
    """Confidence normalization per line."""

    def test_percentages_divided(self, session):
        words = word_span("a", "0 0 10 10", "x_wconf 82") + word_span("b", "20 0 30 10", "x_wconf 0.5")
        markup = page_markup(f"<span class='ocr_line' title='bbox 0 0 100 10'>{words}</span>")

        page = parse_ocr_page(markup, "hocr", session=session)

        assert [w.confidence for w in page.words] == [pytest.approx(0.82), pytest.approx(0.005)]

    def test_fractions_kept(self, session):
        words = word_span("a", "0 0 10 10", "x_wconf 0.82") + word_span("b", "20 0 30 10", "x_wconf 1")
        markup = page_markup(f"<span class='ocr_line' title='bbox 0 0 100 10'>{words}</span>")

        page = parse_ocr_page(markup, "hocr", session=session)

        assert [w.confidence for w in page.words] == [0.82, 1.0]


class TestScaling:
    """Scaling to a reference size."""

    LINE = "<span class='ocr_line' title='bbox 100 200 300 400; poly 100 200 300 200 300 400'>{}</span>"

    def markup(self):
        return page_markup(
            self.LINE.format(word_span("a", "100 200 300 400")),
            title="bbox 0 0 1000 2000",
        )

    def test_reference_equal_to_page(self, session):
        """A reference equal to the page size leaves coordinates untouched."""
        unscaled = parse_ocr_page(self.markup(), "hocr", session=session)
        same = parse_ocr_page(
            self.markup(), "hocr", Dimensions(width=1000, height=2000), session=session
        )
        assert same == unscaled

    def test_half_size(self, session):
        page = parse_ocr_page(self.markup(), "hocr", (500, 1000), session=session)

        assert page.bbox == BoundingBox(x=0, y=0, width=500, height=1000)
        assert page.words[0].bbox == BoundingBox(x=50, y=100, width=100, height=100)
        assert page.lines[0].polygon[1] == Point(x=150, y=100)

    def test_reference_per_page(self, session):
        pages_markup = make_hocr(
            "".join(
                f"<div class='ocr_page' id='p{i}' title='bbox 0 0 1000 2000'></div>" for i in range(2)
            )
        )
        pages = list(
            parse_ocr_pages(pages_markup, "hocr", [Dimensions(width=500, height=1000)], session=session)
        )
        assert pages[0].width == 500
        assert pages[1].width == 1000

    def test_reference_callback(self, session):
        seen = []

        def reference(idx, attributes):
            seen.append((idx, attributes["id"]))
            return Dimensions(width=100, height=200)

        pages_markup = make_hocr(
            "".join(
                f"<div class='ocr_page' id='p{i}' title='bbox 0 0 1000 2000'></div>" for i in range(2)
            )
        )
        pages = list(parse_ocr_pages(pages_markup, "hocr", reference, session=session))

        assert seen == [(0, "p0"), (1, "p1")]
        assert [p.width for p in pages] == [100, 100]


class TestGeometry:
    """Handling of missing and polygon geometry."""

    def test_word_box_from_polygon(self, session):
        word = "<span class='ocrx_word' title='poly 10 10 50 12 48 30 8 28'>a</span>"
        markup = page_markup(f"<span class='ocr_line' title='bbox 0 0 100 100'>{word}</span>")

        page = parse_ocr_page(markup, "hocr", session=session)

        assert page.words[0].bbox == BoundingBox(x=8, y=10, width=42, height=20)
        assert OcrFeature.POLYGONS in page.features

    def test_block_without_geometry(self, session):
        markup = page_markup("<div class='ocr_carea'></div>")
        with pytest.raises(GeometryError):
            parse_ocr_page(markup, "hocr", session=session)

    def test_page_without_geometry(self, session):
        markup = make_hocr("<div class='ocr_page' id='p1'></div>")
        with pytest.raises(GeometryError):
            parse_ocr_page(markup, "hocr", session=session)

    def test_line_without_bbox_skipped(self, session, caplog):
        lines = (
            f"<span class='ocr_line'>{word_span('lost', '0 0 10 10')}</span>"
            f"<span class='ocr_line' title='bbox 0 20 100 30'>{word_span('kept', '0 20 10 30')}</span>"
        )
        with caplog.at_level(logging.WARNING, logger="ocrtree"):
            page = parse_ocr_page(page_markup(lines), "hocr", session=session)

        assert page.text == "kept"
        assert "Missing bbox" in caplog.text

    def test_paragraph_without_bbox(self, session):
        line = f"<span class='ocr_line' title='bbox 0 0 100 10'>{word_span('a', '0 0 10 10')}</span>"
        page = parse_ocr_page(page_markup(f"<p class='ocr_par'>{line}</p>"), "hocr", session=session)
        assert page.paragraphs[0].bbox is None

    def test_malformed_polygon_ignored(self, session, caplog):
        word = "<span class='ocrx_word' title='bbox 0 0 10 10; poly 1 2 x 4'>a</span>"
        markup = page_markup(f"<span class='ocr_line' title='bbox 0 0 100 10'>{word}</span>")

        with caplog.at_level(logging.WARNING, logger="ocrtree"):
            page = parse_ocr_page(markup, "hocr", session=session)

        assert page.words[0].polygon is None
        assert "malformed polygon" in caplog.text


class TestStructure:
    """Missing levels and unexpected elements."""

    def test_lines_directly_in_page(self, session):
        line = f"<span class='ocr_line' title='bbox 0 0 100 10'>{word_span('a', '0 0 10 10')}</span>"
        page = parse_ocr_page(page_markup(line + line), "hocr", session=session)

        assert page.blocks == []
        assert page.paragraphs == []
        assert page.lines == page.children
        assert all(isinstance(c, Line) for c in page.children)
        assert page.text == "a a"

    def test_hyphenated_lines_in_page(self, session):
        hyphenated = word_span("in\u00ad", "20 0 30 10")
        first = f"<span class='ocr_line' title='bbox 0 0 100 10'>{word_span('Night', '0 0 10 10')} {hyphenated}</span>"
        second = f"<span class='ocr_line' title='bbox 0 20 100 30'>{word_span('gales', '0 20 10 30')} {word_span('sing', '20 20 30 30')}</span>"
        third = f"<span class='ocr_line' title='bbox 0 40 100 50'>{word_span('loud', '0 40 10 50')}</span>"

        page = parse_ocr_page(page_markup(first + second + third), "hocr", session=session)

        assert page.text == "Night ingales sing loud"

    def test_paragraph_directly_in_page(self, session):
        line = f"<span class='ocr_line' title='bbox 0 0 100 10'>{word_span('a', '0 0 10 10')}</span>"
        page = parse_ocr_page(page_markup(f"<p class='ocr_par'>{line}</p>"), "hocr", session=session)
        assert isinstance(page.children[0], Paragraph)

    def test_tesseract_line_classes(self, session):
        header = f"<span class='ocr_header' title='bbox 0 0 100 10'>{word_span('Title', '0 0 10 10')}</span>"
        caption = f"<span class='ocr_caption' title='bbox 0 20 100 30'>{word_span('Fig', '0 20 10 30')}</span>"
        block = f"<div class='ocr_carea' title='bbox 0 0 100 30'>{header}{caption}</div>"

        page = parse_ocr_page(page_markup(block), "hocr", session=session)

        assert isinstance(page.children[0], Block)
        assert page.text == "Title Fig"

    def test_transparent_wrappers(self, session):
        line = f"<span class='ocr_line' title='bbox 0 0 100 10'><em>{word_span('a', '0 0 10 10')}</em></span>"
        markup = page_markup(f"<div class='wrapper'><div class='ocr_carea' title='bbox 0 0 1 1'>{line}</div></div>")

        page = parse_ocr_page(markup, "hocr", session=session)

        assert page.text == "a"

    def test_unexpected_element_skipped(self, session, caplog):
        """A paragraph inside a line is reported and skipped with its subtree."""
        nested = f"<span class='ocr_par'>{word_span('bad', '0 0 1 1')}</span>"
        words = word_span("a", "0 0 10 10") + nested + word_span("b", "20 0 30 10")
        markup = page_markup(f"<span class='ocr_line' title='bbox 0 0 100 10'>{words}</span>")

        with caplog.at_level(logging.WARNING, logger="ocrtree"):
            page = parse_ocr_page(markup, "hocr", session=session)

        assert page.text == "a b"
        assert "Unexpected hOCR element type: paragraph" in caplog.text

    def test_page_metadata(self, session):
        title = 'bbox 0 0 800 600; ppageno 4; lpageno "iv"; imagemd5 abc; x_source /scans/1.tif; scan_res 300 300'
        page = parse_ocr_page(page_markup("", title=title), "hocr", session=session)

        assert page.physical_page_number == 4
        assert page.logical_page_number == "iv"
        assert page.image_source.checksum == "abc"
        assert page.image_source.checksum_type == "MD5"
        assert page.image_source.document_identifier == "/scans/1.tif"
        assert page.image_source.ppi == 300

    @pytest.mark.parametrize("scan_res", ["0 0", "-300 -300", "high"])
    def test_invalid_scan_res(self, session, caplog, scan_res):
        """A resolution that is not a positive number is reported and left unset."""
        title = f"bbox 0 0 800 600; image page.png; scan_res {scan_res}"

        with caplog.at_level(logging.WARNING, logger="ocrtree"):
            page = parse_ocr_page(page_markup("", title=title), "hocr", session=session)

        assert page.image_source.file_name == "page.png"
        assert page.image_source.ppi is None
        assert "Invalid scan_res" in caplog.text
        assert "<div>" in caplog.text

    def test_character_spans_in_word(self, session):
        chars = (
            "<span class='ocrx_cinfo' title='x_bboxes 0 0 5 10; x_conf 90'>a</span>"
            "<span class='ocrx_cinfo' title='x_bboxes 5 0 10 10; x_conf 80'>b</span>"
        )
        line = f"<span class='ocr_line' title='bbox 0 0 100 10'>{word_span(chars, '0 0 10 10')}</span>"

        page = parse_ocr_page(page_markup(line), "hocr", session=session)

        assert [w.text for w in page.words] == ["ab"]


class TestEndToEnd:
    """Five words on one line of an 800x600 page."""

    def test_five_words(self, session):
        texts = ["one", "two", "three", "four", "five"]
        words = " ".join(
            word_span(t, f"{i * 100} 10 {i * 100 + 80} 30") for i, t in enumerate(texts)
        )
        line = f"<span class='ocr_line' title='bbox 0 10 480 30'>{words}</span>"
        block = f"<div class='ocr_carea' title='bbox 0 10 480 30'><p class='ocr_par'>{line}</p></div>"

        page = parse_ocr_page(
            page_markup(block), "hocr", Dimensions(width=800, height=600), session=session
        )

        assert page.text == "one two three four five"
        assert [w.bbox.x for w in page.words] == [0, 100, 200, 300, 400]
        assert page.words[4].bbox == BoundingBox(x=400, y=10, width=80, height=20)


class TestHandBuiltEvents:
    """Decoding from an event list without a tokenizer."""

    def events(self, word_text: str, close_word: bool = True):
        page = OpenTag("div", {"class": "ocr_page", "title": "bbox 0 0 100 100"})
        line = OpenTag("span", {"class": "ocr_line", "title": "bbox 0 0 100 10"})
        word = OpenTag("span", {"class": "ocrx_word", "title": "bbox 0 0 10 10"})
        events = [page, line, word, Text(word_text)]
        if close_word:
            events += [
                CloseTag("span", word.attributes, (word_text,)),
                CloseTag("span", line.attributes),
                CloseTag("div", page.attributes),
            ]
        return events

    def test_entities_resolved(self):
        decoder = HocrDecoder(EventCursor(self.events("AT&amp;T")))
        pages = list(decoder.pages())
        assert pages[0].text == "AT&T"

    def test_end_of_input_inside_word(self):
        decoder = HocrDecoder(EventCursor(self.events("a", close_word=False)))
        with pytest.raises(UnexpectedEndOfInput):
            list(decoder.pages())

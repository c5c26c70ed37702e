"""Pytest configuration and fixtures."""

import pytest

from ocrtree.session import OcrSession

from .samples import BASIC_ALTO, BASIC_HOCR


@pytest.fixture
def session():
    """Initialized decode session."""
    return OcrSession().initialize()


@pytest.fixture
def hocr_file(tmp_path):
    """Write the basic hOCR document to disk."""
    path = tmp_path / "page.hocr"
    path.write_text(BASIC_HOCR, encoding="utf-8")
    return path


@pytest.fixture
def alto_file(tmp_path):
    """Write the basic ALTO document to disk."""
    path = tmp_path / "page.xml"
    path.write_text(BASIC_ALTO, encoding="utf-8")
    return path

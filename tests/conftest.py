"""Shared fixtures: an offscreen QApplication and in-memory test images."""

import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PyQt5.QtCore import QBuffer, QByteArray, QIODevice
from PyQt5.QtGui import QColor, QImage
from PyQt5.QtWidgets import QApplication

from frame_annote.snapshots import encode_png


@pytest.fixture(scope="session", autouse=True)
def qapp():
    """One QApplication for the whole run; painting text needs it."""
    app = QApplication.instance() or QApplication(["pytest"])
    yield app


def solid_image(width: int = 100, height: int = 100, color: str = "#ffffff") -> QImage:
    img = QImage(width, height, QImage.Format_ARGB32_Premultiplied)
    img.fill(QColor(color))
    return img


@pytest.fixture
def make_png():
    """Factory: make_png(width, height, color) -> PNG bytes of a solid image."""
    def _make(width: int = 100, height: int = 100, color: str = "#ffffff") -> bytes:
        return encode_png(solid_image(width, height, color))
    return _make


@pytest.fixture
def make_jpeg():
    """Factory: make_jpeg(width, height, color) -> JPEG bytes of a solid image."""
    def _make(width: int = 100, height: int = 100, color: str = "#ffffff") -> bytes:
        out = QByteArray()
        buf = QBuffer(out)
        buf.open(QIODevice.WriteOnly)
        try:
            assert solid_image(width, height, color).convertToFormat(QImage.Format_RGB32).save(buf, "JPEG")
        finally:
            buf.close()
        return bytes(out)
    return _make

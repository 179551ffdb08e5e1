# frame_annote/thumbnails.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from PyQt5.QtCore import QBuffer, QByteArray, QIODevice, Qt
from PyQt5.QtGui import QImage, QImageReader, QImageWriter

from .errors import ThumbnailEncodingFailed


THUMB_MAX_SIZE = 200


def _read(data: bytes) -> Tuple[QImage, str]:
    if not data:
        raise ThumbnailEncodingFailed("image is empty")
    buf = QBuffer()
    buf.setData(QByteArray(data))
    buf.open(QIODevice.ReadOnly)
    try:
        reader = QImageReader(buf)
        fmt = bytes(reader.format()).decode("ascii", errors="ignore").lower()
        img = reader.read()
        err = reader.errorString()
    finally:
        buf.close()
    if img.isNull():
        raise ThumbnailEncodingFailed(f"image could not be decoded: {err}")
    return img, (fmt or "png")


def _writable(fmt: str) -> str:
    # Qt reads some formats (gif, svg) it cannot write
    supported = {bytes(f).decode("ascii").lower() for f in QImageWriter.supportedImageFormats()}
    return fmt if fmt in supported else "png"


def image_size(data: bytes) -> Tuple[int, int]:
    img, _fmt = _read(data)
    return (img.width(), img.height())


def fit_within(width: int, height: int, max_size: int = THUMB_MAX_SIZE) -> Tuple[int, int]:
    """Largest size with the same aspect ratio inside a max_size box; never larger than the input."""
    width = int(width)
    height = int(height)
    if width <= 0 or height <= 0:
        return (0, 0)
    if width <= max_size and height <= max_size:
        return (width, height)
    scale = min(max_size / float(width), max_size / float(height))
    return (max(1, int(round(width * scale))), max(1, int(round(height * scale))))


@dataclass(frozen=True)
class Thumbnail:
    data: bytes
    fmt: str          # format the thumbnail was written in
    source_fmt: str   # format sniffed from the input


def file_extension(fmt: str) -> str:
    return "jpg" if fmt == "jpeg" else fmt


def make_thumbnail(data: bytes, max_size: int = THUMB_MAX_SIZE) -> Thumbnail:
    """
    Scale an encoded image to fit a max_size x max_size box and re-encode it
    in the same format.

    Smooth scaling is deterministic, so identical input produces identical
    output. Raises ThumbnailEncodingFailed when the input cannot be decoded
    or the result cannot be written.
    """
    img, source_fmt = _read(data)
    fmt = _writable(source_fmt)
    tw, th = fit_within(img.width(), img.height(), max_size)
    if (tw, th) != (img.width(), img.height()):
        img = img.scaled(tw, th, Qt.KeepAspectRatio, Qt.SmoothTransformation)

    out = QByteArray()
    buf = QBuffer(out)
    buf.open(QIODevice.WriteOnly)
    try:
        ok = img.save(buf, fmt.upper())
    finally:
        buf.close()
    if not ok or out.isEmpty():
        raise ThumbnailEncodingFailed(f"thumbnail could not be encoded as {fmt}")
    return Thumbnail(data=bytes(out), fmt=fmt, source_fmt=source_fmt)


def derive_thumbnail(data: bytes, max_size: int = THUMB_MAX_SIZE) -> bytes:
    return make_thumbnail(data, max_size).data

# frame_annote/snapshots.py
from __future__ import annotations

from typing import List

from PyQt5.QtCore import QBuffer, QByteArray, QIODevice
from PyQt5.QtGui import QImage

from .errors import EditorStateError


def encode_png(image: QImage) -> bytes:
    """Encode a QImage losslessly. Raises ValueError if Qt refuses to write it."""
    if image is None or image.isNull():
        raise ValueError("cannot encode a null image")
    data = QByteArray()
    buf = QBuffer(data)
    buf.open(QIODevice.WriteOnly)
    try:
        ok = image.save(buf, "PNG")
    finally:
        buf.close()
    if not ok:
        raise ValueError("PNG encoder failed")
    return bytes(data)


def decode_png(data: bytes) -> QImage:
    img = QImage.fromData(data, "PNG")
    if img.isNull():
        raise ValueError("snapshot could not be decoded")
    return img.convertToFormat(QImage.Format_ARGB32_Premultiplied)


class SnapshotStore:
    """
    Linear undo history of whole-surface PNG copies.

    Index 0 is always the pristine frame and is never popped; the editing
    surface equals decoding the last entry.
    """

    def __init__(self, pristine: QImage):
        self._history: List[bytes] = [encode_png(pristine)]

    def __len__(self) -> int:
        return len(self._history)

    def push(self, image: QImage) -> None:
        self._history.append(encode_png(image))

    def can_pop(self) -> bool:
        return len(self._history) > 1

    def pop(self) -> bool:
        """Drop the newest snapshot. Returns False (no-op) at the pristine entry."""
        if not self.can_pop():
            return False
        self._history.pop()
        return True

    def reset(self) -> None:
        del self._history[1:]

    def current(self) -> QImage:
        if not self._history:
            raise EditorStateError("snapshot history is empty")
        return decode_png(self._history[-1])

    def pristine(self) -> QImage:
        return decode_png(self._history[0])

    def current_bytes(self) -> bytes:
        return self._history[-1]

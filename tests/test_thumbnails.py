"""Bounded-size thumbnail derivation."""

import pytest

from frame_annote.errors import ThumbnailEncodingFailed
from frame_annote.thumbnails import THUMB_MAX_SIZE, derive_thumbnail, fit_within, image_size


@pytest.mark.parametrize(
    "size, expected",
    [
        ((400, 200), (200, 100)),
        ((200, 400), (100, 200)),
        ((1000, 300), (200, 60)),
        ((200, 200), (200, 200)),
        ((120, 80), (120, 80)),
        ((5000, 10), (200, 1)),
        ((0, 100), (0, 0)),
    ],
)
def test_fit_within(size, expected):
    assert fit_within(*size) == expected


def test_derive_thumbnail_fits_box_and_keeps_aspect(make_png):
    thumb = derive_thumbnail(make_png(800, 600))
    assert thumb.startswith(b"\x89PNG")
    assert image_size(thumb) == (200, 150)


def test_derive_thumbnail_never_upscales(make_png):
    thumb = derive_thumbnail(make_png(50, 40))
    assert image_size(thumb) == (50, 40)


def test_derive_thumbnail_custom_bound(make_png):
    w, h = image_size(derive_thumbnail(make_png(300, 150), max_size=60))
    assert max(w, h) <= 60
    assert (w, h) == (60, 30)


def test_derive_thumbnail_is_deterministic(make_png):
    src = make_png(640, 360, "#123456")
    assert derive_thumbnail(src) == derive_thumbnail(src)


def test_default_bound_is_200():
    assert THUMB_MAX_SIZE == 200


@pytest.mark.parametrize("data", [b"", b"definitely not an image"])
def test_derive_thumbnail_rejects_undecodable_input(data):
    with pytest.raises(ThumbnailEncodingFailed):
        derive_thumbnail(data)

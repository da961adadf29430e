"""Tests for the run-length encoded .data image decoder."""

import io
import struct

import numpy as np
import pytest

from celeste.data import MAX_PIXELS, RleVariant, decode, load_image_from_path
from celeste.errors import ExcessPixelData, ImplausibleSize, InsufficientPixelData, Truncated


def header(width, height, has_alpha):
    return struct.pack('<IIB', width, height, 1 if has_alpha else 0)


def pixels_of(image):
    return [image.get_pixel(x, y) for y in range(image.height) for x in range(image.width)]


def test_single_run_example():
    data = header(2, 1, True) + bytes([2, 255, 10, 20, 30])
    image = decode(io.BytesIO(data))
    assert (image.width, image.height) == (2, 1)
    assert pixels_of(image) == [(30, 20, 10, 255), (30, 20, 10, 255)]
    assert image.pixels.tobytes() == bytes([30, 20, 10, 255] * 2)


def test_rows_are_filled_left_to_right():
    data = header(2, 2, False) + bytes([3, 1, 2, 3, 1, 4, 5, 6])
    image = decode(io.BytesIO(data))
    assert image.get_pixel(0, 0) == (3, 2, 1, 255)
    assert image.get_pixel(1, 0) == (3, 2, 1, 255)
    assert image.get_pixel(0, 1) == (3, 2, 1, 255)
    assert image.get_pixel(1, 1) == (6, 5, 4, 255)


def test_alpha_zero_reads_no_color():
    # the transparent run is followed directly by the next run's count
    data = header(3, 1, True) + bytes([1, 0]) + bytes([2, 128, 1, 2, 3])
    image = decode(io.BytesIO(data))
    assert pixels_of(image) == [(0, 0, 0, 0), (3, 2, 1, 128), (3, 2, 1, 128)]


def test_opaque_image_is_always_bgr():
    # a zero color byte without alpha is just black, not transparent
    data = header(2, 1, False) + bytes([1, 0, 0, 0, 1, 9, 8, 7])
    image = decode(io.BytesIO(data))
    assert pixels_of(image) == [(0, 0, 0, 255), (7, 8, 9, 255)]


def test_zero_length_run():
    data = header(1, 1, True) + bytes([0, 255, 1, 1, 1, 1, 255, 4, 5, 6])
    image = decode(io.BytesIO(data))
    assert pixels_of(image) == [(6, 5, 4, 255)]


def test_decode_is_deterministic():
    data = header(4, 2, True) + bytes([3, 255, 1, 2, 3, 2, 0, 3, 77, 9, 8, 7])
    first = decode(io.BytesIO(data))
    second = decode(io.BytesIO(data))
    assert first.width * first.height == 8
    assert np.array_equal(first.pixels, second.pixels)


def test_empty_image():
    image = decode(io.BytesIO(header(0, 0, True)))
    assert (image.width, image.height) == (0, 0)
    assert image.pixels.size == 0


@pytest.mark.parametrize('body', [
    bytes([2]),
    bytes([2, 255]),
    bytes([2, 255, 10]),
    bytes([2, 255, 10, 20]),
])
def test_truncated_run_record(body):
    with pytest.raises(Truncated):
        decode(io.BytesIO(header(2, 1, True) + body))


def test_truncated_opaque_run_record():
    with pytest.raises(Truncated):
        decode(io.BytesIO(header(2, 1, False) + bytes([2, 10, 20])))


@pytest.mark.parametrize('data', [b'', b'\x02\x00\x00\x00', struct.pack('<II', 2, 1)])
def test_truncated_header(data):
    with pytest.raises(Truncated):
        decode(io.BytesIO(data))


def test_insufficient_pixel_data():
    data = header(2, 2, True) + bytes([1, 255, 1, 2, 3])
    with pytest.raises(InsufficientPixelData) as excinfo:
        decode(io.BytesIO(data))
    assert excinfo.value.size == 4


def test_excess_pixel_data():
    data = header(1, 1, True) + bytes([2, 255, 1, 2, 3])
    with pytest.raises(ExcessPixelData):
        decode(io.BytesIO(data))


def test_eof_variant_treats_255_as_a_run():
    data = header(255, 1, False) + bytes([255, 1, 2, 3])
    image = decode(io.BytesIO(data), RleVariant.EOF)
    assert image.width == 255
    assert set(pixels_of(image)) == {(3, 2, 1, 255)}


def test_terminator_stops_and_pads():
    stream = io.BytesIO(header(2, 2, True) + bytes([1, 255, 1, 2, 3, 255, 9, 9]))
    image = decode(stream, RleVariant.TERMINATED)
    assert pixels_of(image) == [(3, 2, 1, 255), (0, 0, 0, 0), (0, 0, 0, 0), (0, 0, 0, 0)]
    # nothing after the terminator is consumed
    assert stream.read() == b'\x09\x09'


def test_terminator_reads_no_channels_without_alpha():
    stream = io.BytesIO(header(1, 1, False) + bytes([1, 4, 5, 6, 255, 1]))
    image = decode(stream, RleVariant.TERMINATED)
    assert pixels_of(image) == [(6, 5, 4, 255)]
    assert stream.read() == b'\x01'


def test_terminated_variant_pads_at_end_of_stream():
    data = header(3, 1, True) + bytes([1, 0])
    image = decode(io.BytesIO(data), RleVariant.TERMINATED)
    assert pixels_of(image) == [(0, 0, 0, 0)] * 3


def test_terminated_variant_still_rejects_overrun():
    data = header(1, 1, True) + bytes([3, 255, 1, 2, 3, 255])
    with pytest.raises(ExcessPixelData):
        decode(io.BytesIO(data), RleVariant.TERMINATED)


def test_terminated_variant_truncated_record():
    with pytest.raises(Truncated):
        decode(io.BytesIO(header(2, 1, True) + bytes([2, 255, 1])), RleVariant.TERMINATED)


def test_decoded_pixels_are_read_only():
    image = decode(io.BytesIO(header(1, 1, True) + bytes([1, 0])))
    with pytest.raises(ValueError):
        image.pixels[0, 0, 0] = 1


def test_load_image_from_path(tmp_path):
    path = tmp_path / 'image.data'
    path.write_bytes(header(2, 1, True) + bytes([2, 255, 10, 20, 30]))
    image = load_image_from_path(path)
    assert pixels_of(image) == [(30, 20, 10, 255)] * 2


@pytest.mark.parametrize('variant', list(RleVariant))
@pytest.mark.parametrize('width, height', [(0xFFFFFFFF, 0xFFFFFFFF), (60000, 60000)])
def test_implausible_size_is_rejected(variant, width, height):
    """A bogus header must fail as a decode error before anything is padded."""
    stream = io.BytesIO(header(width, height, True) + bytes([255]))
    with pytest.raises(ImplausibleSize):
        decode(stream, variant)


def test_size_limit_counts_pixels():
    with pytest.raises(ImplausibleSize):
        decode(io.BytesIO(header(MAX_PIXELS + 1, 1, True)), RleVariant.TERMINATED)
    # a long thin image within the limit is fine
    image = decode(io.BytesIO(header(0x10000, 1, True) + bytes([255])), RleVariant.TERMINATED)
    assert image.size == (0x10000, 1)

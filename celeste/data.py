from enum import Enum
import os
import pathlib
from typing import IO

from celeste.errors import ImplausibleSize
from celeste.image import DecodedImage
from celeste.stream import read_exact, read_uint8, read_uint32le


TERMINATOR = 255
TRANSPARENT = bytes(4)
# 8192x8192
MAX_PIXELS = 0x4000000


class RleVariant(Enum):
    # runs continue until the stream ends
    EOF = 'eof'
    # a run length of 255 ends the image, missing pixels are transparent
    TERMINATED = 'terminated'


def read_color(stream: IO[bytes], has_alpha: bool) -> bytes:
    if has_alpha:
        alpha = read_uint8(stream, 'alpha')
        if alpha == 0:
            return TRANSPARENT
    else:
        alpha = 0xFF
    b, g, r = read_exact(stream, 3, 'color')
    return bytes((r, g, b, alpha))


def decode(stream: IO[bytes], variant: RleVariant = RleVariant.EOF) -> DecodedImage:
    """Decode a run-length encoded .data image.

    Header is width and height (uint32 LE) and a has-alpha byte, followed
    by runs of a count byte and a BGR or ABGR color. Fully transparent runs
    carry no color bytes.
    """
    width = read_uint32le(stream, 'width')
    height = read_uint32le(stream, 'height')
    has_alpha = read_uint8(stream, 'alpha flag') != 0
    if width * height > MAX_PIXELS:
        raise ImplausibleSize(f'Declared size {width}x{height} exceeds {MAX_PIXELS} pixels')

    image = bytearray()
    while True:
        run_length = stream.read(1)
        if not run_length:
            break
        run_length = run_length[0]
        if variant is RleVariant.TERMINATED and run_length == TERMINATOR:
            break
        image += read_color(stream, has_alpha) * run_length

    if variant is RleVariant.TERMINATED:
        image += bytes(max(0, width * height * 4 - len(image)))

    return DecodedImage.from_buffer(bytes(image), width, height)


def load_image_from_path(path: str | os.PathLike[str], variant: RleVariant = RleVariant.EOF) -> DecodedImage:
    with pathlib.Path(path).open('rb') as stream:
        return decode(stream, variant)


if __name__ == '__main__':
    import argparse

    parser = argparse.ArgumentParser(description='Convert a single .data image to PNG')
    parser.add_argument('fname', help='Path to the .data file')
    parser.add_argument('--variant', choices=[v.value for v in RleVariant], default=RleVariant.EOF.value)
    parser.add_argument('--output', '-o', help='Output PNG (default: next to the input)')
    args = parser.parse_args()

    fname = pathlib.Path(args.fname)
    output = pathlib.Path(args.output) if args.output else fname.with_suffix('.png')

    im = load_image_from_path(fname, RleVariant(args.variant))
    print(fname, im.width, im.height)
    im.save(output)

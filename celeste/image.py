from dataclasses import dataclass, field

import numpy as np
from PIL import Image

from celeste.errors import ExcessPixelData, InsufficientPixelData, OutOfBounds


@dataclass(frozen=True, eq=False)
class DecodedImage:
    """RGBA8 bitmap held as a (height, width, 4) uint8 array."""

    pixels: np.ndarray = field(repr=False)

    def __post_init__(self):
        if self.pixels.dtype != np.uint8 or self.pixels.ndim != 3 or self.pixels.shape[2] != 4:
            raise ValueError(f'Expected (height, width, 4) uint8 pixels, got {self.pixels.shape} {self.pixels.dtype}')

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    def __repr__(self):
        return f'{type(self).__name__}(width={self.width}, height={self.height})'

    @classmethod
    def from_buffer(cls, data: bytes, width: int, height: int) -> 'DecodedImage':
        expected = width * height * 4
        if len(data) < expected:
            raise InsufficientPixelData(width, height, len(data))
        if len(data) > expected:
            raise ExcessPixelData(width, height, len(data))
        return cls(np.frombuffer(data, dtype=np.uint8).reshape(height, width, 4))

    @classmethod
    def from_image(cls, im: Image.Image) -> 'DecodedImage':
        return cls(np.asarray(im.convert('RGBA')))

    def get_pixel(self, x: int, y: int) -> tuple[int, int, int, int]:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f'Pixel ({x}, {y}) outside {self.width}x{self.height} image')
        r, g, b, a = self.pixels[y, x]
        return int(r), int(g), int(b), int(a)

    def view(self, x: int, y: int, width: int, height: int) -> 'DecodedImage':
        if x < 0 or y < 0 or width < 0 or height < 0:
            raise OutOfBounds(f'Negative rectangle ({x}, {y}, {width}, {height})')
        if x + width > self.width or y + height > self.height:
            raise OutOfBounds(
                f'Rectangle ({x}, {y}, {width}, {height}) exceeds {self.width}x{self.height} image'
            )
        return DecodedImage(self.pixels[y:y + height, x:x + width])

    def to_image(self) -> Image.Image:
        if not self.pixels.size:
            return Image.new('RGBA', self.size)
        return Image.fromarray(np.ascontiguousarray(self.pixels))

    def save(self, path) -> None:
        # PNG has no zero-area images
        if not self.pixels.size:
            raise ValueError(f'Cannot save empty {self.width}x{self.height} image')
        self.to_image().save(path)

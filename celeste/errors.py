class DecodeError(ValueError):
    pass


class Truncated(DecodeError):
    def __init__(self, what: str, expected: int, got: int):
        super().__init__(f'Unexpected end of stream reading {what}: expected {expected} bytes, got {got}')
        self.what = what
        self.expected = expected
        self.got = got


class MalformedText(DecodeError):
    pass


class PixelDataMismatch(DecodeError):
    reason = 'Pixel data does not match image size'

    def __init__(self, width: int, height: int, size: int):
        expected = width * height * 4
        super().__init__(f'{self.reason} for {width}x{height} image: expected {expected} bytes, got {size}')
        self.width = width
        self.height = height
        self.size = size


class InsufficientPixelData(PixelDataMismatch):
    reason = 'Image does not contain enough pixels'


class ExcessPixelData(PixelDataMismatch):
    reason = 'Image contains more pixels than declared'


class OutOfBounds(DecodeError):
    pass


class ImplausibleSize(DecodeError):
    pass

import struct
from typing import IO

from celeste.errors import MalformedText, Truncated


UINT8 = struct.Struct('<B')
UINT16LE = struct.Struct('<H')
UINT32LE = struct.Struct('<I')

# strings are read in pieces so a bogus length can't force a huge allocation
READ_CHUNK_SIZE = 0x10000


def read_exact(stream: IO[bytes], size: int, what: str = 'data') -> bytes:
    if size <= READ_CHUNK_SIZE:
        data = stream.read(size)
        if len(data) != size:
            raise Truncated(what, size, len(data))
        return data

    parts = []
    remaining = size
    while remaining:
        part = stream.read(min(remaining, READ_CHUNK_SIZE))
        if not part:
            raise Truncated(what, size, size - remaining)
        parts.append(part)
        remaining -= len(part)
    return b''.join(parts)


def read_uint8(stream: IO[bytes], what: str = 'uint8') -> int:
    return UINT8.unpack(read_exact(stream, UINT8.size, what))[0]


def read_uint16le(stream: IO[bytes], what: str = 'uint16') -> int:
    return UINT16LE.unpack(read_exact(stream, UINT16LE.size, what))[0]


def read_uint32le(stream: IO[bytes], what: str = 'uint32') -> int:
    return UINT32LE.unpack(read_exact(stream, UINT32LE.size, what))[0]


def read_varint(stream: IO[bytes]) -> int:
    """Read an unsigned base-128 integer, least significant group first.

    Every byte contributes its low 7 bits; a set high bit means another
    byte follows.
    """
    value = 0
    shift = 0
    while True:
        byte = stream.read(1)
        if not byte:
            raise Truncated('varint', shift // 7 + 1, shift // 7)
        byte = byte[0]
        value |= (byte & 0x7F) << shift
        shift += 7
        if not byte & 0x80:
            return value


def read_string(stream: IO[bytes]) -> str:
    length = read_varint(stream)
    data = read_exact(stream, length, 'string')
    try:
        return data.decode('utf-8')
    except UnicodeDecodeError as err:
        raise MalformedText(f'Invalid UTF-8 in string {data[:32]!r}: {err.reason}') from err

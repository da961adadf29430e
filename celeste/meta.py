from dataclasses import dataclass
import os
import pathlib
from typing import IO

from celeste.stream import read_string, read_uint16le, read_uint32le


SPRITE_FIELDS = (
    'x',
    'y',
    'width',
    'height',
    'offset_x',
    'offset_y',
    'real_width',
    'real_height',
)


@dataclass(frozen=True)
class Sprite:
    path: str
    x: int
    y: int
    width: int
    height: int
    # trim info relative to the unpacked sprite, not used for cropping
    offset_x: int
    offset_y: int
    real_width: int
    real_height: int


@dataclass(frozen=True)
class DataFile:
    path: str
    sprites: tuple[Sprite, ...]


@dataclass(frozen=True)
class AtlasMetadata:
    # header fields of unknown meaning, kept so the sprite table lines up
    version: int
    name: str
    flags: int
    data_files: tuple[DataFile, ...]


def normalize_path(path: str) -> str:
    return path.replace('\\', '/')


def read_sprite(stream: IO[bytes]) -> Sprite:
    path = normalize_path(read_string(stream))
    values = {name: read_uint16le(stream, f'sprite {name}') for name in SPRITE_FIELDS}
    return Sprite(path, **values)


def read_data_file(stream: IO[bytes]) -> DataFile:
    path = normalize_path(read_string(stream))
    num_sprites = read_uint16le(stream, 'sprite count')
    sprites = tuple(read_sprite(stream) for _ in range(num_sprites))
    return DataFile(path, sprites)


def parse_metadata(stream: IO[bytes]) -> AtlasMetadata:
    version = read_uint32le(stream, 'version')
    name = read_string(stream)
    flags = read_uint32le(stream, 'flags')

    num_datafiles = read_uint16le(stream, 'data file count')
    data_files = tuple(read_data_file(stream) for _ in range(num_datafiles))
    return AtlasMetadata(version, name, flags, data_files)


def print_header(meta: AtlasMetadata) -> None:
    print('version:', meta.version)
    print('name:', meta.name)
    print(f'flags: {meta.flags:032b}')
    print('data files:', len(meta.data_files))


def load_meta_from_path(path: str | os.PathLike[str]) -> AtlasMetadata:
    with pathlib.Path(path).open('rb') as stream:
        return parse_metadata(stream)


if __name__ == '__main__':
    import argparse

    parser = argparse.ArgumentParser(description='Dump the sprite table of an atlas .meta file')
    parser.add_argument('fname', help='Path to the .meta file')
    args = parser.parse_args()

    meta = load_meta_from_path(args.fname)
    print_header(meta)
    for data_file in meta.data_files:
        print(data_file.path, len(data_file.sprites))
        for sprite in data_file.sprites:
            print(sprite)

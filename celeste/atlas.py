import os
import pathlib
import sys

from PIL import Image

from celeste.image import DecodedImage
from celeste.meta import DataFile, Sprite


def extract_sprite(atlas: DecodedImage, sprite: Sprite) -> DecodedImage:
    """Cut the sprite rectangle out of the atlas.

    Raises OutOfBounds when the rectangle does not fit. The trim fields
    (offset and real size) are ignored.
    """
    return atlas.view(sprite.x, sprite.y, sprite.width, sprite.height)


def is_inside(base: pathlib.Path, path: pathlib.Path) -> bool:
    root = base.resolve()
    resolved = path.resolve()
    return resolved != root and resolved.is_relative_to(root)


def output_path(base_dir: str | os.PathLike[str], rel: str, suffix: str | None = None) -> pathlib.Path:
    """Join a path taken from game data onto `base_dir`, refusing to leave it."""
    base = pathlib.Path(base_dir)
    rel = rel.lstrip('/')
    if not rel:
        raise ValueError('Empty path')
    path = base / rel
    if not is_inside(base, path):
        raise ValueError(f'Path {rel!r} points outside {base}')
    if suffix is not None:
        path = path.with_suffix(suffix)
        if not is_inside(base, path):
            raise ValueError(f'Path {rel!r} points outside {base}')
    return path


def sprite_output_path(base_dir: str | os.PathLike[str], sprite: Sprite, suffix: str = '.png') -> pathlib.Path:
    return output_path(base_dir, sprite.path, suffix)


def load_atlas(path: str | os.PathLike[str]) -> DecodedImage:
    with Image.open(path) as im:
        return DecodedImage.from_image(im)


def split_atlas(atlas: DecodedImage, data_file: DataFile, output_dir: str | os.PathLike[str]) -> tuple[int, int]:
    """Write every sprite of `data_file` as a PNG under `output_dir / data_file.path`.

    A sprite that can't be extracted or saved, including an empty one, is
    reported and skipped. Returns the number of sprites written and failed.
    """
    try:
        base = output_path(output_dir, data_file.path)
    except ValueError as err:
        print(f'Skipping data file {data_file.path!r}: {err}', file=sys.stderr)
        return 0, len(data_file.sprites)
    written = failed = 0

    for sprite in data_file.sprites:
        try:
            path = sprite_output_path(base, sprite)
            print('Processing', path)
            im = extract_sprite(atlas, sprite)
            path.parent.mkdir(parents=True, exist_ok=True)
            im.save(path)
        except (ValueError, OSError) as err:
            print(f'Skipping sprite {sprite.path!r}: {err}', file=sys.stderr)
            failed += 1
            continue
        written += 1

    return written, failed

from collections.abc import Iterable, Iterator
import pathlib
import sys

from celeste.atlas import load_atlas, output_path, split_atlas
from celeste.data import RleVariant, load_image_from_path
from celeste.errors import DecodeError
from celeste.meta import load_meta_from_path, print_header


DATA_SUFFIX = '.data'
META_SUFFIX = '.meta'
OUTPUT_SUFFIX = '.png'
ATLAS_DIR = pathlib.Path('Content/Graphics/Atlases')
DEFAULT_ATLASES = ('Gameplay',)


def iter_data_files(game_dir: pathlib.Path) -> Iterator[pathlib.Path]:
    for path in sorted(game_dir.rglob(f'*{DATA_SUFFIX}')):
        if path.is_file():
            yield path


def convert_data_files(game_dir: pathlib.Path, output_dir: pathlib.Path, variant: RleVariant) -> tuple[int, int]:
    converted = failed = 0

    for path in iter_data_files(game_dir):
        print('Processing', path)
        try:
            im = load_image_from_path(path, variant)
            output = (output_dir / path.relative_to(game_dir)).with_suffix(OUTPUT_SUFFIX)
            output.parent.mkdir(parents=True, exist_ok=True)
            im.save(output)
        except (ValueError, OSError) as err:
            print(f'{path}: {err}', file=sys.stderr)
            failed += 1
            continue
        converted += 1

    print(f'Converted {converted} images, {failed} failed')
    return converted, failed


def split_atlases(game_dir: pathlib.Path, output_dir: pathlib.Path, names: Iterable[str]) -> tuple[int, int, int]:
    """Split each named atlas into sprite PNGs next to its converted atlas image.

    Atlas images are looked up in the output directory, so the .data files
    must have been converted first. Returns sprites written, sprites failed
    and atlas indexes that could not be read.
    """
    written = failed = bad_meta = 0

    for name in names:
        meta_path = game_dir / ATLAS_DIR / f'{name}{META_SUFFIX}'
        print('Processing', meta_path)
        try:
            meta = load_meta_from_path(meta_path)
        except (DecodeError, OSError) as err:
            print(f'{meta_path}: {err}', file=sys.stderr)
            bad_meta += 1
            continue
        print_header(meta)

        atlas_dir = output_dir / ATLAS_DIR
        for data_file in meta.data_files:
            print('Processing', data_file.path, len(data_file.sprites))
            try:
                atlas_png = output_path(atlas_dir, f'{data_file.path}{OUTPUT_SUFFIX}')
                atlas = load_atlas(atlas_png)
            except (ValueError, OSError) as err:
                print(f'{data_file.path}: {err}', file=sys.stderr)
                failed += len(data_file.sprites)
                continue
            ok, bad = split_atlas(atlas, data_file, atlas_dir)
            written += ok
            failed += bad

    print(f'Extracted {written} sprites, {failed} failed')
    return written, failed, bad_meta


def main(argv=None) -> int:
    import argparse

    parser = argparse.ArgumentParser(description='Convert Celeste .data images to PNG and split texture atlases')
    parser.add_argument('game_dir', help='Game directory (the one containing Content)')
    parser.add_argument('output_dir', help='Where to write the PNG files')
    parser.add_argument(
        '--variant',
        choices=[v.value for v in RleVariant],
        default=RleVariant.EOF.value,
        help='RLE flavor: "eof" reads runs until end of file, "terminated" stops at a 255 run and pads',
    )
    parser.add_argument(
        '--atlas',
        action='append',
        dest='atlases',
        metavar='NAME',
        help=f'Atlas to split, may be repeated (default: {", ".join(DEFAULT_ATLASES)})',
    )
    parser.add_argument('--skip-data', action='store_true', help='Do not convert .data files')
    parser.add_argument('--skip-atlases', action='store_true', help='Do not split atlases')
    args = parser.parse_args(argv)

    game_dir = pathlib.Path(args.game_dir)
    output_dir = pathlib.Path(args.output_dir)
    if not game_dir.is_dir():
        parser.error(f'{game_dir} is not a directory')

    if not args.skip_data:
        convert_data_files(game_dir, output_dir, RleVariant(args.variant))

    bad_meta = 0
    if not args.skip_atlases:
        _, _, bad_meta = split_atlases(game_dir, output_dir, args.atlases or DEFAULT_ATLASES)

    return 1 if bad_meta else 0


if __name__ == '__main__':
    sys.exit(main())

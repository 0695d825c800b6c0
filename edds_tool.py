#!/usr/bin/env python3.10
# -*- coding: utf-8 -*-

import argparse
import logging
import sys
from pathlib import Path

from PIL import Image

from byte_reader import ByteReader
from dds import parse_header, resolve_pixel_format
from edds_errors import EddsError
from edds_parse import Edds, Mipmap, read_descriptors


logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    args = _parse_command_line(argv)
    _setup_logging(logging.DEBUG if args.verbose else logging.WARNING)
    try:
        args.func(args)
    except (EddsError, OSError, LookupError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


def _handle_decode(args):
    edds = _load(args.input_filename)
    largest = edds.largest

    output = _output_path(args.input_filename, args.output)

    if args.all_mips:
        for index, mipmap in enumerate(edds.mipmaps):
            _save(mipmap, output.with_name(f"{output.stem}.{index}{output.suffix}"))

    _save(largest, output)
    print("Decoding successful.")


def _handle_info(args):
    _check_exists(args.input_filename)
    with open(args.input_filename, mode="rb") as input_file:
        reader = ByteReader(input_file)
        header = parse_header(reader)
        descriptors = read_descriptors(reader, header)

    ddspf = header.pixel_format

    print(f"Size: {header.width}x{header.height}")
    print(f"Mipmaps: {header.mip_map_count}")
    print(f"FourCC: {ddspf.four_cc.name}")
    if header.dx10:
        print(f"DXGI format: {header.dx10.dxgi_format.name}")
        print(f"Resource dimension: {header.dx10.resource_dimension.name}")
    else:
        print(f"Pixel format: {resolve_pixel_format(header).name}")

    for index, descriptor in enumerate(descriptors):
        print(
            f"  {index}: {descriptor.width}x{descriptor.height} "
            f"{descriptor.storage.name} ({descriptor.size} bytes)"
        )


def _check_exists(input_filename: Path) -> None:
    if not input_filename.exists():
        raise FileNotFoundError(f"{input_filename} doesn't exist.")


def _load(input_filename: Path) -> Edds:
    _check_exists(input_filename)

    logger.info("Reading %s", input_filename)
    with open(input_filename, mode="rb") as input_file:
        return Edds.parse_stream(input_file)


def _output_path(input_filename: Path, output: Path | None) -> Path:
    if output is None:
        output = Path(input_filename.stem)
    if not output.suffix:
        output = output.with_suffix(".png")
    return output


def _save(mipmap: Mipmap, filename: Path) -> None:
    image = Image.frombytes(
        mipmap.layout.name, (mipmap.width, mipmap.height), mipmap.data
    )
    image.save(filename)
    logger.info("Wrote %dx%d to %s", mipmap.width, mipmap.height, filename)


def _setup_logging(level: int) -> None:
    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(handler)

    # Pillow logs every plugin it probes at DEBUG
    logging.getLogger("PIL").setLevel(logging.WARNING)


def _parse_command_line(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="edds texture file tool")

    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(required=True)

    parser_decode = subparsers.add_parser("decode", help="Decode an edds texture file")

    parser_decode.add_argument(
        "input_filename", type=Path, metavar="INFILE", help="Input file (*.edds)"
    )

    parser_decode.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Output file (*.png/*.jpg etc.), defaults to INFILE's name as PNG",
    )

    parser_decode.add_argument(
        "--all-mips",
        action="store_true",
        help="Also write every mipmap level as <name>.<index>.<ext>",
    )

    parser_decode.set_defaults(func=_handle_decode)

    parser_info = subparsers.add_parser("info", help="Show the header and mipmaps")

    parser_info.add_argument(
        "input_filename", type=Path, metavar="INFILE", help="Input file (*.edds)"
    )

    parser_info.set_defaults(func=_handle_info)

    return parser.parse_args(argv)


if __name__ == "__main__":
    sys.exit(main())

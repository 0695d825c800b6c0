#!/usr/bin/env python3.10
# -*- coding: utf-8 -*-

import enum
import logging
from typing import BinaryIO, NamedTuple

from byte_reader import ByteReader
from dds import Header, parse_header
from edds_decode import PixelLayout, decode_pixels, pixel_layout
from edds_errors import UnknownStorageModeError
from edds_lz4 import decompress_chunk


logger = logging.getLogger(__name__)


class StorageMode(enum.Enum):
    COPY = "COPY"
    LZ4 = "LZ4 "


class MipDescriptor(NamedTuple):
    width: int
    height: int
    storage: StorageMode
    size: int


class Mipmap(NamedTuple):
    width: int
    height: int
    storage: StorageMode
    compressed_size: int
    layout: PixelLayout
    data: bytes


class Edds:
    def __init__(self, header: Header, mipmaps: tuple[Mipmap, ...]):
        self._header = header
        self._mipmaps = mipmaps

    @staticmethod
    def parse_stream(stream: BinaryIO) -> "Edds":
        reader = ByteReader(stream)
        header = parse_header(reader)
        descriptors = read_descriptors(reader, header)
        return Edds(header, materialize(reader, descriptors, header))

    @property
    def header(self) -> Header:
        return self._header

    @property
    def mipmaps(self) -> tuple[Mipmap, ...]:
        return self._mipmaps

    @property
    def largest(self) -> Mipmap:
        if not self._mipmaps:
            raise LookupError("No mipmaps found")
        return self._mipmaps[-1]


def read_descriptors(reader: ByteReader, header: Header) -> list[MipDescriptor]:
    descriptors = []

    # Smallest level first, full resolution last
    for index in range(header.mip_map_count, 0, -1):
        tag = reader.read_string_lossy(4)
        size = reader.read_u32()

        try:
            storage = StorageMode(tag)
        except ValueError:
            raise UnknownStorageModeError(tag) from None

        descriptors.append(
            MipDescriptor(
                _dimension(header.width, index),
                _dimension(header.height, index),
                storage,
                size,
            )
        )

    logger.debug(
        "Mipmaps: %s",
        ", ".join(
            f"{d.width}x{d.height} {d.storage.name} {d.size}" for d in descriptors
        ),
    )

    return descriptors


def materialize(
    reader: ByteReader, descriptors: list[MipDescriptor], header: Header
) -> tuple[Mipmap, ...]:
    layout = pixel_layout(header) if descriptors else None

    mipmaps = []
    for descriptor in descriptors:
        if descriptor.storage == StorageMode.COPY:
            data = bytearray(reader.read_bytes(descriptor.size))
        else:
            data = decompress_chunk(reader, descriptor.size)

        pixels = decode_pixels(data, descriptor.width, descriptor.height, header)

        mipmaps.append(
            Mipmap(
                descriptor.width,
                descriptor.height,
                descriptor.storage,
                descriptor.size,
                layout,
                bytes(pixels),
            )
        )

    return tuple(mipmaps)


def _dimension(size: int, index: int) -> int:
    return max(size >> (index - 1), 1)

#!/usr/bin/env python3.10
# -*- coding: utf-8 -*-

import enum
import functools
import logging
import operator
from typing import NamedTuple, Optional

from construct import Adapter, Bytes, Int32ul, Padding, Struct

from byte_reader import ByteReader
from dxgi import DxgiFormat, ResourceDimension
from edds_errors import (
    BadMagicError,
    BadSizeError,
    InvalidBitFlagsError,
    InvalidExtendedFormatError,
    InvalidFourCCError,
    InvalidResourceDimensionError,
)


logger = logging.getLogger(__name__)

DDS_MAGIC = b"DDS "
DDS_HEADER_SIZE = 124
DDS_FILE_HEADER_SIZE = len(DDS_MAGIC) + DDS_HEADER_SIZE
DDS_HEADER_DXT10_SIZE = 20


class HeaderFlags(enum.IntFlag):
    CAPS = 0x1
    HEIGHT = 0x2
    WIDTH = 0x4
    PITCH = 0x8
    PIXELFORMAT = 0x1000
    MIPMAPCOUNT = 0x20000
    LINEARSIZE = 0x80000
    DEPTH = 0x800000


class PixelFormatFlags(enum.IntFlag):
    ALPHAPIXELS = 0x1
    ALPHA = 0x2
    FOURCC = 0x4
    RGB = 0x40
    YUV = 0x200
    LUMINANCE = 0x20000


class CapsFlags(enum.IntFlag):
    COMPLEX = 0x8
    TEXTURE = 0x1000
    MIPMAP = 0x400000


class Caps2Flags(enum.IntFlag):
    CUBEMAP = 0x200
    CUBEMAP_POSITIVEX = 0x400
    CUBEMAP_NEGATIVEX = 0x800
    CUBEMAP_POSITIVEY = 0x1000
    CUBEMAP_NEGATIVEY = 0x2000
    CUBEMAP_POSITIVEZ = 0x4000
    CUBEMAP_NEGATIVEZ = 0x8000
    VOLUME = 0x200000


def _four_cc(code: bytes) -> int:
    return int.from_bytes(code, "little")


class FourCC(enum.IntEnum):
    NONE = 0
    DXT1 = _four_cc(b"DXT1")
    DXT2 = _four_cc(b"DXT2")
    DXT3 = _four_cc(b"DXT3")
    DXT4 = _four_cc(b"DXT4")
    DXT5 = _four_cc(b"DXT5")
    DX10 = _four_cc(b"DX10")
    # Some writers misspell these as ATT1/ATT2; those files are rejected
    ATI1 = _four_cc(b"ATI1")
    ATI2 = _four_cc(b"ATI2")
    BC4U = _four_cc(b"BC4U")
    BC4S = _four_cc(b"BC4S")
    BC5U = _four_cc(b"BC5U")
    BC5S = _four_cc(b"BC5S")
    RGBG = _four_cc(b"RGBG")
    GRGB = _four_cc(b"GRGB")


# https://learn.microsoft.com/en-us/windows/win32/direct3ddds/dx-graphics-dds-pguide
class LegacyFormat(enum.Enum):
    A1R5G5B5 = enum.auto()
    A2B10G10R10 = enum.auto()
    A2R10G10B10 = enum.auto()
    A4L4 = enum.auto()
    A4R4G4B4 = enum.auto()
    A8 = enum.auto()
    A8B8G8R8 = enum.auto()
    A8L8 = enum.auto()
    A8R3G3B2 = enum.auto()
    A8R8G8B8 = enum.auto()
    G16R16 = enum.auto()
    L16 = enum.auto()
    L8 = enum.auto()
    R5G6B5 = enum.auto()
    R8G8B8 = enum.auto()
    X1R5G5B5 = enum.auto()
    X4R4G4B4 = enum.auto()
    X8B8G8R8 = enum.auto()
    X8R8G8B8 = enum.auto()
    UNKNOWN = enum.auto()


# (bit count, R mask, G mask, B mask, A mask)
_LEGACY_FORMATS = {
    (16, 0x7C00, 0x3E0, 0x1F, 0x8000): LegacyFormat.A1R5G5B5,
    (32, 0x3FF, 0xFFC00, 0x3FF00000, 0xC0000000): LegacyFormat.A2B10G10R10,
    (32, 0x3FF00000, 0xFFC00, 0x3FF, 0xC0000000): LegacyFormat.A2R10G10B10,
    (8, 0xF, 0x0, 0x0, 0xF0): LegacyFormat.A4L4,
    (16, 0xF00, 0xF0, 0xF, 0xF000): LegacyFormat.A4R4G4B4,
    (8, 0x0, 0x0, 0x0, 0xFF): LegacyFormat.A8,
    (32, 0xFF, 0xFF00, 0xFF0000, 0xFF000000): LegacyFormat.A8B8G8R8,
    (16, 0xFF, 0x0, 0x0, 0xFF00): LegacyFormat.A8L8,
    (16, 0xE0, 0x1C, 0x3, 0xFF00): LegacyFormat.A8R3G3B2,
    (32, 0xFF0000, 0xFF00, 0xFF, 0xFF000000): LegacyFormat.A8R8G8B8,
    (32, 0xFFFF, 0xFFFF0000, 0x0, 0x0): LegacyFormat.G16R16,
    (16, 0xFFFF, 0x0, 0x0, 0x0): LegacyFormat.L16,
    (8, 0xFF, 0x0, 0x0, 0x0): LegacyFormat.L8,
    (16, 0xF800, 0x7E0, 0x1F, 0x0): LegacyFormat.R5G6B5,
    (24, 0xFF0000, 0xFF00, 0xFF, 0x0): LegacyFormat.R8G8B8,
    (16, 0x7C00, 0x3E0, 0x1F, 0x0): LegacyFormat.X1R5G5B5,
    (16, 0xF00, 0xF0, 0xF, 0x0): LegacyFormat.X4R4G4B4,
    (32, 0xFF, 0xFF00, 0xFF0000, 0x0): LegacyFormat.X8B8G8R8,
    (32, 0xFF0000, 0xFF00, 0xFF, 0x0): LegacyFormat.X8R8G8B8,
}


class _Expect(Adapter):
    def __init__(self, subcon, expected, error):
        super().__init__(subcon)
        self.expected = expected
        self.error = error
        self.flagbuildnone = True

    def _decode(self, obj, context, path):
        if obj != self.expected:
            raise self.error(obj)
        return obj

    def _encode(self, obj, context, path):
        return self.expected if obj is None else obj


class _KnownFlags(Adapter):
    def __init__(self, subcon, flags: type[enum.IntFlag], field: str):
        super().__init__(subcon)
        self.flags = flags
        self.field = field
        self.mask = functools.reduce(operator.or_, (flag.value for flag in flags), 0)

    def _decode(self, obj, context, path):
        unknown = obj & ~self.mask
        if unknown:
            raise InvalidBitFlagsError(self.field, obj, unknown)
        return self.flags(obj)

    def _encode(self, obj, context, path):
        return int(obj)


class _ClosedEnum(Adapter):
    def __init__(self, subcon, enum_type: type[enum.IntEnum], error):
        super().__init__(subcon)
        self.enum_type = enum_type
        self.error = error

    def _decode(self, obj, context, path):
        try:
            return self.enum_type(obj)
        except ValueError:
            raise self.error(obj) from None

    def _encode(self, obj, context, path):
        return int(obj)


DDS_PIXELFORMAT = Struct(
    "dwSize" / Int32ul,
    "dwFlags" / _KnownFlags(Int32ul, PixelFormatFlags, "pixel format flags"),
    "dwFourCC" / _ClosedEnum(Int32ul, FourCC, InvalidFourCCError),
    "dwRGBBitCount" / Int32ul,
    "dwRBitMask" / Int32ul,
    "dwGBitMask" / Int32ul,
    "dwBBitMask" / Int32ul,
    "dwABitMask" / Int32ul,
)

DDS_HEADER = Struct(
    "dwSize" / _Expect(Int32ul, DDS_HEADER_SIZE, BadSizeError),
    "dwFlags" / _KnownFlags(Int32ul, HeaderFlags, "header flags"),
    "dwHeight" / Int32ul,
    "dwWidth" / Int32ul,
    "dwPitchOrLinearSize" / Int32ul,
    "dwDepth" / Int32ul,
    "dwMipMapCount" / Int32ul,
    Padding(11 * 4),
    "ddspf" / DDS_PIXELFORMAT,
    "dwCaps" / _KnownFlags(Int32ul, CapsFlags, "caps"),
    "dwCaps2" / _KnownFlags(Int32ul, Caps2Flags, "caps2"),
    "dwCaps3" / Int32ul,
    "dwCaps4" / Int32ul,
    Padding(4),
)

DDS_FILE_HEADER = Struct(
    "magic" / _Expect(Bytes(4), DDS_MAGIC, BadMagicError),
    "dds" / DDS_HEADER,
)

DDS_HEADER_DXT10 = Struct(
    "dxgiFormat" / _ClosedEnum(Int32ul, DxgiFormat, InvalidExtendedFormatError),
    "resourceDimension"
    / _ClosedEnum(Int32ul, ResourceDimension, InvalidResourceDimensionError),
    "miscFlag" / Int32ul,
    "arraySize" / Int32ul,
    "miscFlags2" / Int32ul,
)


class PixelFormat(NamedTuple):
    size: int
    flags: PixelFormatFlags
    four_cc: FourCC
    rgb_bit_count: int
    r_bit_mask: int
    g_bit_mask: int
    b_bit_mask: int
    a_bit_mask: int


class HeaderDX10(NamedTuple):
    dxgi_format: DxgiFormat
    resource_dimension: ResourceDimension
    misc_flag: int
    array_size: int
    misc_flags2: int


class Header(NamedTuple):
    size: int
    flags: HeaderFlags
    height: int
    width: int
    pitch_or_linear_size: int
    depth: int
    mip_map_count: int
    pixel_format: PixelFormat
    caps: CapsFlags
    caps2: Caps2Flags
    caps3: int
    caps4: int
    dx10: Optional[HeaderDX10]


def parse_header(reader: ByteReader) -> Header:
    dds = DDS_FILE_HEADER.parse(reader.read_bytes(DDS_FILE_HEADER_SIZE)).dds
    ddspf = dds.ddspf

    pixel_format = PixelFormat(
        ddspf.dwSize,
        ddspf.dwFlags,
        ddspf.dwFourCC,
        ddspf.dwRGBBitCount,
        ddspf.dwRBitMask,
        ddspf.dwGBitMask,
        ddspf.dwBBitMask,
        ddspf.dwABitMask,
    )

    dx10 = None
    if (
        PixelFormatFlags.FOURCC in pixel_format.flags
        and pixel_format.four_cc == FourCC.DX10
    ):
        dxt10 = DDS_HEADER_DXT10.parse(reader.read_bytes(DDS_HEADER_DXT10_SIZE))
        dx10 = HeaderDX10(
            dxt10.dxgiFormat,
            dxt10.resourceDimension,
            dxt10.miscFlag,
            dxt10.arraySize,
            dxt10.miscFlags2,
        )

    header = Header(
        dds.dwSize,
        dds.dwFlags,
        dds.dwHeight,
        dds.dwWidth,
        dds.dwPitchOrLinearSize,
        dds.dwDepth,
        dds.dwMipMapCount,
        pixel_format,
        dds.dwCaps,
        dds.dwCaps2,
        dds.dwCaps3,
        dds.dwCaps4,
        dx10,
    )

    logger.debug(
        "Header: %dx%d, %d mipmaps, FourCC %s, DXGI format %s",
        header.width,
        header.height,
        header.mip_map_count,
        pixel_format.four_cc.name,
        dx10.dxgi_format.name if dx10 else None,
    )

    return header


def resolve_pixel_format(header: Header) -> LegacyFormat:
    ddspf = header.pixel_format
    key = (
        ddspf.rgb_bit_count,
        ddspf.r_bit_mask,
        ddspf.g_bit_mask,
        ddspf.b_bit_mask,
        ddspf.a_bit_mask,
    )
    return _LEGACY_FORMATS.get(key, LegacyFormat.UNKNOWN)

#!/usr/bin/env python3.10
# -*- coding: utf-8 -*-

import enum
from typing import Callable, NamedTuple, Union

import texture2ddecoder

from dds import FourCC, Header, LegacyFormat, resolve_pixel_format
from dxgi import DxgiFormat
from edds_errors import CodecError, UnsupportedFormatError


Buffer = Union[bytes, bytearray]


class PixelLayout(enum.Enum):
    L = 1
    RGBA = 4

    @property
    def bytes_per_pixel(self) -> int:
        return self.value


class _Decoder(NamedTuple):
    decode: Callable[[Buffer, int, int, Header], bytearray]
    layout: PixelLayout


def decode_pixels(data: Buffer, width: int, height: int, header: Header) -> bytearray:
    return _find_decoder(header).decode(data, width, height, header)


def pixel_layout(header: Header) -> PixelLayout:
    return _find_decoder(header).layout


def swap_red_blue(data: Buffer) -> bytearray:
    if not isinstance(data, bytearray):
        data = bytearray(data)
    end = len(data) - len(data) % 4
    data[0:end:4], data[2:end:4] = data[2:end:4], data[0:end:4]
    return data


def _find_decoder(header: Header) -> _Decoder:
    if header.dx10 is not None:
        key = (True, header.dx10.dxgi_format)
    else:
        key = (False, header.pixel_format.four_cc)

    try:
        return _DECODERS[key]
    except KeyError:
        raise UnsupportedFormatError(key[1].name, key[1].value) from None


def _block_decode(decoder, data: Buffer, width: int, height: int) -> bytearray:
    try:
        return bytearray(decoder(bytes(data), width, height))
    except (ValueError, RuntimeError) as e:
        raise CodecError(f"{decoder.__name__} failed on {width}x{height}: {e}") from e


def _decode_bc4(data, width, height, header):
    bgra = _block_decode(texture2ddecoder.decode_bc4, data, width, height)
    # Red channel of the BGRA output
    return bgra[2::4]


def _decode_bc3(data, width, height, header):
    bgra = _block_decode(texture2ddecoder.decode_bc3, data, width, height)
    return swap_red_blue(bgra)


def _decode_bc7(data, width, height, header):
    bgra = _block_decode(texture2ddecoder.decode_bc7, data, width, height)
    return swap_red_blue(bgra)


def _decode_bgrx(data, width, height, header):
    return swap_red_blue(data)


def _decode_legacy(data, width, height, header):
    legacy_format = resolve_pixel_format(header)
    if legacy_format not in (LegacyFormat.A8R8G8B8, LegacyFormat.X8R8G8B8):
        ddspf = header.pixel_format
        raise UnsupportedFormatError(
            f"{legacy_format.name} ({ddspf.rgb_bit_count} bits, masks "
            f"{ddspf.r_bit_mask:#x}/{ddspf.g_bit_mask:#x}/"
            f"{ddspf.b_bit_mask:#x}/{ddspf.a_bit_mask:#x})",
            ddspf.four_cc.value,
        )
    return swap_red_blue(data)


# Keyed by (has DX10 header, DXGI format or FourCC)
_DECODERS = {
    (True, DxgiFormat.BC4_UNORM): _Decoder(_decode_bc4, PixelLayout.L),
    (True, DxgiFormat.B8G8R8X8_UNORM_SRGB): _Decoder(_decode_bgrx, PixelLayout.RGBA),
    (True, DxgiFormat.BC7_UNORM_SRGB): _Decoder(_decode_bc7, PixelLayout.RGBA),
    (False, FourCC.NONE): _Decoder(_decode_legacy, PixelLayout.RGBA),
    (False, FourCC.DXT5): _Decoder(_decode_bc3, PixelLayout.RGBA),
}

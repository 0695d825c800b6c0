#!/usr/bin/env python3.10
# -*- coding: utf-8 -*-


class EddsError(Exception):
    stage = "edds"

    def __init__(self, message: str):
        super().__init__(f"{self.stage}: {message}")


class EddsIOError(EddsError):
    stage = "read"


class TextDecodingError(EddsError):
    stage = "read"


class FormatError(EddsError):
    stage = "header"


class BadMagicError(FormatError):
    def __init__(self, magic: bytes):
        self.magic = magic
        super().__init__(f"bad magic {magic!r}")


class BadSizeError(FormatError):
    def __init__(self, size: int):
        self.size = size
        super().__init__(f"bad header size {size}, expected 124")


class InvalidBitFlagsError(FormatError):
    def __init__(self, field: str, value: int, unknown: int):
        self.field = field
        self.value = value
        self.unknown = unknown
        super().__init__(
            f"invalid {field} {value:#010x} (unknown bits {unknown:#010x})"
        )


class _InvalidCodeError(FormatError):
    what = "code"

    def __init__(self, value: int):
        self.value = value
        super().__init__(f"invalid {self.what} {value:#x}")


class InvalidFourCCError(_InvalidCodeError):
    what = "FourCC"

    def __init__(self, value: int):
        self.value = value
        FormatError.__init__(
            self, f"invalid FourCC {value:#010x} ({value.to_bytes(4, 'little')!r})"
        )


class InvalidExtendedFormatError(_InvalidCodeError):
    what = "DXGI format"


class InvalidResourceDimensionError(_InvalidCodeError):
    what = "resource dimension"


class UnknownStorageModeError(FormatError):
    stage = "mipmaps"

    def __init__(self, tag: str):
        self.tag = tag
        super().__init__(f"unknown mipmap storage mode {tag!r}")


class StreamCorruptionError(FormatError):
    stage = "lz4"

    def __init__(self, message: str):
        super().__init__(message)


class DecodeError(EddsError):
    stage = "decode"


class CodecError(DecodeError):
    def __init__(self, message: str, stage: str = "decode"):
        self.stage = stage
        super().__init__(message)


class UnsupportedFormatError(DecodeError):
    def __init__(self, format_name: str, value: int):
        self.format_name = format_name
        self.value = value
        super().__init__(f"unsupported image data format {format_name} ({value:#x})")

#!/usr/bin/env python3.10
# -*- coding: utf-8 -*-

from contextlib import contextmanager
from typing import BinaryIO, Iterator

from construct import (
    Bytes,
    Construct,
    Float32l,
    Int8ul,
    Int16ul,
    Int24ul,
    Int32sl,
    Int32ul,
    StreamError,
)

from edds_errors import EddsIOError, TextDecodingError


class ByteReader:
    def __init__(self, stream: BinaryIO):
        self._stream = stream

    @property
    def stream(self) -> BinaryIO:
        return self._stream

    def tell(self) -> int:
        return self._stream.tell()

    def read_compressed_int(self) -> int:
        value = self.read_u8()
        result = value
        while value & 0x80:
            value = self.read_u8()
            result = (result + (value - 1) * 0x80) & 0xFFFFFFFF
        return result

    def read_bool(self) -> bool:
        return self.read_u8() != 0

    def read_u8(self) -> int:
        return self._parse(Int8ul)

    def read_u16(self) -> int:
        return self._parse(Int16ul)

    def read_u24(self) -> int:
        return self._parse(Int24ul)

    def read_u32(self) -> int:
        return self._parse(Int32ul)

    def read_i32(self) -> int:
        return self._parse(Int32sl)

    def read_f32(self) -> float:
        return self._parse(Float32l)

    def read_bytes(self, size: int) -> bytes:
        return self._parse(Bytes(size))

    def read_string(self, size: int) -> str:
        return _decode_strict(self.read_bytes(size))

    def read_string_lossy(self, size: int) -> str:
        return self.read_bytes(size).decode("utf-8", errors="replace")

    def read_string_zt(self) -> str:
        buffer = bytearray()
        while (byte := self.read_u8()) != 0:
            buffer.append(byte)
        return _decode_strict(bytes(buffer))

    def peek_u8(self) -> int:
        with self._restoring_position():
            return self.read_u8()

    def peek_u16(self) -> int:
        with self._restoring_position():
            return self.read_u16()

    def peek_string(self, size: int) -> str:
        with self._restoring_position():
            return self.read_string(size)

    def peek_string_lossy(self, size: int) -> str:
        with self._restoring_position():
            return self.read_string_lossy(size)

    @contextmanager
    def _restoring_position(self) -> Iterator[None]:
        try:
            position = self._stream.tell()
        except OSError as e:
            raise EddsIOError(f"cannot get stream position: {e}") from e
        try:
            yield
        finally:
            self._stream.seek(position)

    def _parse(self, field: Construct):
        try:
            return field.parse_stream(self._stream)
        except StreamError as e:
            raise EddsIOError(f"short read: {e}") from e
        except OSError as e:
            raise EddsIOError(str(e)) from e


def _decode_strict(buffer: bytes) -> str:
    try:
        return buffer.decode("utf-8")
    except UnicodeDecodeError as e:
        raise TextDecodingError(f"invalid UTF-8 string {buffer!r}") from e

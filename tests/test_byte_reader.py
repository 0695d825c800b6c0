import io
import struct

import pytest

from byte_reader import ByteReader
from edds_errors import EddsIOError, TextDecodingError


def _reader(data):
    return ByteReader(io.BytesIO(data))


def test_little_endian_integers():
    reader = _reader(
        b"\x01"
        + b"\x02\x01"
        + b"\x03\x02\x01"
        + b"\x04\x03\x02\x01"
        + b"\xff\xff\xff\xff"
    )
    assert reader.read_u8() == 0x01
    assert reader.read_u16() == 0x0102
    assert reader.read_u24() == 0x010203
    assert reader.read_u32() == 0x01020304
    assert reader.read_i32() == -1
    assert reader.tell() == 14


def test_float_and_bool():
    reader = _reader(struct.pack("<f", 1.5) + b"\x00\x07")
    assert reader.read_f32() == 1.5
    assert reader.read_bool() is False
    assert reader.read_bool() is True


def test_short_read_is_io_error():
    reader = _reader(b"\x01\x02\x03")
    with pytest.raises(EddsIOError):
        reader.read_u32()


def test_read_bytes_short():
    with pytest.raises(EddsIOError):
        _reader(b"abc").read_bytes(4)


def test_strings():
    reader = _reader(b"COPYLZ4 ")
    assert reader.read_string(4) == "COPY"
    assert reader.read_string_lossy(4) == "LZ4 "


def test_strict_string_rejects_invalid_utf8():
    with pytest.raises(TextDecodingError):
        _reader(b"\xff\xfeAB").read_string(4)


def test_lossy_string_replaces_invalid_utf8():
    assert _reader(b"\xffAB!").read_string_lossy(4) == "�AB!"


def test_zero_terminated_string():
    reader = _reader(b"name\x00rest")
    assert reader.read_string_zt() == "name"
    assert reader.read_bytes(4) == b"rest"


def test_zero_terminated_string_without_terminator():
    with pytest.raises(EddsIOError):
        _reader(b"name").read_string_zt()


def test_peeks_restore_position():
    reader = _reader(b"\x34\x12DDS ")
    assert reader.peek_u8() == 0x34
    assert reader.peek_u16() == 0x1234
    assert reader.tell() == 0
    reader.read_u16()
    assert reader.peek_string(4) == "DDS "
    assert reader.peek_string_lossy(4) == "DDS "
    assert reader.tell() == 2


def test_failed_peek_restores_position():
    reader = _reader(b"\x01\x02\x03")
    reader.read_u8()
    with pytest.raises(EddsIOError):
        reader.peek_string(4)
    assert reader.tell() == 1
    assert reader.peek_u16() == 0x0302

    invalid = _reader(b"\xff\xff")
    with pytest.raises(TextDecodingError):
        invalid.peek_string(2)
    assert invalid.tell() == 0


@pytest.mark.parametrize(
    "data, expected, consumed",
    [
        (b"\x05", 5, 1),
        (b"\x7f\x99", 0x7F, 1),
        (b"\x81\x02", 0x81 + 0x80, 2),
        (b"\x80\x81\x03", 0x80 + 0x80 * 0x80 + 2 * 0x80, 3),
    ],
)
def test_compressed_int(data, expected, consumed):
    reader = _reader(data)
    assert reader.read_compressed_int() == expected
    assert reader.tell() == consumed


def test_compressed_int_wraps_to_32_bits():
    # A zero continuation byte subtracts 0x80
    assert _reader(b"\x80\x00").read_compressed_int() == 0


def test_compressed_int_truncated():
    with pytest.raises(EddsIOError):
        _reader(b"\x81").read_compressed_int()

import io
import random
import struct

import lz4.block
import pytest

from byte_reader import ByteReader
from edds_builder import lz4_chunk
from edds_errors import CodecError, EddsIOError, StreamCorruptionError
from edds_lz4 import LZ4_BLOCK_SIZE, LZ4StreamDecoder, decompress_chunk


def _decompress(chunk, compressed_size=None, trailing=b""):
    reader = ByteReader(io.BytesIO(chunk + trailing))
    if compressed_size is None:
        compressed_size = len(chunk)
    return decompress_chunk(reader, compressed_size), reader


def _block(compressed, is_last):
    return len(compressed).to_bytes(3, "little") + bytes([is_last]) + compressed


def test_single_block():
    data = bytes(range(256)) * 16
    output, reader = _decompress(lz4_chunk(data), trailing=b"next")

    assert output == data
    assert reader.read_bytes(4) == b"next"


def test_multiple_blocks():
    rng = random.Random(1)
    data = rng.randbytes(LZ4_BLOCK_SIZE * 2 + 1000)
    output, _ = _decompress(lz4_chunk(data))

    assert output == data


def test_later_block_references_earlier_output():
    rng = random.Random(2)
    first = rng.randbytes(LZ4_BLOCK_SIZE)

    # One sequence copying first[100:4100] out of the previous block, then a
    # literal-only tail
    match_length = 4000 - 4 - 15
    second_compressed = (
        b"\x0f"
        + (LZ4_BLOCK_SIZE - 100).to_bytes(2, "little")
        + b"\xff" * (match_length // 255)
        + bytes([match_length % 255])
        + b"\x50ABCDE"
    )

    chunk = struct.pack("<I", len(first) + 4005)
    chunk += _block(lz4.block.compress(first, store_size=False), False)
    chunk += _block(second_compressed, True)

    output, _ = _decompress(chunk)
    assert output == first + first[100:4100] + b"ABCDE"


def test_compressor_dictionary_round_trip():
    rng = random.Random(5)
    first = rng.randbytes(LZ4_BLOCK_SIZE)
    second = first[100:4100]

    second_compressed = lz4.block.compress(
        second, mode="high_compression", store_size=False, dict=first
    )
    assert len(second_compressed) < len(second)

    chunk = struct.pack("<I", len(first) + len(second))
    chunk += _block(lz4.block.compress(first, store_size=False), False)
    chunk += _block(second_compressed, True)

    output, _ = _decompress(chunk)
    assert output == first + second


def test_declared_size_mismatch_is_corruption():
    chunk = lz4_chunk(b"abcd" * 100)
    with pytest.raises(StreamCorruptionError):
        _decompress(chunk, compressed_size=len(chunk) + 1, trailing=b"\x00")
    with pytest.raises(StreamCorruptionError):
        _decompress(chunk, compressed_size=len(chunk) - 1)


def test_non_final_block_past_declared_size_is_corruption():
    rng = random.Random(3)
    chunk = lz4_chunk(rng.randbytes(LZ4_BLOCK_SIZE * 2))
    with pytest.raises(StreamCorruptionError):
        _decompress(chunk, compressed_size=10)


def test_total_size_smaller_than_output_is_corruption():
    rng = random.Random(4)
    first = rng.randbytes(LZ4_BLOCK_SIZE)
    chunk = struct.pack("<I", 100)
    chunk += _block(lz4.block.compress(first, store_size=False), False)
    chunk += _block(lz4.block.compress(b"tail", store_size=False), True)

    with pytest.raises(StreamCorruptionError):
        _decompress(chunk)


def test_truncated_chunk():
    chunk = lz4_chunk(b"abcd" * 100)
    with pytest.raises(EddsIOError):
        _decompress(chunk[:-3], compressed_size=len(chunk))


def test_total_size_larger_than_block_output_is_codec_error():
    data = b"abcd" * 100
    chunk = struct.pack("<I", len(data) + 10) + lz4_chunk(data)[4:]
    with pytest.raises(CodecError):
        _decompress(chunk)


def test_garbage_block_is_codec_error():
    decoder = LZ4StreamDecoder()
    with pytest.raises(CodecError) as excinfo:
        decoder.decompress_continue(b"\xff\xff\xff\xff", 100)
    assert excinfo.value.stage == "lz4"

#!/usr/bin/env python3.10
# -*- coding: utf-8 -*-

import logging

import lz4.block

from byte_reader import ByteReader
from edds_errors import CodecError, StreamCorruptionError


logger = logging.getLogger(__name__)

LZ4_BLOCK_SIZE = 0x10000
LZ4_WINDOW_SIZE = 0x10000

# u24 block size + u8 last-block flag
_BLOCK_HEADER_SIZE = 4


class LZ4StreamDecoder:
    def __init__(self):
        self._dictionary = b""

    def decompress_continue(self, data: bytes, size: int) -> bytes:
        try:
            decompressed = lz4.block.decompress(
                data, uncompressed_size=size, dict=self._dictionary
            )
        except lz4.block.LZ4BlockError as e:
            raise CodecError(f"LZ4 block failed to decompress: {e}", "lz4") from e

        if len(decompressed) != size:
            raise CodecError(
                f"LZ4 block decompressed to {len(decompressed)} bytes, expected {size}",
                "lz4",
            )

        self._dictionary = (self._dictionary + decompressed)[-LZ4_WINDOW_SIZE:]
        return decompressed


def decompress_chunk(reader: ByteReader, compressed_size: int) -> bytearray:
    uncompressed_size = reader.read_u32()
    data_read = 4

    decoder = LZ4StreamDecoder()
    output = bytearray()
    blocks = 0

    while True:
        block_size = reader.read_u24()
        is_last_block = reader.read_bool()
        block = reader.read_bytes(block_size)
        data_read += _BLOCK_HEADER_SIZE + block_size
        blocks += 1

        if is_last_block:
            target_size = uncompressed_size - len(output)
            if target_size < 0:
                raise StreamCorruptionError(
                    f"chunk declares {uncompressed_size} bytes but "
                    f"{len(output)} were already decompressed"
                )
        else:
            if data_read >= compressed_size:
                raise StreamCorruptionError(
                    f"chunk overruns its declared size of {compressed_size} bytes"
                )
            target_size = LZ4_BLOCK_SIZE

        output += decoder.decompress_continue(block, target_size)

        if is_last_block:
            break

    if data_read != compressed_size:
        raise StreamCorruptionError(
            f"chunk consumed {data_read} bytes, declared {compressed_size}"
        )

    logger.debug(
        "Decompressed chunk: %d blocks, %d -> %d bytes",
        blocks,
        compressed_size,
        len(output),
    )

    return output

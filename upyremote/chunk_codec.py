"""upyremote: chunk encoding of file payload

Payload is split into slices of CHUNK_SIZE bytes, each slice is encoded
to base64 separately, so every chunk is single line of text which can be
decoded without knowledge of other chunks.
"""

import base64 as _base64
import binascii as _binascii
from collections import namedtuple as _namedtuple


# 192 bytes -> 256 characters of base64, fits into device input buffer
CHUNK_SIZE = 192

Chunk = _namedtuple('Chunk', ['index', 'data'])


class ChunkError(ValueError):
    """Malformed chunk or chunk sequence"""


def encode_chunk(index, data):
    return Chunk(index, _base64.b64encode(data))


def decode_chunk(chunk):
    try:
        return _base64.b64decode(chunk.data, validate=True)
    except _binascii.Error as err:
        raise ChunkError(f"Chunk {chunk.index} is malformed: {err}") from err


def encode(data, chunk_size=CHUNK_SIZE):
    """Split data to encoded chunks

    Arguments:
        data: bytes to encode
        chunk_size: raw bytes per chunk, must be multiple of 3

    Returns:
        list of Chunk
    """
    if chunk_size <= 0 or chunk_size % 3:
        raise ValueError(f"Chunk size must be positive multiple of 3: {chunk_size}")
    return [
        encode_chunk(index, data[pos:pos + chunk_size])
        for index, pos in enumerate(range(0, len(data), chunk_size))]


def decode(chunks):
    """Join chunks back to data

    Arguments:
        chunks: sequence of Chunk, ordered by index starting from 0

    Returns:
        decoded bytes
    """
    data = bytearray()
    for expected, chunk in enumerate(chunks):
        if chunk.index != expected:
            raise ChunkError(
                f"Expected chunk {expected}, received chunk {chunk.index}")
        data += decode_chunk(chunk)
    return bytes(data)

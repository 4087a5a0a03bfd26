"""
Binary codec for embedding vectors.

A vector of D floats is stored as D consecutive 4-byte IEEE-754 single precision
values in a fixed byte order, with no length prefix and no padding, so the blob
length alone (divided by 4) gives the dimension back.
"""

from enum import Enum
from typing import Sequence, Union

import numpy as np

from wordemb.utils.exceptions import CodecError

FLOAT_SIZE = 4

VectorLike = Union[Sequence[float], np.ndarray]


class ByteOrder(str, Enum):
    BIG = "big"
    LITTLE = "little"

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(">f4" if self is ByteOrder.BIG else "<f4")


DEFAULT_BYTE_ORDER = ByteOrder.BIG


def encode_vector(vector: VectorLike, order: ByteOrder) -> bytes:
    """Encode a vector as concatenated float32 values in `order`.

    Values are narrowed from float64 to float32 here; the output is always
    ``4 * len(vector)`` bytes.
    """
    order = ByteOrder(order)
    arr = np.asarray(vector, dtype=np.float64)
    if arr.ndim != 1:
        raise CodecError(
            f"Expected a 1-D vector, got an array with shape {arr.shape}",
            details={"shape": list(arr.shape)},
        )
    return arr.astype(order.dtype).tobytes()


def decode_vector(blob: bytes, order: ByteOrder) -> np.ndarray:
    """Decode a blob produced by :func:`encode_vector` into a native float32 array."""
    order = ByteOrder(order)
    if not isinstance(blob, (bytes, bytearray, memoryview)):
        raise CodecError(f"Expected a bytes blob, got {type(blob).__name__}")
    size = len(blob)
    if size % FLOAT_SIZE:
        raise CodecError(
            f"Blob of {size} bytes is not a whole number of {FLOAT_SIZE}-byte floats",
            details={"size": size},
        )
    return np.frombuffer(blob, dtype=order.dtype).astype(np.float32)


class VectorCodec:
    """Encoder/decoder bound to one byte order.

    The store and the in-memory mirror must agree on the byte order, so it is fixed
    here once and every encode/decode goes through the same instance.
    """

    def __init__(self, byte_order: Union[ByteOrder, str] = DEFAULT_BYTE_ORDER):
        self.byte_order = ByteOrder(byte_order)

    def encode(self, vector: VectorLike) -> bytes:
        return encode_vector(vector, self.byte_order)

    def decode(self, blob: bytes) -> np.ndarray:
        return decode_vector(blob, self.byte_order)

    def dimension_of(self, blob: bytes) -> int:
        size = len(blob)
        if size % FLOAT_SIZE:
            raise CodecError(
                f"Blob of {size} bytes is not a whole number of {FLOAT_SIZE}-byte floats",
                details={"size": size},
            )
        return size // FLOAT_SIZE

    def __eq__(self, other):
        return isinstance(other, VectorCodec) and other.byte_order is self.byte_order

    def __hash__(self):
        return hash(self.byte_order)

    def __repr__(self):
        return f"VectorCodec(byte_order={self.byte_order.value!r})"

"""
Borsh binary serialization.

Borsh is the canonical encoding NEAR uses for transactions: little-endian
fixed-width integers, u32 length prefixes for dynamic collections, a single
byte for enum variants and option tags.
"""
import struct
import logging
from typing import Any, Callable, List, Optional, TypeVar

from .exceptions import SerializationError

logger = logging.getLogger(__name__)

T = TypeVar('T')

U8_MAX = 2**8 - 1
U32_MAX = 2**32 - 1
U64_MAX = 2**64 - 1
U128_MAX = 2**128 - 1


class BorshEncoder:
    """Borsh encoder with chainable ``encode_*`` methods"""

    def __init__(self):
        self.buffer = bytearray()

    def encode_bool(self, value: bool) -> "BorshEncoder":
        """Encode boolean value"""
        self.buffer.append(1 if value else 0)
        return self

    def encode_u8(self, value: int) -> "BorshEncoder":
        """Encode 8-bit unsigned integer"""
        _check_range(value, U8_MAX, "u8")
        self.buffer.append(value)
        return self

    def encode_u32(self, value: int) -> "BorshEncoder":
        """Encode 32-bit unsigned integer (little endian)"""
        _check_range(value, U32_MAX, "u32")
        self.buffer.extend(struct.pack("<I", value))
        return self

    def encode_u64(self, value: int) -> "BorshEncoder":
        """Encode 64-bit unsigned integer (little endian)"""
        _check_range(value, U64_MAX, "u64")
        self.buffer.extend(struct.pack("<Q", value))
        return self

    def encode_u128(self, value: int) -> "BorshEncoder":
        """Encode 128-bit unsigned integer (little endian)"""
        _check_range(value, U128_MAX, "u128")
        low = value & 0xFFFFFFFFFFFFFFFF
        high = (value >> 64) & 0xFFFFFFFFFFFFFFFF
        self.buffer.extend(struct.pack("<QQ", low, high))
        return self

    def encode_fixed_bytes(self, value: bytes, length: int) -> "BorshEncoder":
        """Encode a fixed-size byte array (no length prefix)"""
        if len(value) != length:
            raise SerializationError(
                f"Expected {length} bytes, got {len(value)}"
            )
        self.buffer.extend(value)
        return self

    def encode_bytes(self, value: bytes) -> "BorshEncoder":
        """Encode byte array with u32 length prefix"""
        self.encode_u32(len(value))
        self.buffer.extend(value)
        return self

    def encode_string(self, value: str) -> "BorshEncoder":
        """Encode UTF-8 string with u32 length prefix"""
        return self.encode_bytes(value.encode("utf-8"))

    def encode_option(
        self, value: Optional[T], encoder_func: Callable[[T], Any]
    ) -> "BorshEncoder":
        """Encode optional value"""
        if value is None:
            self.encode_u8(0)
        else:
            self.encode_u8(1)
            encoder_func(value)
        return self

    def encode_vector(
        self, values: List[T], encoder_func: Callable[[T], Any]
    ) -> "BorshEncoder":
        """Encode vector with u32 length prefix"""
        self.encode_u32(len(values))
        for value in values:
            encoder_func(value)
        return self

    def to_bytes(self) -> bytes:
        """Get encoded bytes"""
        return bytes(self.buffer)


class BorshDecoder:
    """Borsh decoder reading from an in-memory buffer"""

    def __init__(self, data: bytes):
        self.data = bytes(data)
        self.offset = 0

    def _take(self, size: int, what: str) -> bytes:
        if self.offset + size > len(self.data):
            raise SerializationError(f"Unexpected end of data while decoding {what}")
        chunk = self.data[self.offset:self.offset + size]
        self.offset += size
        return chunk

    def decode_bool(self) -> bool:
        value = self.decode_u8()
        if value not in (0, 1):
            raise SerializationError(f"Invalid bool byte: {value}")
        return value == 1

    def decode_u8(self) -> int:
        return self._take(1, "u8")[0]

    def decode_u32(self) -> int:
        return struct.unpack("<I", self._take(4, "u32"))[0]

    def decode_u64(self) -> int:
        return struct.unpack("<Q", self._take(8, "u64"))[0]

    def decode_u128(self) -> int:
        low, high = struct.unpack("<QQ", self._take(16, "u128"))
        return (high << 64) | low

    def decode_fixed_bytes(self, length: int) -> bytes:
        return self._take(length, f"[u8; {length}]")

    def decode_bytes(self) -> bytes:
        length = self.decode_u32()
        return self._take(length, "bytes")

    def decode_string(self) -> str:
        encoded = self.decode_bytes()
        try:
            return encoded.decode("utf-8")
        except UnicodeDecodeError as e:
            raise SerializationError("Invalid UTF-8 string") from e

    def decode_option(self, decoder_func: Callable[[], T]) -> Optional[T]:
        tag = self.decode_u8()
        if tag == 0:
            return None
        if tag != 1:
            raise SerializationError(f"Invalid option tag: {tag}")
        return decoder_func()

    def decode_vector(self, decoder_func: Callable[[], T]) -> List[T]:
        length = self.decode_u32()
        return [decoder_func() for _ in range(length)]

    def remaining_bytes(self) -> int:
        """Get number of remaining bytes"""
        return len(self.data) - self.offset

    def is_finished(self) -> bool:
        """Check if all data has been consumed"""
        return self.offset >= len(self.data)


def _check_range(value: int, maximum: int, type_name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise SerializationError(f"{type_name} value must be an integer, got {type(value).__name__}")
    if not (0 <= value <= maximum):
        raise SerializationError(f"{type_name} value out of range: {value}")

"""Primitive encoders and decoders for the MQTT wire format."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, TypeVar

from .errors import DecodeError, DecodeErrorKind, EncodeError, EncodeErrorKind

T = TypeVar("T")

MAX_VARIABLE_LENGTH = 268_435_455
_MAX_FIELD_LENGTH = 0xFFFF


def _invalid_length() -> DecodeError:
    return DecodeError(DecodeErrorKind.INVALID_LENGTH)


def _malformed() -> DecodeError:
    return DecodeError(DecodeErrorKind.MALFORMED_PACKET)


class ByteReader:
    """A read cursor over an immutable byte string."""

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self.position = 0

    def remaining(self) -> int:
        """Number of unread bytes."""
        return len(self._data) - self.position

    def take(self, n: int) -> bytes:
        """Consume and return the next ``n`` bytes."""
        if n < 0 or self.remaining() < n:
            raise _invalid_length()
        chunk = self._data[self.position : self.position + n]
        self.position += n
        return chunk

    def read_u8(self) -> int:
        return self.take(1)[0]

    def read_u16(self) -> int:
        return int.from_bytes(self.take(2), "big")

    def read_u32(self) -> int:
        return int.from_bytes(self.take(4), "big")

    def __repr__(self) -> str:
        return f"ByteReader(position={self.position}, remaining={self.remaining()})"


def decode_bool(reader: ByteReader) -> bool:
    """Decode a one-byte boolean; only 0 and 1 are allowed."""
    if reader.remaining() < 1:
        raise _invalid_length()
    value = reader.read_u8()
    if value > 1:
        raise _malformed()
    return value == 1


def decode_u16(reader: ByteReader) -> int:
    if reader.remaining() < 2:
        raise _invalid_length()
    return reader.read_u16()


def decode_u32(reader: ByteReader) -> int:
    if reader.remaining() < 4:
        raise _invalid_length()
    return reader.read_u32()


def decode_nonzero_u16(reader: ByteReader) -> int:
    value = decode_u16(reader)
    if value == 0:
        raise _malformed()
    return value


def decode_nonzero_u32(reader: ByteReader) -> int:
    value = decode_u32(reader)
    if value == 0:
        raise _malformed()
    return value


def decode_bytes(reader: ByteReader) -> bytes:
    """Decode binary data prefixed by a two-byte big-endian length."""
    length = decode_u16(reader)
    if reader.remaining() < length:
        raise _invalid_length()
    return reader.take(length)


def decode_string(reader: ByteReader) -> str:
    """Decode a length-prefixed UTF-8 string."""
    raw = decode_bytes(reader)
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecodeError(DecodeErrorKind.UTF8_ERROR, exc) from exc


def read_single_property(
    current: T | None, decoder: Callable[[ByteReader], T], reader: ByteReader
) -> T:
    """Decode a property that may appear at most once.

    ``current`` is the value read so far, or None if the property was not seen yet.
    """
    if current is not None:
        raise _malformed()
    return decoder(reader)


def read_variable_length(reader: ByteReader) -> int:
    """Decode a variable byte integer from the reader."""
    shift = 0
    length = 0
    while True:
        if reader.remaining() < 1:
            raise _malformed()
        byte = reader.read_u8()
        length += (byte & 0x7F) << shift
        if not byte & 0x80:
            return length
        if shift >= 21:
            raise _invalid_length()
        shift += 7


def decode_variable_length(data: bytes) -> tuple[int, int] | None:
    """Decode a variable byte integer at the start of ``data``.

    Returns ``(value, bytes consumed)``, or None when more data is needed.
    """
    reader = ByteReader(data)
    try:
        value = read_variable_length(reader)
    except DecodeError as exc:
        if exc.kind is DecodeErrorKind.MALFORMED_PACKET:
            return None
        raise
    return value, reader.position


def take_properties(reader: ByteReader) -> bytes:
    """Consume a property block prefixed by its variable length."""
    length = read_variable_length(reader)
    if reader.remaining() < length:
        raise _invalid_length()
    return reader.take(length)


def encode_bool(value: bool) -> bytes:
    return b"\x01" if value else b"\x00"


def encode_u16(value: int) -> bytes:
    return value.to_bytes(2, "big")


def encode_u32(value: int) -> bytes:
    return value.to_bytes(4, "big")


def encode_bytes(value: bytes) -> bytes:
    """Encode binary data with a two-byte big-endian length prefix."""
    if len(value) > _MAX_FIELD_LENGTH:
        raise EncodeError(EncodeErrorKind.INVALID_LENGTH)
    return len(value).to_bytes(2, "big") + bytes(value)


def encode_string(value: str) -> bytes:
    return encode_bytes(value.encode("utf-8"))


def encode_string_pair(pair: tuple[str, str]) -> bytes:
    key, value = pair
    return encode_string(key) + encode_string(value)


def write_variable_length(length: int) -> bytes:
    """Encode a variable byte integer of at most four bytes."""
    if length < 0 or length > MAX_VARIABLE_LENGTH:
        raise ValueError("length is too big")
    out = bytearray()
    while True:
        byte = length & 0x7F
        length >>= 7
        if length:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


async def select(first: Awaitable[Any], second: Awaitable[Any]) -> tuple[int, Any]:
    """Wait for whichever awaitable finishes first and cancel the other.

    Returns ``(0, result)`` if ``first`` won and ``(1, result)`` otherwise;
    when both finish together, ``first`` wins.
    """
    task1 = asyncio.ensure_future(first)
    task2 = asyncio.ensure_future(second)
    try:
        done, _ = await asyncio.wait({task1, task2}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (task1, task2):
            if not task.done():
                task.cancel()
    if task1 in done:
        return 0, task1.result()
    return 1, task2.result()
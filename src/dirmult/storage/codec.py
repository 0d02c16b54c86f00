from __future__ import annotations

import numbers
import struct
from abc import ABC, abstractmethod
from typing import Any, Dict, Hashable

from dirmult.errors import MalformedStreamError

_DOUBLE = struct.Struct("<d")

# A uint64 never needs more than 10 groups of 7 bits.
_MAX_VARINT_BYTES = 10


class ByteWriter:
    """Append-only byte buffer with the primitive encoders used by dirmult.

    Integers are ULEB128 varints (signed values go through zigzag first),
    floats are 8-byte little-endian IEEE-754, and text is a varint byte
    length followed by UTF-8.
    """

    def __init__(self) -> None:
        self._buf = bytearray()

    def __len__(self) -> int:
        return len(self._buf)

    def getvalue(self) -> bytes:
        return bytes(self._buf)

    def write_uint(self, value: int) -> None:
        n = int(value)
        if n < 0:
            raise ValueError(f"unsigned varint cannot encode {n}")
        while True:
            byte = n & 0x7F
            n >>= 7
            if n:
                self._buf.append(byte | 0x80)
            else:
                self._buf.append(byte)
                break

    def write_sint(self, value: int) -> None:
        n = int(value)
        self.write_uint((n << 1) if n >= 0 else ((-n << 1) - 1))

    def write_double(self, value: float) -> None:
        self._buf += _DOUBLE.pack(float(value))

    def write_text(self, value: str) -> None:
        raw = value.encode("utf-8")
        self.write_uint(len(raw))
        self._buf += raw


class ByteReader:
    """Cursor over an immutable buffer, the decoding side of ByteWriter."""

    def __init__(self, data: bytes) -> None:
        self._data = memoryview(bytes(data))
        self._pos = 0

    @property
    def position(self) -> int:
        return self._pos

    def remaining(self) -> int:
        return len(self._data) - self._pos

    def at_end(self) -> bool:
        return self._pos >= len(self._data)

    def _take(self, size: int) -> memoryview:
        if self.remaining() < size:
            raise MalformedStreamError(
                f"needed {size} bytes at offset {self._pos}, only {self.remaining()} left"
            )
        chunk = self._data[self._pos : self._pos + size]
        self._pos += size
        return chunk

    def read_uint(self) -> int:
        result = 0
        shift = 0
        for _ in range(_MAX_VARINT_BYTES):
            b = self._take(1)[0]
            result |= (b & 0x7F) << shift
            if (b & 0x80) == 0:
                return result
            shift += 7
        raise MalformedStreamError(f"varint longer than {_MAX_VARINT_BYTES} bytes")

    def read_sint(self) -> int:
        n = self.read_uint()
        return (n >> 1) if not (n & 1) else -((n + 1) >> 1)

    def read_double(self) -> float:
        return _DOUBLE.unpack(self._take(_DOUBLE.size))[0]

    def read_text(self) -> str:
        size = self.read_uint()
        raw = self._take(size)
        try:
            return bytes(raw).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedStreamError(f"invalid UTF-8 in text field: {exc}") from exc


class EventCodec(ABC):
    """Wire encoding for one event type.

    The stream itself carries no type tag, so the same codec must be used
    to write and to read a record.
    """

    name: str

    @abstractmethod
    def write(self, writer: ByteWriter, event: Any) -> None:
        """Append ``event`` to ``writer``."""

    @abstractmethod
    def read(self, reader: ByteReader) -> Hashable:
        """Decode one event from ``reader``."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class IntEventCodec(EventCodec):
    name = "int"

    def write(self, writer: ByteWriter, event: Any) -> None:
        if isinstance(event, bool) or not isinstance(event, numbers.Integral):
            raise TypeError(f"int codec cannot encode {event!r}")
        writer.write_sint(int(event))

    def read(self, reader: ByteReader) -> int:
        return reader.read_sint()


class FloatEventCodec(EventCodec):
    name = "float"

    def write(self, writer: ByteWriter, event: Any) -> None:
        if isinstance(event, bool) or not isinstance(event, numbers.Real):
            raise TypeError(f"float codec cannot encode {event!r}")
        writer.write_double(float(event))

    def read(self, reader: ByteReader) -> float:
        return reader.read_double()


class TextEventCodec(EventCodec):
    name = "text"

    def write(self, writer: ByteWriter, event: Any) -> None:
        if not isinstance(event, str):
            raise TypeError(f"text codec cannot encode {event!r}")
        writer.write_text(event)

    def read(self, reader: ByteReader) -> str:
        return reader.read_text()


INT_CODEC = IntEventCodec()
FLOAT_CODEC = FloatEventCodec()
TEXT_CODEC = TextEventCodec()

_CODECS: Dict[str, EventCodec] = {c.name: c for c in (INT_CODEC, FLOAT_CODEC, TEXT_CODEC)}


def get_codec(name: str) -> EventCodec:
    """Return the built-in codec registered under ``name``."""
    try:
        return _CODECS[name]
    except KeyError:
        raise ValueError(
            f"unknown event codec {name!r}; expected one of {sorted(_CODECS)}"
        ) from None


def codec_for(event: Any) -> EventCodec:
    """Pick a codec by inspecting a sample event."""
    if isinstance(event, str):
        return TEXT_CODEC
    if isinstance(event, bool):
        raise TypeError("bool events have no wire encoding")
    if isinstance(event, numbers.Integral):
        return INT_CODEC
    if isinstance(event, numbers.Real):
        return FLOAT_CODEC
    raise TypeError(f"no event codec for type {type(event).__name__}")

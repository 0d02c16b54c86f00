from __future__ import annotations

from .codec import (  # noqa: F401
    FLOAT_CODEC,
    INT_CODEC,
    TEXT_CODEC,
    ByteReader,
    ByteWriter,
    EventCodec,
    codec_for,
    get_codec,
)

__all__ = [
    "ByteReader",
    "ByteWriter",
    "EventCodec",
    "INT_CODEC",
    "FLOAT_CODEC",
    "TEXT_CODEC",
    "codec_for",
    "get_codec",
]

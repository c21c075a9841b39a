"""Byte-stream framing for JSON-RPC over stdio."""

from riffmcp.stdio.framing import (
    Frame,
    FrameFormat,
    FrameReader,
    FrameWriter,
    detect_format,
    encode_frame,
    write_frame,
)

__all__ = [
    "Frame",
    "FrameFormat",
    "FrameReader",
    "FrameWriter",
    "detect_format",
    "encode_frame",
    "write_frame",
]

"""
Incremental framing for JSON-RPC over a raw byte stream.

Two formats share one stream and are detected per message:

- length-prefixed: ``Content-Length: N`` header block ended by ``\\r\\n\\r\\n``
  (a bare ``\\n\\n`` is accepted), followed by exactly N body bytes
- line-delimited: the body on one line ended by ``\\n``

The reader keeps an explicit buffer plus the format chosen for the message
in progress, so it works with streams that hand out any number of bytes per
read, down to one.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import IO, Iterator

from riffmcp.utils.exceptions import FramingError, TruncatedStreamError

DETECTION_WINDOW = 50
MAX_HEADER_BYTES = 8192
READ_CHUNK_SIZE = 64 * 1024

_LENGTH_PREFIX = b"content-length:"
_WHITESPACE = b" \t\r\n"


class FrameFormat(str, Enum):
    LENGTH_PREFIXED = "length-prefixed"
    LINE_DELIMITED = "line-delimited"


@dataclass(frozen=True)
class Frame:
    body: bytes
    format: FrameFormat


def detect_format(head: bytes) -> FrameFormat | None:
    """
    Choose a format from the first bytes of a message.

    Returns None while ``head`` is still a prefix of ``Content-Length:`` and
    more bytes are needed to decide.
    """
    window = head[:DETECTION_WINDOW]
    lowered = window.lower()
    if lowered.startswith(_LENGTH_PREFIX):
        return FrameFormat.LENGTH_PREFIXED
    if _LENGTH_PREFIX.startswith(lowered):
        return None
    if window.lstrip(_WHITESPACE).startswith(b"{"):
        return FrameFormat.LINE_DELIMITED
    return FrameFormat.LENGTH_PREFIXED


def parse_content_length(header: bytes) -> int:
    try:
        text = header.decode("ascii")
    except UnicodeDecodeError as exc:
        raise FramingError("Header block is not ASCII") from exc
    for line in text.split("\n"):
        name, sep, value = line.rstrip("\r").partition(":")
        if not sep or name.strip().lower() != "content-length":
            continue
        value = value.strip()
        if not value.isdigit():
            raise FramingError(f"Invalid Content-Length value: {value!r}", header=text)
        return int(value)
    raise FramingError("Header block has no Content-Length", header=text)


class FrameReader:
    """Read frames one at a time from a blocking binary stream."""

    def __init__(
        self,
        stream: IO[bytes],
        fixed_format: FrameFormat | None = None,
        chunk_size: int = READ_CHUNK_SIZE,
    ):
        self._stream = stream
        self._fixed_format = fixed_format
        self._chunk_size = chunk_size
        self._buffer = bytearray()
        self._eof = False
        self._reset_message_state()

    def _reset_message_state(self) -> None:
        self._format: FrameFormat | None = self._fixed_format
        self._scan_from = 0
        # (body_start, body_length) once the header has been parsed
        self._pending_body: tuple[int, int] | None = None

    @property
    def buffered(self) -> int:
        return len(self._buffer)

    def read_frame(self) -> Frame | None:
        """
        Return the next frame, or None on a clean end of stream.

        Raises TruncatedStreamError when the stream ends inside a message and
        FramingError for a malformed header.
        """
        while True:
            frame = self._try_parse()
            if frame is not None:
                return frame
            if self._eof:
                return self._finish()
            self._fill()

    def __iter__(self) -> Iterator[Frame]:
        while True:
            frame = self.read_frame()
            if frame is None:
                return
            yield frame

    def _fill(self) -> None:
        read = getattr(self._stream, "read1", None) or self._stream.read
        chunk = read(self._chunk_size)
        if not chunk:
            self._eof = True
            return
        self._buffer.extend(chunk)

    def _try_parse(self) -> Frame | None:
        if self._format is None:
            self._skip_separator_whitespace()
            if not self._buffer:
                return None
            detected = detect_format(bytes(self._buffer[:DETECTION_WINDOW]))
            if detected is None:
                if not self._eof:
                    return None
                detected = FrameFormat.LENGTH_PREFIXED
            self._format = detected
        if self._format == FrameFormat.LENGTH_PREFIXED:
            return self._parse_length_prefixed()
        return self._parse_line()

    def _skip_separator_whitespace(self) -> None:
        count = 0
        while count < len(self._buffer) and self._buffer[count] in _WHITESPACE:
            count += 1
        if count:
            del self._buffer[:count]

    def _parse_length_prefixed(self) -> Frame | None:
        if self._pending_body is None:
            header_end = self._find_header_end()
            if header_end is None:
                if len(self._buffer) > MAX_HEADER_BYTES:
                    raise FramingError(
                        f"Header exceeds {MAX_HEADER_BYTES} bytes without a terminator",
                        buffered=len(self._buffer),
                    )
                return None
            end, separator_length = header_end
            length = parse_content_length(bytes(self._buffer[:end]))
            self._pending_body = (end + separator_length, length)

        body_start, length = self._pending_body
        if len(self._buffer) - body_start < length:
            return None
        body = bytes(self._buffer[body_start:body_start + length])
        del self._buffer[:body_start + length]
        self._reset_message_state()
        return Frame(body, FrameFormat.LENGTH_PREFIXED)

    def _find_header_end(self) -> tuple[int, int] | None:
        start = max(0, self._scan_from - 3)
        crlf = self._buffer.find(b"\r\n\r\n", start)
        lf = self._buffer.find(b"\n\n", start)
        self._scan_from = len(self._buffer)
        candidates = [(index, width) for index, width in ((crlf, 4), (lf, 2)) if index >= 0]
        if not candidates:
            return None
        return min(candidates)

    def _parse_line(self) -> Frame | None:
        index = self._buffer.find(b"\n", self._scan_from)
        if index < 0:
            self._scan_from = len(self._buffer)
            return None
        line = bytes(self._buffer[:index])
        del self._buffer[:index + 1]
        self._reset_message_state()
        if line.endswith(b"\r"):
            line = line[:-1]
        return Frame(line, FrameFormat.LINE_DELIMITED)

    def _finish(self) -> None:
        if not self._buffer:
            return None
        if self._format == FrameFormat.LINE_DELIMITED:
            stage = "line"
        elif self._pending_body is not None:
            stage = "body"
        else:
            stage = "header"
        raise TruncatedStreamError(stage, len(self._buffer))


def encode_frame(body: bytes, frame_format: FrameFormat) -> bytes:
    if frame_format == FrameFormat.LINE_DELIMITED:
        if b"\n" in body:
            raise FramingError("Line-delimited body must not contain a newline")
        return body + b"\n"
    return b"Content-Length: %d\r\n\r\n" % len(body) + body


def write_frame(stream: IO[bytes], body: bytes, frame_format: FrameFormat) -> None:
    stream.write(encode_frame(body, frame_format))
    flush = getattr(stream, "flush", None)
    if flush is not None:
        flush()


class FrameWriter:
    """Write replies in the format of the request they answer."""

    def __init__(self, stream: IO[bytes]):
        self._stream = stream

    def write(self, body: bytes, frame_format: FrameFormat) -> None:
        write_frame(self._stream, body, frame_format)

    def reply(self, request: Frame, body: bytes) -> None:
        write_frame(self._stream, body, request.format)

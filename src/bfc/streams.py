from __future__ import annotations

from typing import BinaryIO, Optional, Protocol, TextIO, Union


class InputSource(Protocol):
    def read_byte(self) -> Optional[int]:
        """Next byte (0..255), or None at end of input."""


class OutputSink(Protocol):
    def write_byte(self, value: int) -> None:
        ...


class BytesInput:
    """Serves bytes from an in-memory buffer."""

    def __init__(self, data: Union[str, bytes, bytearray] = b''):
        if isinstance(data, str):
            data = data.encode('utf-8')
        self._data = bytes(data)
        self._pos = 0

    def read_byte(self) -> Optional[int]:
        if self._pos >= len(self._data):
            return None
        value = self._data[self._pos]
        self._pos += 1
        return value


class StreamInput:
    """
    Reads one byte per call from a stream (e.g. sys.stdin.buffer).

    Text streams are read a character at a time; the remaining UTF-8 bytes
    of a multi-byte character are served by the following calls.
    """

    def __init__(self, stream: Union[BinaryIO, TextIO]):
        self.stream = stream
        self._pending = b''

    def read_byte(self) -> Optional[int]:
        if not self._pending:
            data = self.stream.read(1)
            if not data:
                return None
            if isinstance(data, str):
                data = data.encode('utf-8')
            self._pending = data
        value = self._pending[0]
        self._pending = self._pending[1:]
        return value


class BytesOutput:
    def __init__(self):
        self.buffer = bytearray()

    def write_byte(self, value: int) -> None:
        self.buffer.append(value)

    def getvalue(self) -> bytes:
        return bytes(self.buffer)


class StreamOutput:
    """Writes each byte straight to a binary stream, flushing after every write by default."""

    def __init__(self, stream: BinaryIO, *, flush: bool = True):
        self.stream = stream
        self.flush = flush

    def write_byte(self, value: int) -> None:
        self.stream.write(bytes((value,)))
        if self.flush:
            self.stream.flush()

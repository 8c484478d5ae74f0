from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO, Iterator, TextIO, Union

import numpy as np

from .errors import BFAllocationError, BFIOError
from .opcodes import COMMAND_MASK, Opcode

logger = logging.getLogger(__name__)

Source = Union[str, bytes, bytearray, memoryview]

_INITIAL_CAPACITY = 64


class Program:
    """
    Filtered, immutable opcode sequence.

    Backed by a read-only int32 array so the JIT loop can consume it
    directly. Indexing yields `Opcode` members.
    """

    __slots__ = ('_ops',)

    def __init__(self, ops: np.ndarray):
        ops = np.asarray(ops, dtype=np.int32)
        ops.setflags(write=False)
        self._ops = ops

    @property
    def ops(self) -> np.ndarray:
        return self._ops

    def __len__(self) -> int:
        return len(self._ops)

    def __getitem__(self, address: int) -> Opcode:
        return Opcode(int(self._ops[address]))

    def __iter__(self) -> Iterator[Opcode]:
        for value in self._ops:
            yield Opcode(int(value))

    def __eq__(self, other) -> bool:
        if not isinstance(other, Program):
            return NotImplemented
        return np.array_equal(self._ops, other._ops)

    def __hash__(self) -> int:
        return hash(self._ops.tobytes())

    def __repr__(self) -> str:
        src = self.to_source()
        if len(src) > 40:
            src = src[:37] + '...'
        return f"Program({src!r}, length={len(self)})"

    def count(self, opcode: Opcode) -> int:
        return int(np.count_nonzero(self._ops == int(opcode)))

    def to_source(self) -> str:
        return self._ops.astype(np.uint8).tobytes().decode('ascii')


class ProgramBuffer:
    """Growable opcode storage; capacity doubles whenever an append overflows it."""

    def __init__(self, capacity: int = _INITIAL_CAPACITY):
        self._data = np.empty(max(1, capacity), dtype=np.int32)
        self._length = 0

    def __len__(self) -> int:
        return self._length

    @property
    def capacity(self) -> int:
        return len(self._data)

    def _reserve(self, needed: int) -> None:
        if needed <= len(self._data):
            return
        new_capacity = len(self._data)
        while new_capacity < needed:
            new_capacity *= 2
        try:
            grown = np.empty(new_capacity, dtype=np.int32)
        except MemoryError as e:
            raise BFAllocationError(
                message=f"AllocationFailure: cannot grow program buffer to {new_capacity} opcodes"
            ) from e
        grown[:self._length] = self._data[:self._length]
        self._data = grown

    def extend(self, chunk: bytes) -> int:
        """Append the command bytes of `chunk`, skipping everything else. Returns the number kept."""
        if not chunk:
            return 0
        raw = np.frombuffer(chunk, dtype=np.uint8)
        kept = raw[COMMAND_MASK[raw]]
        n = len(kept)
        if n:
            self._reserve(self._length + n)
            self._data[self._length:self._length + n] = kept
            self._length += n
        return n

    def freeze(self) -> Program:
        return Program(self._data[:self._length].copy())


def _as_bytes(source: Source) -> bytes:
    if isinstance(source, str):
        return source.encode('utf-8')
    return bytes(source)


def load_string(source: Source) -> Program:
    buf = ProgramBuffer(max(_INITIAL_CAPACITY, len(source)))
    buf.extend(_as_bytes(source))
    program = buf.freeze()
    logger.debug("loaded %d opcodes from %d source characters", len(program), len(source))
    return program


def load_stream(stream: Union[BinaryIO, TextIO], chunk_size: int = 8192) -> Program:
    buf = ProgramBuffer()
    total = 0
    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            break
        if isinstance(chunk, str):
            chunk = chunk.encode('utf-8')
        total += len(chunk)
        buf.extend(chunk)
    program = buf.freeze()
    logger.debug("loaded %d opcodes from a %d byte stream", len(program), total)
    return program


def load_file(path: Union[str, Path], chunk_size: int = 8192) -> Program:
    p = Path(path)
    try:
        with p.open('rb') as f:
            return load_stream(f, chunk_size=chunk_size)
    except OSError as e:
        raise BFIOError(message=f"IoFailure: cannot read {p}: {e.strerror or e}", path=str(p)) from e

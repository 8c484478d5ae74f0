from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Iterator

import numpy as np

from .errors import LoopImbalance, make_loop_error
from .opcodes import Opcode
from .program import Program

logger = logging.getLogger(__name__)


class JumpTable(Mapping):
    """
    Bidirectional bracket map: every '[' address maps to its ']' and back.

    `targets` is a full-length array (identity outside loop addresses) in the
    shape the JIT loop expects; the Mapping interface only exposes the
    loop addresses themselves.
    """

    def __init__(self, targets: np.ndarray, domain: np.ndarray):
        targets = np.asarray(targets, dtype=np.int32)
        domain = np.asarray(domain, dtype=np.bool_)
        targets.setflags(write=False)
        domain.setflags(write=False)
        self._targets = targets
        self._domain = domain

    @property
    def targets(self) -> np.ndarray:
        return self._targets

    def __getitem__(self, address: int) -> int:
        if not (0 <= address < len(self._domain)) or not self._domain[address]:
            raise KeyError(address)
        return int(self._targets[address])

    def __contains__(self, address) -> bool:
        return isinstance(address, (int, np.integer)) and 0 <= address < len(self._domain) \
            and bool(self._domain[address])

    def __iter__(self) -> Iterator[int]:
        for address in np.flatnonzero(self._domain):
            yield int(address)

    def __len__(self) -> int:
        return int(np.count_nonzero(self._domain))

    def __repr__(self) -> str:
        return f"JumpTable({dict(self)!r})"

    def pairs(self) -> Iterator[tuple]:
        """(open, close) pairs in increasing open address order."""
        for address in self:
            target = int(self._targets[address])
            if target > address:
                yield address, target


def resolve_loops(program: Program) -> JumpTable:
    """
    Match every '[' with its ']' by nesting depth.

    Raises UnbalancedLoopsError before anything is executed or generated:
    MissingOpen at the first ']' with no '[' before it, otherwise MissingClose
    at the outermost '[' left unclosed.
    """
    ops = program.ops
    n = len(ops)
    targets = np.arange(n, dtype=np.int32)
    domain = np.zeros(n, dtype=np.bool_)

    opens = program.count(Opcode.LOOP_OPEN)
    closes = program.count(Opcode.LOOP_CLOSE)

    stack = []
    for pos in np.flatnonzero((ops == Opcode.LOOP_OPEN) | (ops == Opcode.LOOP_CLOSE)):
        pos = int(pos)
        if ops[pos] == Opcode.LOOP_OPEN:
            stack.append(pos)
            continue
        if not stack:
            raise make_loop_error(kind=LoopImbalance.MISSING_OPEN, opens=opens, closes=closes,
                                  address=pos, source=program.to_source())
        start = stack.pop()
        targets[start] = pos
        targets[pos] = start
        domain[start] = True
        domain[pos] = True

    if stack:
        # the outermost unclosed '[' is the one the user most likely forgot
        raise make_loop_error(kind=LoopImbalance.MISSING_CLOSE, opens=opens, closes=closes,
                              address=stack[0], source=program.to_source())

    logger.debug("resolved %d loops in %d opcodes", opens, n)
    return JumpTable(targets, domain)

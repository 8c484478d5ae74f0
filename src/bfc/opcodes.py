from __future__ import annotations

import enum

import numpy as np


class Opcode(enum.IntEnum):
    """The eight brainfuck commands, valued by their ASCII code."""

    MOVE_RIGHT = ord('>')
    MOVE_LEFT = ord('<')
    INCREMENT = ord('+')
    DECREMENT = ord('-')
    OUTPUT = ord('.')
    INPUT = ord(',')
    LOOP_OPEN = ord('[')
    LOOP_CLOSE = ord(']')


# byte value -> True for command bytes; used to filter whole chunks at once
COMMAND_MASK = np.zeros(256, dtype=np.bool_)
for _op in Opcode:
    COMMAND_MASK[_op.value] = True
del _op

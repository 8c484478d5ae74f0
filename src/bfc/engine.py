from __future__ import annotations

import contextlib
import logging
from dataclasses import dataclass
from typing import Iterator, Optional

import numpy as np
from numba import njit

from .config import DEFAULT_BATCH_STEPS, DEFAULT_TAPE_SIZE
from .errors import BFAllocationError, BFIOError, make_bounds_error
from .loops import JumpTable, resolve_loops
from .opcodes import Opcode
from .program import Program
from .streams import BytesInput, BytesOutput, InputSource, OutputSink

logger = logging.getLogger(__name__)

# stop reasons reported by execute_batch
STOP_OUTPUT = 1
STOP_INPUT = 2
STOP_END = 3
STOP_MAX_STEPS = 4
STOP_BOUNDS = 5


@njit(cache=True)
def execute_batch(program_arr, memory, pc, pointer, bracket_map_arr, max_steps):
    """
    JIT-compiled execution loop.

    Runs tape and pointer opcodes until it reaches an opcode the caller has
    to service ('.', ',', or a pointer move off the tape), the end of the
    program, or `max_steps`. The pc returned for OUTPUT, INPUT and BOUNDS
    points at that opcode, not past it.
    """
    stop_reason = 0
    mem_len = len(memory)
    prog_len = len(program_arr)
    steps = 0

    while pc < prog_len and steps < max_steps:
        command = program_arr[pc]

        if command == 62:  # '>'
            if pointer + 1 >= mem_len:
                stop_reason = STOP_BOUNDS
                break
            pointer += 1
        elif command == 60:  # '<'
            if pointer == 0:
                stop_reason = STOP_BOUNDS
                break
            pointer -= 1
        elif command == 43:  # '+'
            memory[pointer] = (memory[pointer] + 1) & 255
        elif command == 45:  # '-'
            memory[pointer] = (memory[pointer] - 1) & 255
        elif command == 46:  # '.'
            stop_reason = STOP_OUTPUT
            break
        elif command == 44:  # ','
            stop_reason = STOP_INPUT
            break
        elif command == 91:  # '['
            if memory[pointer] == 0:
                pc = bracket_map_arr[pc]
        elif command == 93:  # ']'
            if memory[pointer] != 0:
                pc = bracket_map_arr[pc]

        pc += 1
        steps += 1

    if stop_reason == 0:
        if pc >= prog_len:
            stop_reason = STOP_END
        else:
            stop_reason = STOP_MAX_STEPS

    return pc, pointer, stop_reason, steps


def new_tape(size: int) -> np.ndarray:
    try:
        return np.zeros(size, dtype=np.uint8)
    except MemoryError as e:
        raise BFAllocationError(message=f"AllocationFailure: cannot allocate a {size} cell tape") from e


@contextlib.contextmanager
def allocate_tape(size: int) -> Iterator[np.ndarray]:
    tape = new_tape(size)
    try:
        yield tape
    finally:
        logger.debug("released %d cell tape", size)
        del tape


@dataclass(frozen=True)
class RunState:
    pc: int
    pointer: int
    steps: int
    tape: np.ndarray


class Engine:
    """
    Executes a Program against a fresh byte tape.

    With `jit=True` the bulk of the work happens in `execute_batch`; the
    engine only services I/O and bounds stops. With `jit=False` every opcode
    goes through `step()`.
    """

    def __init__(self, program: Program, jump_table: Optional[JumpTable] = None, *,
                 tape_size: int = DEFAULT_TAPE_SIZE,
                 input: Optional[InputSource] = None,
                 output: Optional[OutputSink] = None,
                 jit: bool = True,
                 batch_steps: int = DEFAULT_BATCH_STEPS):
        if tape_size < 1:
            raise ValueError(f"tape_size must be at least 1, got {tape_size}")
        if batch_steps < 1:
            raise ValueError(f"batch_steps must be at least 1, got {batch_steps}")
        self.program = program
        self.jump_table = jump_table if jump_table is not None else resolve_loops(program)
        self.tape_size = tape_size
        self.input = input if input is not None else BytesInput()
        self.output = output if output is not None else BytesOutput()
        self.jit = jit
        self.batch_steps = batch_steps

        self.tape: Optional[np.ndarray] = None
        self.pc = 0
        self.pointer = 0
        self.steps = 0

    def start(self) -> None:
        """Rewind to address 0 on a fresh tape, ready for `step()`."""
        self._reset(new_tape(self.tape_size))

    def _reset(self, tape: np.ndarray) -> None:
        self.tape = tape
        self.pc = 0
        self.pointer = 0
        self.steps = 0

    def run(self) -> RunState:
        with allocate_tape(self.tape_size) as tape:
            self._reset(tape)
            try:
                if self.jit:
                    self._run_jit()
                else:
                    while self.step():
                        pass
                return self.snapshot()
            finally:
                self.tape = None

    def snapshot(self) -> RunState:
        return RunState(pc=self.pc, pointer=self.pointer, steps=self.steps, tape=self.tape.copy())

    def step(self) -> bool:
        """
        Execute one opcode. Returns False once the program counter is past the end.

        Starts a fresh tape on the first call if `start()` was not called.
        """
        if self.tape is None:
            self.start()
        if self.pc >= len(self.program):
            return False

        tape = self.tape
        command = self.program.ops[self.pc]

        if command == Opcode.MOVE_RIGHT:
            if self.pointer + 1 >= self.tape_size:
                raise self._bounds_error(self.pointer + 1)
            self.pointer += 1
        elif command == Opcode.MOVE_LEFT:
            if self.pointer == 0:
                raise self._bounds_error(-1)
            self.pointer -= 1
        elif command == Opcode.INCREMENT:
            tape[self.pointer] = (int(tape[self.pointer]) + 1) & 0xFF
        elif command == Opcode.DECREMENT:
            tape[self.pointer] = (int(tape[self.pointer]) - 1) & 0xFF
        elif command == Opcode.OUTPUT:
            self._output()
        elif command == Opcode.INPUT:
            self._input()
        elif command == Opcode.LOOP_OPEN:
            if tape[self.pointer] == 0:
                self.pc = self.jump_table[self.pc]
        elif command == Opcode.LOOP_CLOSE:
            if tape[self.pointer] != 0:
                self.pc = self.jump_table[self.pc]

        self.pc += 1
        self.steps += 1
        return self.pc < len(self.program)

    def _run_jit(self) -> None:
        ops = self.program.ops
        targets = self.jump_table.targets
        if len(ops) == 0:
            return

        while True:
            pc, pointer, stop_reason, steps = execute_batch(
                ops, self.tape, self.pc, self.pointer, targets, self.batch_steps
            )
            self.pc = int(pc)
            self.pointer = int(pointer)
            self.steps += int(steps)

            if stop_reason == STOP_END:
                break
            if stop_reason == STOP_MAX_STEPS:
                logger.debug("batch limit hit at pc=%d after %d steps", self.pc, self.steps)
                continue
            if stop_reason == STOP_BOUNDS:
                if ops[self.pc] == Opcode.MOVE_RIGHT:
                    raise self._bounds_error(self.pointer + 1)
                raise self._bounds_error(self.pointer - 1)

            if stop_reason == STOP_OUTPUT:
                self._output()
            elif stop_reason == STOP_INPUT:
                self._input()
            self.pc += 1
            self.steps += 1
            if self.pc >= len(ops):
                break

    def _output(self) -> None:
        try:
            self.output.write_byte(int(self.tape[self.pointer]))
        except OSError as e:
            raise BFIOError(message=f"IoFailure: cannot write output: {e}") from e

    def _input(self) -> None:
        try:
            value = self.input.read_byte()
        except OSError as e:
            raise BFIOError(message=f"IoFailure: cannot read input: {e}") from e
        if value is not None:
            self.tape[self.pointer] = value & 0xFF

    def _bounds_error(self, pointer: int):
        return make_bounds_error(address=self.pc, pointer=pointer, tape_size=self.tape_size,
                                 source=self.program.to_source())


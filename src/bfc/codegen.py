from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Union

from .config import DEFAULT_TAPE_SIZE
from .errors import BFIOError
from .loops import resolve_loops
from .opcodes import Opcode
from .program import Program

logger = logging.getLogger(__name__)

INDENT = '  '

STATEMENTS: Dict[Opcode, str] = {
    Opcode.MOVE_RIGHT: '++i;',
    Opcode.MOVE_LEFT: '--i;',
    Opcode.INCREMENT: '(*i)++;',
    Opcode.DECREMENT: '(*i)--;',
    Opcode.OUTPUT: 'putchar(*i);',
    Opcode.INPUT: 'if ((c = getchar()) != EOF) *i = (unsigned char)c;',
    Opcode.LOOP_OPEN: 'while (*i != 0) {',
    Opcode.LOOP_CLOSE: '}',
}


class CodeGenerator:
    """
    Brainfuck to C transpiler.

    Output layout:
    - stdio include and `int main()`
    - a zeroed `unsigned char tape[N]` and a cursor `i` on its first cell
    - one statement per opcode, indented two spaces per loop level
    """

    def __init__(self, tape_size: int = DEFAULT_TAPE_SIZE):
        if tape_size < 1:
            raise ValueError(f"tape_size must be at least 1, got {tape_size}")
        self.tape_size = tape_size
        self.lines: List[str] = []
        self.indent = 0

    def generate(self, program: Program) -> str:
        # unbalanced programs raise here, before anything is emitted
        resolve_loops(program)

        self.lines = []
        self.indent = 0
        self._header()
        for op in program:
            self._statement(op)
        self._footer()

        logger.debug("generated %d lines of C for %d opcodes", len(self.lines), len(program))
        return '\n'.join(self.lines) + '\n'

    def write_translation_unit(self, program: Program, path: Union[str, Path]) -> Path:
        return write_source(self.generate(program), path)

    def _write(self, line: str) -> None:
        self.lines.append((INDENT * self.indent) + line if line else line)

    def _header(self) -> None:
        self._write('#include <stdio.h>')
        self._write('')
        self._write('int main() {')
        self.indent += 1
        self._write(f'unsigned char tape[{self.tape_size}] = {{0}};')
        self._write('unsigned char *i = tape;')
        self._write('int c;')

    def _statement(self, op: Opcode) -> None:
        if op == Opcode.LOOP_CLOSE:
            self.indent -= 1
        self._write(STATEMENTS[op])
        if op == Opcode.LOOP_OPEN:
            self.indent += 1

    def _footer(self) -> None:
        self._write('return 0;')
        self.indent -= 1
        self._write('}')


def write_source(text: str, path: Union[str, Path]) -> Path:
    p = Path(path)
    try:
        p.write_text(text, encoding='utf-8')
    except OSError as e:
        raise BFIOError(message=f"IoFailure: cannot write {p}: {e.strerror or e}", path=str(p)) from e
    logger.debug("wrote %s", p)
    return p


def generate_c(program: Program, tape_size: int = DEFAULT_TAPE_SIZE) -> str:
    return CodeGenerator(tape_size).generate(program)

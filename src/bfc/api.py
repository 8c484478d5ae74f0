from __future__ import annotations

import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import numpy as np

from .codegen import CodeGenerator, write_source
from .config import RunOptions, TranspileOptions
from .engine import Engine
from .loops import resolve_loops
from .program import Program, Source, load_file, load_string
from .streams import BytesInput, BytesOutput, InputSource, OutputSink
from .toolchain import build_and_run


@dataclass(frozen=True)
class RunResult:
    output: bytes
    tape: np.ndarray
    pointer: int
    steps: int


@dataclass(frozen=True)
class TranspileResult:
    c_code: str
    path: Optional[Path] = None


def run_program(program: Program, *, options: Optional[RunOptions] = None,
                input: Union[InputSource, bytes, str, None] = None,
                output: Optional[OutputSink] = None) -> RunResult:
    opts = options or RunOptions()
    jump_table = resolve_loops(program)
    if input is None or isinstance(input, (bytes, bytearray, str)):
        input = BytesInput(input or b'')
    sink = output if output is not None else BytesOutput()
    engine = Engine(program, jump_table, tape_size=opts.tape_size, input=input, output=sink,
                    jit=opts.jit, batch_steps=opts.batch_steps)
    state = engine.run()
    captured = sink.getvalue() if isinstance(sink, BytesOutput) else b''
    return RunResult(output=captured, tape=state.tape, pointer=state.pointer, steps=state.steps)


def run_string(source: Source, *, options: Optional[RunOptions] = None,
               input: Union[InputSource, bytes, str, None] = None,
               output: Optional[OutputSink] = None) -> RunResult:
    return run_program(load_string(source), options=options, input=input, output=output)


def run_file(path: Union[str, Path], *, options: Optional[RunOptions] = None,
             input: Union[InputSource, bytes, str, None] = None,
             output: Optional[OutputSink] = None) -> RunResult:
    return run_program(load_file(path), options=options, input=input, output=output)


def transpile_program(program: Program, *, options: Optional[TranspileOptions] = None,
                      path: Union[str, Path, None] = None) -> TranspileResult:
    opts = options or TranspileOptions()
    c_code = CodeGenerator(opts.tape_size).generate(program)
    if path is None:
        return TranspileResult(c_code=c_code)
    return TranspileResult(c_code=c_code, path=write_source(c_code, path))


def transpile_string(source: Source, *, options: Optional[TranspileOptions] = None,
                     path: Union[str, Path, None] = None) -> TranspileResult:
    return transpile_program(load_string(source), options=options, path=path)


def transpile_file(bf_path: Union[str, Path], *, options: Optional[TranspileOptions] = None,
                   path: Union[str, Path, None] = None) -> TranspileResult:
    return transpile_program(load_file(bf_path), options=options, path=path)


def build_and_run_program(program: Program, *, options: Optional[TranspileOptions] = None,
                          path: Union[str, Path, None] = None) -> int:
    """
    Transpile, compile with the configured C compiler and run the binary
    with the caller's stdio. Returns its exit status. The C file goes to
    `path` when given, otherwise into a temporary directory.
    """
    opts = options or TranspileOptions()
    with tempfile.TemporaryDirectory(prefix='bfc-') as tmp:
        c_path = Path(path) if path is not None else Path(tmp) / 'tmp_bf_program.c'
        transpile_program(program, options=opts, path=c_path)
        return build_and_run(c_path, compiler=opts.resolved_compiler(), flags=opts.flags)


def build_and_run_string(source: Source, *, options: Optional[TranspileOptions] = None,
                         path: Union[str, Path, None] = None) -> int:
    return build_and_run_program(load_string(source), options=options, path=path)

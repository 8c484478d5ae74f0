
from .api import (
    RunResult,
    TranspileResult,
    build_and_run_program,
    build_and_run_string,
    run_file,
    run_program,
    run_string,
    transpile_file,
    transpile_program,
    transpile_string,
)
from .codegen import CodeGenerator, generate_c
from .config import RunOptions, TranspileOptions
from .engine import Engine, RunState
from .errors import (
    BFAllocationError,
    BFError,
    BFIOError,
    LoopImbalance,
    TapeBoundsError,
    ToolchainError,
    ToolchainNotFoundError,
    UnbalancedLoopsError,
)
from .loops import JumpTable, resolve_loops
from .opcodes import Opcode
from .program import Program, ProgramBuffer, load_file, load_stream, load_string

__all__ = [
    'Opcode',
    'Program',
    'ProgramBuffer',
    'load_string',
    'load_stream',
    'load_file',
    'JumpTable',
    'resolve_loops',
    'Engine',
    'RunState',
    'CodeGenerator',
    'generate_c',
    'RunOptions',
    'TranspileOptions',
    'RunResult',
    'TranspileResult',
    'run_program',
    'run_string',
    'run_file',
    'build_and_run_program',
    'build_and_run_string',
    'transpile_program',
    'transpile_string',
    'transpile_file',
    'BFError',
    'BFIOError',
    'BFAllocationError',
    'UnbalancedLoopsError',
    'LoopImbalance',
    'TapeBoundsError',
    'ToolchainError',
    'ToolchainNotFoundError',
]

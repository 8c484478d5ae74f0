from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, Tuple

DEFAULT_TAPE_SIZE = 30000
DEFAULT_BATCH_STEPS = 1_000_000
DEFAULT_COMPILER = 'cc'
DEFAULT_CFLAGS: Tuple[str, ...] = ('-O3',)


def default_compiler() -> str:
    return os.environ.get('CC') or DEFAULT_COMPILER


@dataclass(frozen=True)
class RunOptions:
    tape_size: int = DEFAULT_TAPE_SIZE
    jit: bool = True
    batch_steps: int = DEFAULT_BATCH_STEPS

    def __post_init__(self):
        if self.tape_size < 1:
            raise ValueError(f"tape_size must be at least 1, got {self.tape_size}")
        if self.batch_steps < 1:
            raise ValueError(f"batch_steps must be at least 1, got {self.batch_steps}")


@dataclass(frozen=True)
class TranspileOptions:
    tape_size: int = DEFAULT_TAPE_SIZE
    compiler: Optional[str] = None
    flags: Tuple[str, ...] = DEFAULT_CFLAGS

    def __post_init__(self):
        if self.tape_size < 1:
            raise ValueError(f"tape_size must be at least 1, got {self.tape_size}")

    def resolved_compiler(self) -> str:
        return self.compiler or default_compiler()

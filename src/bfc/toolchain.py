from __future__ import annotations

import logging
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Optional, Sequence, Union

from .config import DEFAULT_CFLAGS, default_compiler
from .errors import ToolchainError, ToolchainNotFoundError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def find_compiler(name: Optional[str] = None) -> str:
    """Absolute path of the C compiler, or ToolchainNotFoundError."""
    name = name or default_compiler()
    found = shutil.which(name)
    if found is None:
        raise ToolchainNotFoundError(
            message=f"ToolchainError: C compiler {name!r} not found on PATH (set $CC or pass --cc)",
            compiler=name,
        )
    return found


def compile_c(source_path: PathLike, output_path: PathLike, *, compiler: Optional[str] = None,
              flags: Sequence[str] = DEFAULT_CFLAGS) -> Path:
    cc = find_compiler(compiler)
    cmd = [cc, *flags, '-o', str(output_path), str(source_path)]
    logger.debug("running %s", ' '.join(cmd))
    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except OSError as e:
        raise ToolchainError(message=f"ToolchainError: cannot run {cc}: {e}") from e
    if result.returncode != 0:
        raise ToolchainError(
            message=f"ToolchainError: {cc} exited with status {result.returncode}\n{result.stderr}",
            returncode=result.returncode,
            stderr=result.stderr,
        )
    return Path(output_path)


def build_and_run(source_path: PathLike, *, compiler: Optional[str] = None,
                  flags: Sequence[str] = DEFAULT_CFLAGS) -> int:
    """
    Compile `source_path` into a temporary binary and run it with the
    caller's stdio. Returns the program's exit status. The binary is
    removed afterwards; the C source is left to the caller.
    """
    with tempfile.TemporaryDirectory(prefix='bfc-') as tmp:
        binary = Path(tmp) / 'bf_program'
        compile_c(source_path, binary, compiler=compiler, flags=flags)
        logger.debug("running %s", binary)
        try:
            return subprocess.run([str(binary)]).returncode
        except OSError as e:
            raise ToolchainError(message=f"ToolchainError: cannot execute {binary}: {e}") from e

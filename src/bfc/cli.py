from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

from .api import build_and_run_program, run_program, transpile_program
from .config import DEFAULT_TAPE_SIZE, RunOptions, TranspileOptions
from .errors import BFError, ToolchainError
from .program import Program, load_file, load_string
from .streams import StreamInput, StreamOutput

BF_FILE_EXT = '.bf'
INTERMEDIATE_EXT = '.c'
PARSE_OUTPUT_NAME = 'bf_program.c'

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_LANGUAGE_ERROR = 2
EXIT_TOOLCHAIN_ERROR = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='bfc',
        description="Brainfuck interpreter and brainfuck-to-C transpiler."
    )
    parser.add_argument('file', nargs='?', help="brainfuck source file (must end in .bf)")
    parser.add_argument('-p', '--parse', metavar='STR', help="parse STR as brainfuck code")
    parser.add_argument('-n', '--tapesize', type=int, default=DEFAULT_TAPE_SIZE,
                        help=f"size of the tape (default: {DEFAULT_TAPE_SIZE})")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument('-i', '--intermediate', action='store_true',
                      help="generate intermediate C code and stop")
    mode.add_argument('-c', '--compile', action='store_true',
                      help="generate C code, build it with the C compiler and run it")
    parser.add_argument('-o', '--output', help="path of the generated C file")
    parser.add_argument('--cc', help="C compiler to use (default: $CC or cc)")
    parser.add_argument('--no-jit', action='store_true', help="interpret without the numba JIT loop")
    parser.add_argument('--stats', action='store_true', help="print timings and a tape dump to stderr")
    parser.add_argument('-v', '--verbose', action='store_true', help="debug logging")
    return parser


def _binary(stream):
    return getattr(stream, 'buffer', stream)


def _intermediate_path(args) -> Path:
    if args.output:
        return Path(args.output)
    if args.parse is not None:
        return Path(PARSE_OUTPUT_NAME)
    # written next to the caller, named after the .bf file
    return Path(Path(args.file).name[:-len(BF_FILE_EXT)] + INTERMEDIATE_EXT)


def _dump_tape(tape, err) -> None:
    cells = [int(b) for b in tape[:100]]
    for i in range(0, len(cells), 8):
        print(" ".join(map(str, cells[i:i + 8])), file=err)


def _interpret(program: Program, args, stdin, stdout, stderr) -> int:
    options = RunOptions(tape_size=args.tapesize, jit=not args.no_jit)
    start = time.time()
    result = run_program(program, options=options,
                         input=StreamInput(_binary(stdin)), output=StreamOutput(_binary(stdout)))
    end = time.time()

    if args.stats:
        print(f"\n================\nExecution took {(end - start) * 1000:.2f} ms "
              f"({result.steps} steps)", file=stderr)
        _dump_tape(result.tape, stderr)
    return EXIT_OK


def _transpile(program: Program, args, stderr) -> int:
    options = TranspileOptions(tape_size=args.tapesize, compiler=args.cc)
    if args.intermediate:
        result = transpile_program(program, options=options, path=_intermediate_path(args))
        print(f"wrote {result.path}", file=stderr)
        return EXIT_OK
    return build_and_run_program(program, options=options, path=args.output)


def _check_mode_options(parser: argparse.ArgumentParser, args) -> None:
    transpiling = args.intermediate or args.compile
    if args.output and not transpiling:
        parser.error("-o/--output needs -i or -c")
    if args.cc and not args.compile:
        parser.error("--cc only applies with -c")
    if transpiling and args.stats:
        parser.error("--stats only applies when interpreting")
    if transpiling and args.no_jit:
        parser.error("--no-jit only applies when interpreting")


def main(argv: Optional[List[str]] = None, *, stdin=None, stdout=None, stderr=None) -> int:
    stdin = stdin if stdin is not None else sys.stdin
    stdout = stdout if stdout is not None else sys.stdout
    stderr = stderr if stderr is not None else sys.stderr

    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s", stream=stderr)

    if args.tapesize < 1:
        parser.error(f"tape size must be at least 1, got {args.tapesize}")
    _check_mode_options(parser, args)

    if args.parse is None and args.file is None:
        parser.print_help(file=stdout)
        return EXIT_OK

    if args.parse is None and not args.file.endswith(BF_FILE_EXT):
        print(f"No .bf file provided. Please provide a file that ends in {BF_FILE_EXT}", file=stderr)
        return EXIT_USAGE

    try:
        start = time.time()
        program = load_string(args.parse) if args.parse is not None else load_file(args.file)
        end = time.time()
        if args.stats:
            print(f"Loading took {(end - start) * 1000:.2f} ms ({len(program)} opcodes)", file=stderr)

        if args.intermediate or args.compile:
            return _transpile(program, args, stderr)
        return _interpret(program, args, stdin, stdout, stderr)
    except ToolchainError as e:
        print(str(e), file=stderr)
        return EXIT_TOOLCHAIN_ERROR
    except BFError as e:
        print(str(e), file=stderr)
        return EXIT_LANGUAGE_ERROR


if __name__ == "__main__":
    raise SystemExit(main())

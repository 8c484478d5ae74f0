#!/usr/bin/env python3
"""
C code generation: exact layout, block balance, determinism, and (when a C
compiler is installed) agreement with the interpreter.
"""

import shutil
import subprocess
import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', 'src'))

import pytest

from bfc import BFIOError, CodeGenerator, Opcode, UnbalancedLoopsError, generate_c, load_string, run_string
from bfc.toolchain import compile_c

HELLO = ("++++++++[>++++[>++>+++>+++>+<<<<-]>+>+>->>+[<]<-]"
         ">>.>---.+++++++..+++.>>.<-.<.+++.------.--------.>>+.>++.")


def test_exact_translation_unit():
    expected = (
        "#include <stdio.h>\n"
        "\n"
        "int main() {\n"
        "  unsigned char tape[10] = {0};\n"
        "  unsigned char *i = tape;\n"
        "  int c;\n"
        "  (*i)++;\n"
        "  while (*i != 0) {\n"
        "    (*i)--;\n"
        "    while (*i != 0) {\n"
        "    }\n"
        "  }\n"
        "  ++i;\n"
        "  --i;\n"
        "  putchar(*i);\n"
        "  if ((c = getchar()) != EOF) *i = (unsigned char)c;\n"
        "  return 0;\n"
        "}\n"
    )
    assert generate_c(load_string("+[-[]]><.,"), tape_size=10) == expected


def test_empty_program():
    code = generate_c(load_string(""))
    assert "unsigned char tape[30000] = {0};" in code
    assert code.endswith("  return 0;\n}\n")


def test_block_opens_match_block_closes():
    for source in [HELLO, "[[[]]]", "+[>+[-]<-]", ""]:
        program = load_string(source)
        lines = generate_c(program).splitlines()
        opens = sum(1 for line in lines if line.strip().startswith("while ("))
        closes = sum(1 for line in lines if line.strip() == "}")
        assert opens == program.count(Opcode.LOOP_OPEN)
        # one extra close for main()
        assert closes == program.count(Opcode.LOOP_CLOSE) + 1


def test_indentation_follows_nesting():
    lines = generate_c(load_string("[[+]]")).splitlines()
    body = lines[6:-2]
    assert body == [
        "  while (*i != 0) {",
        "    while (*i != 0) {",
        "      (*i)++;",
        "    }",
        "  }",
    ]


def test_output_is_deterministic():
    program = load_string(HELLO)
    first = generate_c(program, 512)
    assert all(generate_c(load_string(HELLO), 512) == first for _ in range(3))
    gen = CodeGenerator(512)
    assert gen.generate(program) == gen.generate(program) == first


def test_unbalanced_program_is_rejected():
    with pytest.raises(UnbalancedLoopsError):
        generate_c(load_string("+[["))


def test_write_translation_unit(tmp_path):
    path = CodeGenerator(64).write_translation_unit(load_string("+."), tmp_path / "out.c")
    assert path.read_text() == generate_c(load_string("+."), 64)


def test_write_to_missing_directory_is_io_error(tmp_path):
    with pytest.raises(BFIOError):
        CodeGenerator().write_translation_unit(load_string("+"), tmp_path / "nope" / "out.c")


def test_invalid_tape_size():
    with pytest.raises(ValueError):
        CodeGenerator(0)


@pytest.mark.skipif(shutil.which(os.environ.get("CC") or "cc") is None, reason="no C compiler")
def test_compiled_program_matches_interpreter(tmp_path):
    source = HELLO + ",.,.,."
    c_path = tmp_path / "prog.c"
    CodeGenerator().write_translation_unit(load_string(source), c_path)
    binary = compile_c(c_path, tmp_path / "prog", flags=("-O0",))
    result = subprocess.run([str(binary)], input=b"ab", capture_output=True)
    assert result.returncode == 0
    assert result.stdout == run_string(source, input=b"ab").output

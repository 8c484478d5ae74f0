#!/usr/bin/env python3
"""
Command line front end.
"""

import io
import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', 'src'))

import pytest

from bfc import generate_c, load_string
from bfc.cli import EXIT_LANGUAGE_ERROR, EXIT_OK, EXIT_TOOLCHAIN_ERROR, EXIT_USAGE, main


def run_cli(*argv, input_data=b""):
    stdin = io.BytesIO(input_data)
    stdout = io.BytesIO()
    stderr = io.StringIO()
    code = main(list(argv), stdin=stdin, stdout=stdout, stderr=stderr)
    return code, stdout.getvalue(), stderr.getvalue()


def test_interpret_string():
    code, out, _ = run_cli("-p", "+++.")
    assert code == EXIT_OK
    assert out == b"\x03"


def test_interpret_with_input():
    code, out, _ = run_cli("-p", ",.", input_data=b"A")
    assert code == EXIT_OK
    assert out == b"A"


def test_interpret_without_jit():
    code, out, _ = run_cli("--no-jit", "-p", "++[>+++<-]>.")
    assert code == EXIT_OK
    assert out == b"\x06"


def test_interpret_file(tmp_path):
    path = tmp_path / "three.bf"
    path.write_text("three: +++ .")
    code, out, _ = run_cli(str(path))
    assert code == EXIT_OK
    assert out == b"\x03"


def test_rejects_non_bf_file(tmp_path):
    path = tmp_path / "prog.txt"
    path.write_text("+.")
    code, out, err = run_cli(str(path))
    assert code == EXIT_USAGE
    assert out == b""
    assert ".bf" in err


def test_missing_file(tmp_path):
    code, _, err = run_cli(str(tmp_path / "missing.bf"))
    assert code == EXIT_LANGUAGE_ERROR
    assert "IoFailure" in err


def test_no_arguments_prints_help():
    stdout = io.StringIO()
    assert main([], stdout=stdout, stderr=io.StringIO()) == EXIT_OK
    assert "usage:" in stdout.getvalue()


def test_unbalanced_loops_exit_code():
    code, out, err = run_cli("-p", "+.[[")
    assert code == EXIT_LANGUAGE_ERROR
    assert out == b""
    assert "MissingClose" in err


def test_tape_bounds_exit_code():
    code, _, err = run_cli("-p", "<")
    assert code == EXIT_LANGUAGE_ERROR
    assert "TapeBoundsExceeded" in err


def test_tape_size_option():
    code, _, err = run_cli("-n", "2", "-p", ">>")
    assert code == EXIT_LANGUAGE_ERROR
    assert "[0, 2)" in err


def test_intermediate_from_string(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    code, _, _ = run_cli("-i", "-n", "100", "-p", "+[-].")
    assert code == EXIT_OK
    assert (tmp_path / "bf_program.c").read_text() == generate_c(load_string("+[-]."), 100)


def test_intermediate_from_file_is_named_after_it(tmp_path, monkeypatch):
    src = tmp_path / "src"
    src.mkdir()
    (src / "hello.bf").write_text("+.")
    monkeypatch.chdir(tmp_path)
    code, _, _ = run_cli("-i", str(src / "hello.bf"))
    assert code == EXIT_OK
    assert (tmp_path / "hello.c").read_text() == generate_c(load_string("+."))


def test_intermediate_output_path(tmp_path):
    target = tmp_path / "custom.c"
    code, out, err = run_cli("-i", "-o", str(target), "-p", ".")
    assert code == EXIT_OK
    assert out == b""
    assert f"wrote {target}" in err
    assert "putchar(*i);" in target.read_text()


def test_compile_with_missing_compiler():
    code, _, err = run_cli("-c", "--cc", "definitely-not-a-compiler", "-p", "+.")
    assert code == EXIT_TOOLCHAIN_ERROR
    assert "definitely-not-a-compiler" in err


def test_stats_goes_to_stderr():
    code, out, err = run_cli("--stats", "-p", "+++.")
    assert code == EXIT_OK
    assert out == b"\x03"
    assert "Execution took" in err
    assert "3 0 0 0 0 0 0 0" in err


def test_bundled_hello_example():
    example = os.path.join(os.path.dirname(__file__), '..', 'examples', 'hello.bf')
    code, out, _ = run_cli(example)
    assert code == EXIT_OK
    assert out == b"Hello World!\n"


def test_compile_passes_output_path_and_compiler(tmp_path, monkeypatch):
    from bfc import cli
    calls = []

    def fake_build_and_run_program(program, *, options, path):
        calls.append((program.to_source(), options.tape_size, options.resolved_compiler(), path))
        return 0

    monkeypatch.setattr(cli, "build_and_run_program", fake_build_and_run_program)
    target = str(tmp_path / "kept.c")
    code, _, _ = run_cli("-c", "-n", "9", "--cc", "my-cc", "-o", target, "-p", "+.")
    assert code == EXIT_OK
    assert calls == [("+.", 9, "my-cc", target)]


@pytest.mark.parametrize("argv", [
    ["-o", "out.c", "-p", "+."],
    ["--cc", "gcc", "-p", "+."],
    ["-i", "--cc", "gcc", "-p", "+."],
    ["-i", "--stats", "-p", "+."],
    ["-c", "--no-jit", "-p", "+."],
], ids=["output-when-interpreting", "cc-when-interpreting", "cc-with-intermediate",
        "stats-when-transpiling", "no-jit-when-transpiling"])
def test_options_that_do_not_apply_are_rejected(argv):
    with pytest.raises(SystemExit) as exc:
        run_cli(*argv)
    assert exc.value.code == 2

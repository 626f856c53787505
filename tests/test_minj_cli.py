"""
Tests for the `python -m minj` command-line driver.
"""

import logging
import textwrap

import pytest
from minj.__main__ import main


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("MINJ_CONFIG", raising=False)
    monkeypatch.delenv("MINJ_LOG_LEVEL", raising=False)


@pytest.fixture
def program(tmp_path):
    def write(source, name="prog.minj"):
        path = tmp_path / name
        path.write_text(textwrap.dedent(source))
        return str(path)
    return write


class TestRun:
    """Test the run sub-command."""

    def test_run_success(self, program, capsys):
        """run executes the program and returns 0."""
        path = program("""
            def square(x) do: return x * x end
            print(square(7))
        """)
        assert main(["run", path]) == 0
        assert capsys.readouterr().out == "49\n"

    def test_run_runtime_error(self, program, capsys):
        """A runtime error prints the diagnostic and returns 1."""
        path = program("var x = 1\nprint(y)\n")
        assert main(["run", path]) == 1
        err = capsys.readouterr().err
        assert "E401" in err
        assert "print(y)" in err

    def test_run_syntax_error(self, program, capsys):
        """A syntax error prints the diagnostic and returns 1."""
        path = program("var = 1\n")
        assert main(["run", path]) == 1
        assert "E101" in capsys.readouterr().err

    def test_run_missing_file(self, tmp_path, capsys):
        """A missing file prints usage and returns 1."""
        assert main(["run", str(tmp_path / "nope.minj")]) == 1
        err = capsys.readouterr().err
        assert "File not found" in err
        assert "Usage" in err

    def test_run_with_config(self, program, tmp_path, capsys):
        """--config loads settings from YAML."""
        config = tmp_path / "minj.yaml"
        config.write_text("recursion_limit: 20000\n")
        path = program('print("ok")')
        assert main(["run", path, "--config", str(config)]) == 0
        assert capsys.readouterr().out == "ok\n"

    def test_run_with_bad_config(self, program, tmp_path, capsys):
        """A bad config is reported and returns 1."""
        config = tmp_path / "minj.yaml"
        config.write_text("bogus: 1\n")
        path = program('print("ok")')
        assert main(["run", path, "--config", str(config)]) == 1
        assert "bogus" in capsys.readouterr().err

    def test_verbose_logs_debug(self, program, caplog):
        """-v turns on DEBUG logging."""
        path = program('print("ok")')
        with caplog.at_level(logging.DEBUG, logger="minj"):
            assert main(["run", path, "-v"]) == 0
        assert any("program start" in r.getMessage() for r in caplog.records)


class TestCheck:
    """Test the check sub-command."""

    def test_check_summary(self, program, capsys):
        """check prints a one-line summary."""
        path = program("""
            class A { }
            def f() do: end
            def g() do: end
            var x = 1
        """, name="summary.minj")
        assert main(["check", path]) == 0
        out = capsys.readouterr().out
        assert out.strip() == "OK: summary.minj - 1 class(es), 2 method(s), 1 statement(s)"

    def test_check_does_not_execute(self, program, capsys):
        """check parses without running."""
        path = program("print(undefined_name)")
        assert main(["check", path]) == 0
        assert "OK:" in capsys.readouterr().out

    def test_check_syntax_error(self, program, capsys):
        """check reports syntax errors."""
        path = program("return 1")
        assert main(["check", path]) == 1
        assert "E105" in capsys.readouterr().err


class TestAst:
    """Test the ast sub-command."""

    def test_ast_prints_tree(self, program, capsys):
        """ast dumps the parse tree."""
        path = program("var x = 1")
        assert main(["ast", path]) == 0
        out = capsys.readouterr().out
        assert "Program" in out
        assert "VarDecl" in out

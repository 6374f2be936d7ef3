# tests/test_pipeline.py
"""
Tests for the compiler pipeline and its configuration.
"""

import logging

import pytest

from stackcc.core.diagnostics import CompileError, LexerError, ParseError, TypeCheckError
from stackcc.core.pipeline import (
    CompilerConfig, StackCompiler, compile_file, compile_string, create_default_compiler,
)
from tests.conftest import SUM_LOCALS


class TestCompilerConfig:

    def test_defaults(self):
        config = CompilerConfig()
        assert config.target_arch == "x86_64"
        assert config.output_format == "nasm"
        assert config.verbose is False

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("STACKCC_SYNTAX", " GAS ")
        assert CompilerConfig.from_env().output_format == "gas"

    def test_from_env_unset(self, monkeypatch):
        monkeypatch.delenv("STACKCC_SYNTAX", raising=False)
        assert CompilerConfig.from_env().output_format == "nasm"

    def test_unknown_syntax_rejected(self):
        config = CompilerConfig()
        config.output_format = "masm"
        with pytest.raises(ValueError):
            StackCompiler(config)

    def test_unknown_arch_rejected(self):
        config = CompilerConfig()
        config.target_arch = "aarch64"
        with pytest.raises(ValueError):
            StackCompiler(config)

    def test_default_compiler_reads_env(self, monkeypatch):
        monkeypatch.setenv("STACKCC_SYNTAX", "gas")
        assert create_default_compiler().config.output_format == "gas"


class TestStackCompiler:

    def test_parse_lays_out_frames(self):
        program = StackCompiler().parse(SUM_LOCALS)
        main = program.get_function("main")
        assert main.stack_size == 48
        assert [v.offset for v in main.locals] == [36, 40]

    def test_compile(self):
        asm = StackCompiler().compile(SUM_LOCALS)
        assert "global main" in asm
        assert asm.endswith("ret\n")

    def test_independent_runs_restart_labels(self):
        src = "int main() { if (1) return 1; return 0; }"
        compiler = StackCompiler()
        assert compiler.compile(src) == compiler.compile(src)

    def test_verbose_logs_phases(self, caplog):
        config = CompilerConfig()
        config.verbose = True
        with caplog.at_level(logging.INFO, logger="stackcc"):
            StackCompiler(config).compile(SUM_LOCALS)
        messages = [r.getMessage() for r in caplog.records]
        assert "Phase 1: Lexical Analysis" in messages
        assert any(m.startswith("Phase 4: Code Generation") for m in messages)
        assert "  main: frame 48 bytes" in messages

    def test_quiet_by_default(self, caplog):
        with caplog.at_level(logging.INFO, logger="stackcc"):
            StackCompiler().compile(SUM_LOCALS)
        assert not [r for r in caplog.records if r.levelno >= logging.INFO]

    @pytest.mark.parametrize("src, error", [
        ("int main() { return 1 $ 2; }", LexerError),
        ("int main() { return y; }", ParseError),
        ("int main() { int *p; return p + p; }", TypeCheckError),
    ])
    def test_errors_propagate(self, src, error):
        with pytest.raises(error) as exc:
            StackCompiler().compile(src, "bad.c")
        assert isinstance(exc.value, CompileError)
        assert exc.value.location.file == "bad.c"


class TestConvenienceFunctions:

    def test_compile_string(self):
        assert "global main" in compile_string(SUM_LOCALS)

    def test_compile_string_gas(self):
        assert compile_string(SUM_LOCALS, syntax="gas").startswith(".intel_syntax noprefix")

    def test_compile_file(self, tmp_path):
        path = tmp_path / "prog.c"
        path.write_text(SUM_LOCALS, encoding="utf-8")
        assert "main:" in compile_file(str(path))

    def test_compile_file_error_names_file(self, tmp_path):
        path = tmp_path / "broken.c"
        path.write_text("int main() {\n  return z;\n}\n", encoding="utf-8")
        with pytest.raises(ParseError) as exc:
            compile_file(str(path))
        rendered = exc.value.render()
        assert rendered.splitlines() == [
            f"{path}:2:10: error: undefined variable 'z'",
            "    return z;",
            "           ^",
        ]

    def test_caret_follows_tab_indentation(self, tmp_path):
        path = tmp_path / "tabbed.c"
        path.write_text("int main() {\n\treturn z;\n}\n", encoding="utf-8")
        with pytest.raises(ParseError) as exc:
            compile_file(str(path))
        lines = exc.value.render().splitlines()
        assert lines[1] == "  \treturn z;"
        assert lines[2] == "  \t       ^"

    def test_compile_file_missing(self, tmp_path):
        with pytest.raises(OSError):
            compile_file(str(tmp_path / "missing.c"))

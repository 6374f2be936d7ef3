import logging
import os
from typing import Optional

from .ast import ProgramNode
from .codegen import AssemblyCodeGenerator, DIALECTS
from .layout import assign_stack_layout
from .lexer import Lexer
from .parser import Parser
from .symbols import SymbolTable

logger = logging.getLogger(__name__)


class CompilerConfig:
    SUPPORTED_ARCHS = ("x86_64",)

    def __init__(self):
        self.target_arch = "x86_64"
        self.output_format = "nasm"
        self.verbose = False

    @classmethod
    def from_env(cls) -> "CompilerConfig":
        """Defaults, with STACKCC_SYNTAX selecting the assembler dialect"""
        config = cls()
        syntax = os.environ.get('STACKCC_SYNTAX')
        if syntax:
            config.output_format = syntax.strip().lower()
        return config

    def validate(self):
        if self.target_arch not in self.SUPPORTED_ARCHS:
            raise ValueError(f"unsupported target architecture '{self.target_arch}'")
        if self.output_format not in DIALECTS:
            raise ValueError(
                f"unknown assembly syntax '{self.output_format}' "
                f"(expected one of: {', '.join(DIALECTS)})"
            )


class StackCompiler:
    def __init__(self, config: Optional[CompilerConfig] = None):
        self.config = config or CompilerConfig()
        self.config.validate()

    def _phase(self, message: str):
        logger.log(logging.INFO if self.config.verbose else logging.DEBUG, message)

    def parse(self, source: str, filename: str = "<stdin>") -> ProgramNode:
        """Lex, parse and lay out `source`; the returned tree is ready for codegen."""
        self._phase("Phase 1: Lexical Analysis")
        tokens = Lexer(source, filename).tokenize()
        self._phase(f"  Generated {len(tokens)} tokens")

        self._phase("Phase 2: Parsing and type annotation")
        program = Parser(tokens, SymbolTable()).parse()
        self._phase(f"  Parsed {len(program.functions)} function(s)")

        self._phase("Phase 3: Stack layout")
        assign_stack_layout(program)
        for fn in program.functions:
            self._phase(f"  {fn.name}: frame {fn.stack_size} bytes")

        return program

    def compile(self, source: str, filename: str = "<stdin>") -> str:
        program = self.parse(source, filename)

        self._phase(f"Phase 4: Code Generation ({self.config.output_format})")
        assembly = AssemblyCodeGenerator(self.config.output_format).generate(program)
        self._phase(f"  Emitted {assembly.count(chr(10))} lines")
        return assembly


def create_default_compiler() -> StackCompiler:
    return StackCompiler(CompilerConfig.from_env())


def compile_string(source: str, verbose: bool = False, syntax: str = "nasm") -> str:
    config = CompilerConfig()
    config.verbose = verbose
    config.output_format = syntax
    return StackCompiler(config).compile(source, '<string>')


def compile_file(filepath: str, verbose: bool = False, syntax: str = "nasm") -> str:
    with open(filepath, 'r', encoding='utf-8') as f:
        source = f.read()
    config = CompilerConfig()
    config.verbose = verbose
    config.output_format = syntax
    return StackCompiler(config).compile(source, filepath)

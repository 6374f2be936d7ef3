"""stackcc: a small C-subset compiler emitting stack-machine x86-64 assembly"""
from .core import (
    CompilerConfig, StackCompiler, compile_string, compile_file,
    CompileError, LexerError, ParseError, TypeCheckError,
    Interpreter, InterpreterError,
)

__version__ = "0.1.0"

__all__ = [
    'CompilerConfig', 'StackCompiler', 'compile_string', 'compile_file',
    'CompileError', 'LexerError', 'ParseError', 'TypeCheckError',
    'Interpreter', 'InterpreterError',
    '__version__',
]

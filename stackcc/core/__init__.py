"""Core package re-exports for the stackcc compiler"""
from .tokens import TokenType, Token, SourceLocation
from .diagnostics import DiagnosticLevel, Diagnostic, CompileError, LexerError, ParseError, TypeCheckError
from .lexer import Lexer, tokenize
from .types import TypeKind, Type, TypeFactory, INT_TYPE, pointer_to, array_of, align_to
from .symbols import Variable, FunctionSignature, FunctionScope, SymbolTable
from .ast import *
from .typecheck import TypeAnnotator, annotate
from .parser import Parser, parse
from .layout import assign_stack_layout, assign_function_layout
from .codegen import AsmDialect, LabelGenerator, AssemblyCodeGenerator, generate
from .interpreter import Interpreter, InterpreterError, run_program
from .pipeline import CompilerConfig, StackCompiler, create_default_compiler, compile_string, compile_file

__all__ = [
    'TokenType', 'Token', 'SourceLocation',
    'DiagnosticLevel', 'Diagnostic', 'CompileError', 'LexerError', 'ParseError', 'TypeCheckError',
    'Lexer', 'tokenize',
    'TypeKind', 'Type', 'TypeFactory', 'INT_TYPE', 'pointer_to', 'array_of', 'align_to',
    'Variable', 'FunctionSignature', 'FunctionScope', 'SymbolTable',
    'ASTVisitor', 'ProgramNode', 'FunctionNode',
    'TypeAnnotator', 'annotate',
    'Parser', 'parse',
    'assign_stack_layout', 'assign_function_layout',
    'AsmDialect', 'LabelGenerator', 'AssemblyCodeGenerator', 'generate',
    'Interpreter', 'InterpreterError', 'run_program',
    'CompilerConfig', 'StackCompiler', 'create_default_compiler', 'compile_string', 'compile_file',
]

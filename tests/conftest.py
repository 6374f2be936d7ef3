# tests/conftest.py
"""
Shared helpers and sample programs for the stackcc test suite.
"""

import pytest

from stackcc.core.ast import ProgramNode, ReturnNode
from stackcc.core.interpreter import Interpreter
from stackcc.core.lexer import tokenize
from stackcc.core.parser import Parser
from stackcc.core.pipeline import CompilerConfig, StackCompiler


def parse_source(src: str) -> ProgramNode:
    """Lex + parse + annotate, without stack layout."""
    return Parser(tokenize(src, "<test>")).parse()


def compile_program(src: str) -> ProgramNode:
    """Full front end including stack layout, ready for codegen or the interpreter."""
    return StackCompiler().parse(src, "<test>")


def compile_asm(src: str, syntax: str = "nasm") -> str:
    config = CompilerConfig()
    config.output_format = syntax
    return StackCompiler(config).compile(src, "<test>")


def run_source(src: str, entry: str = "main", args=(), externals=None) -> int:
    return Interpreter(compile_program(src), externals).run(entry, args)


def return_value(program: ProgramNode, func: str = "main", index: int = -1):
    """Expression of the `index`-th top-level statement of `func`, which must be a return."""
    stmt = program.get_function(func).body.statements[index]
    assert isinstance(stmt, ReturnNode)
    return stmt.value


SUM_LOCALS = "int main() { int a; a = 3; int b; b = 5; return a + b; }"

ARRAY_WRITE = "int main() { int a[2]; *a = 1; *(a + 1) = 2; return *a + *(a + 1); }"

IF_FALSE = "int main() { if (0) return 1; return 2; }"

POINTER_DISTANCE = """
int main() {
    int a[4];
    int *p;
    int *q;
    p = a;
    q = a + 3;
    return q - p;
}
"""

FIB = """
int fib(int n) {
    if (n <= 1)
        return n;
    return fib(n - 1) + fib(n - 2);
}

int main() {
    return fib(10);
}
"""

TWO_FUNCTIONS_WITH_BRANCHES = """
int f(int x) {
    if (x < 0) return 0;
    while (x > 10) x = x - 10;
    return x;
}

int main() {
    int i;
    int s;
    s = 0;
    for (i = 0; i < 3; i = i + 1) {
        if (i == 1) s = s + 10; else s = s + 1;
    }
    return f(s + 25);
}
"""


@pytest.fixture
def minimal_ui(monkeypatch):
    monkeypatch.setenv("STACKCC_MINIMAL_UI", "1")

# tests/test_interpreter.py
"""
Tests for the reference interpreter: language scenarios, pointer
semantics, integer behaviour and runtime faults.
"""

import sys

import pytest

from stackcc.core.interpreter import Interpreter, InterpreterError, wrap
from tests.conftest import (
    ARRAY_WRITE, FIB, IF_FALSE, POINTER_DISTANCE, SUM_LOCALS,
    TWO_FUNCTIONS_WITH_BRANCHES, compile_program, run_source,
)

COUNT_DOWN = """
int f(int n) { if (n == 0) return 0; return 1 + f(n - 1); }
int main(int n) { return f(n); }
"""


def _main(body):
    return run_source("int main() { %s }" % body)


class TestScenarios:

    def test_sum_of_locals(self):
        assert run_source(SUM_LOCALS) == 8

    def test_array_write(self):
        assert run_source(ARRAY_WRITE) == 3

    def test_if_false(self):
        assert run_source(IF_FALSE) == 2

    def test_pointer_distance(self):
        assert run_source(POINTER_DISTANCE) == 3

    def test_fib(self):
        assert run_source(FIB) == 55

    def test_branches_across_functions(self):
        assert run_source(TWO_FUNCTIONS_WITH_BRANCHES) == 7

    @pytest.mark.parametrize("body, expected", [
        ("return 0;", 0),
        ("return 42;", 42),
        ("return 5+20-4;", 21),
        ("return 12 + 34 - 5 ;", 41),
        ("return 5+6*7;", 47),
        ("return 5*(9-6);", 15),
        ("return (3+5)/2;", 4),
        ("return -10+20;", 10),
        ("return - -10;", 10),
        ("return - - +10;", 10),
        ("return 0==1;", 0),
        ("return 42==42;", 1),
        ("return 0!=1;", 1),
        ("return 0<1;", 1),
        ("return 1<1;", 0),
        ("return 0<=1;", 1),
        ("return 2<=1;", 0),
        ("return 1>0;", 1),
        ("return 1>1;", 0),
        ("return 1>=1;", 1),
        ("return 1>=2;", 0),
        ("int a; a=3; return a;", 3),
        ("int a; int z; a=3; z=5; return a+z;", 8),
        ("int foo; int bar; foo=3; bar=5; return foo+bar;", 8),
        ("return 1; 2; 3;", 1),
        ("if (0) return 2; return 3;", 3),
        ("if (1-1) return 2; return 3;", 3),
        ("if (1) return 2; return 3;", 2),
        ("if (2-1) return 2; return 3;", 2),
        ("int i; i=0; while(i<10) i=i+1; return i;", 10),
        ("int i; int j; i=0; j=0; for (i=0; i<=10; i=i+1) j=i+j; return j;", 55),
        ("for (;;) return 3; return 5;", 3),
        ("{1; {2;} return 3;}", 3),
        ("int x; x=3; return *&x;", 3),
        ("int x; int *y; int **z; x=3; y=&x; z=&y; return **z;", 3),
        ("int x; int *y; x=3; y=&x; *y=5; return x;", 5),
        ("int a; int b; a = b = 7; return a + b;", 14),
        ("int x = 2, *p = &x; *p = *p * 21; return x;", 42),
        (";;; return 5;", 5),
    ])
    def test_small_programs(self, body, expected):
        assert _main(body) == expected


class TestPointersAndArrays:

    def test_subscript_loop(self):
        assert _main(
            "int a[10]; int i; for (i = 0; i < 10; i = i + 1) a[i] = i * i; return a[3] + a[9];"
        ) == 90

    def test_commuted_subscript(self):
        assert _main("int a[3]; 2[a] = 7; return a[2];") == 7

    def test_pointer_walk(self):
        assert _main(
            "int a[3]; int *p; *a = 1; *(a + 1) = 2; *(a + 2) = 4; p = a + 2; return *p + *(p - 2);"
        ) == 5

    def test_pointer_through_call(self):
        src = """
            int set(int *p, int v) { *p = v; return 0; }
            int main() { int x; set(&x, 9); return x; }
        """
        assert run_source(src) == 9

    def test_array_passed_to_function(self):
        src = """
            int sum(int *a, int n) {
                int s;
                int i;
                s = 0;
                for (i = 0; i < n; i = i + 1)
                    s = s + a[i];
                return s;
            }
            int main() {
                int v[4];
                v[0] = 1; v[1] = 2; v[2] = 3; v[3] = 4;
                return sum(v, 4);
            }
        """
        assert run_source(src) == 10

    def test_array_of_pointers(self):
        assert _main(
            "int x; int y; int *ps[2]; ps[0] = &x; ps[1] = &y; *ps[0] = 3; *ps[1] = 4; return x * y;"
        ) == 12

    def test_returned_pointer(self):
        src = """
            int *second(int *a) { return a + 1; }
            int main() { int a[2]; a[1] = 11; return *second(a); }
        """
        assert run_source(src) == 11

    def test_shadowed_variable(self):
        assert _main("int a; a = 1; int a; a = 2; return a;") == 2


class TestIntegerSemantics:

    @pytest.mark.parametrize("expr, expected", [
        ("7 / 2", 3),
        ("-7 / 2", -3),
        ("7 / -2", -3),
        ("7 % 3", 1),
        ("-7 % 2", -1),
        ("7 % -2", 1),
    ])
    def test_division_truncates(self, expr, expected):
        assert _main("return %s;" % expr) == expected

    def test_int_store_truncates(self):
        assert _main("int x; x = 2147483648; return x;") == -2147483648

    def test_int_return_truncates(self):
        assert _main("return 4294967297;") == 1

    def test_pointer_sized_values_kept(self):
        src = """
            int *big(int *p) { return p + 0x40000000; }
            int main() { int x; return big(&x) - &x; }
        """
        assert run_source(src) == 0x40000000

    def test_wrap(self):
        assert wrap(2 ** 63) == -(2 ** 63)
        assert wrap(-1) == -1
        assert wrap(0xffffffff, 32) == -1


class TestCallsAndEntry:

    def test_entry_arguments(self):
        prog = compile_program("int main(int a, int b) { return a * b; }")
        assert Interpreter(prog).run("main", (6, 7)) == 42

    def test_other_entry(self):
        prog = compile_program("int twice(int x) { return x + x; } int main() { return 0; }")
        assert Interpreter(prog).run("twice", (21,)) == 42

    def test_externals(self):
        assert run_source(
            "int main() { return add(2, 3) + ret3(); }",
            externals={"add": lambda a, b: a + b, "ret3": lambda: 3},
        ) == 8

    def test_externals_see_arguments_in_order(self):
        seen = []

        def record(a, b, c):
            seen.append((a, b, c))
            return 0

        run_source("int main() { return record(1, 2, 3); }", externals={"record": record})
        assert seen == [(1, 2, 3)]

    def test_falling_off_the_end(self):
        assert _main("int a; a = 1;") == 0

    def test_call_count(self):
        interp = Interpreter(compile_program(FIB))
        interp.run()
        assert interp.calls == 178


class TestRuntimeFaults:

    def test_division_by_zero(self):
        with pytest.raises(InterpreterError) as exc:
            _main("int z; z = 0; return 1 / z;")
        assert exc.value.message == "division by zero"

    def test_modulo_by_zero(self):
        with pytest.raises(InterpreterError):
            _main("int z; z = 0; return 1 % z;")

    def test_unknown_function(self):
        with pytest.raises(InterpreterError) as exc:
            _main("return nowhere();")
        assert "nowhere" in exc.value.message

    def test_missing_entry(self):
        with pytest.raises(InterpreterError):
            Interpreter(compile_program("int f() { return 0; }")).run()

    def test_wrong_entry_arity(self):
        with pytest.raises(InterpreterError):
            Interpreter(compile_program("int main(int a) { return a; }")).run()

    def test_out_of_range_access(self):
        with pytest.raises(InterpreterError):
            _main("int *p; p = 0; return *p - *(p - 1);")

    def test_stack_overflow(self):
        prog = compile_program("int main() { int big[100]; return 0; }")
        with pytest.raises(InterpreterError):
            Interpreter(prog, memory_size=256).run()


class TestCallDepth:

    def test_deep_recursion(self):
        assert run_source(COUNT_DOWN, args=(1000,)) == 1000

    def test_recursion_limit_restored(self):
        limit = sys.getrecursionlimit()
        run_source(COUNT_DOWN, args=(500,))
        assert sys.getrecursionlimit() == limit

    def test_unbounded_recursion(self):
        prog = compile_program("int f(int n) { return f(n + 1); } int main() { return f(0); }")
        with pytest.raises(InterpreterError) as exc:
            Interpreter(prog).run()
        assert exc.value.message == "call depth exceeded"

    def test_configured_depth(self):
        interp = Interpreter(compile_program(COUNT_DOWN), max_call_depth=10)
        assert interp.run("main", (8,)) == 8
        with pytest.raises(InterpreterError) as exc:
            interp.run("main", (9,))
        assert exc.value.message == "call depth exceeded"
        assert interp.frames == []

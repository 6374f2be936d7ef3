"""Reference evaluator for compiled programs.

Runs a typed, laid-out `ProgramNode` over a flat byte memory using the same
frame layout the code generator emits, so its results can be compared with
those of the assembled binary.
"""
import logging
import sys
from typing import Callable, Dict, List, Optional, Sequence

from .ast import (
    ASTVisitor, ProgramNode, FunctionNode, NumberNode, VariableNode,
    AddressOfNode, DereferenceNode, BinaryOpNode, BinaryOperator, AssignmentNode,
    FunctionCallNode, ExpressionNode, ExpressionStatementNode, BlockNode, IfNode,
    WhileNode, ForNode, ReturnNode,
)
from .types import Type

logger = logging.getLogger(__name__)

WORD_BITS = 64
WORD_MASK = (1 << WORD_BITS) - 1

# Nested source calls allowed before the run is stopped
MAX_CALL_DEPTH = 2048
# Python frames a single source call may use (call, accept and visit_* chain)
FRAMES_PER_CALL = 32


class InterpreterError(Exception):
    """Runtime fault while evaluating a program"""

    def __init__(self, message: str, location=None):
        self.message = message
        self.location = location
        super().__init__(f"{location}: {message}" if location else message)


class _Return(Exception):
    def __init__(self, value: int):
        self.value = value


def wrap(value: int, bits: int = WORD_BITS) -> int:
    """Two's complement wrap to a signed `bits`-wide integer"""
    value &= (1 << bits) - 1
    if value >= 1 << (bits - 1):
        value -= 1 << bits
    return value


class Interpreter(ASTVisitor):
    def __init__(self, program: ProgramNode,
                 externals: Optional[Dict[str, Callable[..., int]]] = None,
                 memory_size: int = 1 << 20,
                 max_call_depth: int = MAX_CALL_DEPTH):
        self.program = program
        self.externals = dict(externals or {})
        self.memory = bytearray(memory_size)
        self.sp = memory_size
        self.frames: List[int] = []
        self.calls = 0
        self.max_call_depth = max_call_depth

    def run(self, entry: str = "main", args: Sequence[int] = ()) -> int:
        func = self.program.get_function(entry)
        if func is None:
            raise InterpreterError(f"no function named '{entry}'")
        limit = sys.getrecursionlimit()
        sys.setrecursionlimit(limit + self.max_call_depth * FRAMES_PER_CALL)
        try:
            result = self.call(func, [wrap(a) for a in args])
        except RecursionError:
            raise InterpreterError("call depth exceeded") from None
        finally:
            sys.setrecursionlimit(limit)
        logger.debug(f"{entry} returned {result} after {self.calls} call(s)")
        return result

    # Memory

    def _check_range(self, addr: int, size: int, location=None):
        if addr < 0 or addr + size > len(self.memory):
            raise InterpreterError(f"memory access out of range at address {addr:#x}", location)

    def load(self, addr: int, ty: Type, location=None) -> int:
        size = 4 if ty.size == 4 else 8
        self._check_range(addr, size, location)
        return int.from_bytes(self.memory[addr:addr + size], 'little', signed=True)

    def store(self, addr: int, ty: Type, value: int, location=None):
        size = 4 if ty.size == 4 else 8
        self._check_range(addr, size, location)
        raw = value & ((1 << (8 * size)) - 1)
        self.memory[addr:addr + size] = raw.to_bytes(size, 'little')

    # Calls

    def call(self, func: FunctionNode, args: List[int]) -> int:
        if len(args) != len(func.params):
            raise InterpreterError(
                f"'{func.name}' expects {len(func.params)} argument(s), got {len(args)}",
                func.location,
            )

        # Return address and saved rbp sit above the frame base
        base = self.sp - 16
        new_sp = base - func.stack_size
        if new_sp < 0:
            raise InterpreterError(f"stack overflow in '{func.name}'", func.location)
        if len(self.frames) >= self.max_call_depth:
            raise InterpreterError("call depth exceeded", func.location)

        saved_sp = self.sp
        self.sp = new_sp
        self.frames.append(base)
        self.calls += 1
        try:
            for param, value in zip(func.params, args):
                self.store(base - param.offset, param.type, value, param.location)
            try:
                func.body.accept(self)
                # Falling off the end of a function yields 0
                result = 0
            except _Return as ret:
                result = ret.value
        finally:
            self.frames.pop()
            self.sp = saved_sp

        return wrap(result, 32) if func.return_type.size == 4 else result

    # Lvalues

    def _address(self, node: ExpressionNode) -> int:
        if isinstance(node, VariableNode):
            return self.frames[-1] - node.var.offset
        if isinstance(node, DereferenceNode):
            return node.operand.accept(self)
        raise InterpreterError("not an lvalue", node.location)

    # Expressions

    def visit_number(self, node: NumberNode) -> int:
        return wrap(node.value)

    def visit_variable(self, node: VariableNode) -> int:
        addr = self._address(node)
        if node.ty.is_array():
            return addr
        return self.load(addr, node.ty, node.location)

    def visit_address_of(self, node: AddressOfNode) -> int:
        return self._address(node.operand)

    def visit_dereference(self, node: DereferenceNode) -> int:
        addr = node.operand.accept(self)
        if node.ty.is_array():
            return addr
        return self.load(addr, node.ty, node.location)

    def visit_assignment(self, node: AssignmentNode) -> int:
        addr = self._address(node.target)
        value = node.value.accept(self)
        self.store(addr, node.target.ty, value, node.location)
        return value

    def visit_binary_op(self, node: BinaryOpNode) -> int:
        lhs = node.left.accept(self)
        rhs = node.right.accept(self)
        op = node.operator

        if op == BinaryOperator.ADD:
            return wrap(lhs + rhs)
        if op == BinaryOperator.SUB:
            return wrap(lhs - rhs)
        if op == BinaryOperator.MUL:
            return wrap(lhs * rhs)
        if op in (BinaryOperator.DIV, BinaryOperator.MOD):
            if rhs == 0:
                raise InterpreterError("division by zero", node.location)
            quotient = abs(lhs) // abs(rhs)
            if (lhs < 0) != (rhs < 0):
                quotient = -quotient
            if op == BinaryOperator.DIV:
                return wrap(quotient)
            return wrap(lhs - rhs * quotient)
        if op == BinaryOperator.EQ:
            return int(lhs == rhs)
        if op == BinaryOperator.NE:
            return int(lhs != rhs)
        if op == BinaryOperator.LT:
            return int(lhs < rhs)
        if op == BinaryOperator.LE:
            return int(lhs <= rhs)
        raise InterpreterError(f"unsupported operator '{op.value}'", node.location)

    def visit_function_call(self, node: FunctionCallNode) -> int:
        args = [arg.accept(self) for arg in node.arguments]

        func = self.program.get_function(node.name)
        if func is not None:
            return self.call(func, args)

        external = self.externals.get(node.name)
        if external is None:
            raise InterpreterError(f"call to unknown function '{node.name}'", node.location)
        result = wrap(int(external(*args)))
        return wrap(result, 32) if node.ty.size == 4 else result

    # Statements

    def visit_expression_statement(self, node: ExpressionStatementNode):
        node.expression.accept(self)

    def visit_block(self, node: BlockNode):
        for stmt in node.statements:
            stmt.accept(self)

    def visit_return(self, node: ReturnNode):
        raise _Return(node.value.accept(self))

    def visit_if(self, node: IfNode):
        if node.condition.accept(self) != 0:
            node.then_branch.accept(self)
        elif node.else_branch is not None:
            node.else_branch.accept(self)

    def visit_while(self, node: WhileNode):
        while node.condition.accept(self) != 0:
            node.body.accept(self)

    def visit_for(self, node: ForNode):
        if node.init is not None:
            node.init.accept(self)
        while node.condition is None or node.condition.accept(self) != 0:
            node.body.accept(self)
            if node.increment is not None:
                node.increment.accept(self)

    def visit_function(self, node: FunctionNode):
        return self.call(node, [])

    def visit_program(self, node: ProgramNode):
        return self.run()


def run_program(program: ProgramNode, entry: str = "main", args: Sequence[int] = (),
                externals: Optional[Dict[str, Callable[..., int]]] = None) -> int:
    return Interpreter(program, externals).run(entry, args)

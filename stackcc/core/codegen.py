import logging
from dataclasses import dataclass
from typing import List, Optional, Set, Tuple, Union

from .ast import (
    ASTVisitor, ProgramNode, FunctionNode, NumberNode, VariableNode,
    AddressOfNode, DereferenceNode, BinaryOpNode, BinaryOperator, AssignmentNode,
    FunctionCallNode, ExpressionNode, ExpressionStatementNode, BlockNode, IfNode,
    WhileNode, ForNode, ReturnNode,
)
from .diagnostics import TypeCheckError
from .layout import CALLEE_SAVED_REGISTERS
from .types import Type

ARG_REGS_64 = ['rdi', 'rsi', 'rdx', 'rcx', 'r8', 'r9']
ARG_REGS_32 = ['edi', 'esi', 'edx', 'ecx', 'r8d', 'r9d']


@dataclass(frozen=True)
class AsmDialect:
    """Syntax differences between assemblers for the same instruction stream"""
    name: str
    header: Tuple[str, ...]
    footer: Tuple[str, ...]
    global_directive: str
    extern_directive: Optional[str]
    dword: str
    comment: str


NASM = AsmDialect(
    name='nasm',
    header=('section .text',),
    footer=(),
    global_directive='global',
    extern_directive='extern',
    dword='dword',
    comment=';',
)

GAS = AsmDialect(
    name='gas',
    header=('.intel_syntax noprefix', '.text'),
    footer=('.section .note.GNU-stack,"",@progbits',),
    global_directive='.globl',
    extern_directive=None,
    dword='dword ptr',
    comment='#',
)

DIALECTS = {d.name: d for d in (NASM, GAS)}


def get_dialect(name: str) -> AsmDialect:
    try:
        return DIALECTS[name]
    except KeyError:
        raise ValueError(f"unknown assembly syntax '{name}' (expected one of: {', '.join(DIALECTS)})")


class LabelGenerator:
    """Hands out branch label numbers, unique for one compilation run"""

    def __init__(self, prefix: str = '.L'):
        self.prefix = prefix
        self.counter = 0

    def next_id(self) -> int:
        self.counter += 1
        return self.counter

    def make(self, kind: str, seq: Union[int, str]) -> str:
        return f"{self.prefix}.{kind}.{seq}"


class AssemblyCodeGenerator(ASTVisitor):
    """Emits x86-64 for a typed, laid-out program.

    Every expression leaves exactly one 8-byte value on the machine stack;
    every statement leaves the stack as it found it.
    """

    def __init__(self, dialect: Union[str, AsmDialect] = 'nasm'):
        self.dialect = get_dialect(dialect) if isinstance(dialect, str) else dialect
        self.text_section: List[str] = []
        self.labels = LabelGenerator()
        self.called: Set[str] = set()
        self.current_function: Optional[FunctionNode] = None
        self.logger = logging.getLogger(__name__)

    def _emit(self, instruction: str, comment: Optional[str] = None):
        if comment:
            self.text_section.append(f'    {instruction:24} {self.dialect.comment} {comment}')
        else:
            self.text_section.append(f'    {instruction}')

    def _label(self, name: str):
        self.text_section.append(f'{name}:')

    def generate(self, program: ProgramNode) -> str:
        program.accept(self)

        parts: List[str] = []
        defined = {fn.name for fn in program.functions}
        externs = sorted(self.called - defined)
        if externs and self.dialect.extern_directive:
            for ext in externs:
                parts.append(f'{self.dialect.extern_directive} {ext}')
            parts.append('')

        parts.extend(self.dialect.header)
        parts.extend(self.text_section)
        parts.extend(self.dialect.footer)
        return '\n'.join(parts) + '\n'

    def visit_program(self, node: ProgramNode):
        for fn in node.functions:
            fn.accept(self)

    def visit_function(self, node: FunctionNode):
        self.current_function = node
        self.logger.debug(f"emitting {node.name} (frame {node.stack_size} bytes)")

        self.text_section.append(f'{self.dialect.global_directive} {node.name}')
        self._label(node.name)

        # Prologue
        self._emit('push rbp')
        self._emit('mov rbp, rsp')
        self._emit(f'sub rsp, {node.stack_size}', 'frame')
        for i, reg in enumerate(CALLEE_SAVED_REGISTERS):
            self._emit(f'mov [rbp-{8 * (i + 1)}], {reg}')

        for i, param in enumerate(node.params):
            reg = ARG_REGS_32[i] if param.type.size == 4 else ARG_REGS_64[i]
            self._emit(f'mov [rbp-{param.offset}], {reg}', param.name)

        node.body.accept(self)

        # Epilogue
        self._label(self._return_label())
        for i, reg in enumerate(CALLEE_SAVED_REGISTERS):
            self._emit(f'mov {reg}, [rbp-{8 * (i + 1)}]')
        self._emit('mov rsp, rbp')
        self._emit('pop rbp')
        self._emit('ret')

        self.current_function = None

    def _return_label(self) -> str:
        return self.labels.make('return', self.current_function.name)

    # Memory access

    def _gen_addr(self, node: ExpressionNode):
        """Push the address of an lvalue"""
        if isinstance(node, VariableNode):
            self._emit(f'lea rax, [rbp-{node.var.offset}]', node.var.name)
            self._emit('push rax')
            return
        if isinstance(node, DereferenceNode):
            node.operand.accept(self)
            return
        raise TypeCheckError("not an lvalue", node.location)

    def _load(self, ty: Type):
        """Replace the address on top of the stack with the value it points to"""
        self._emit('pop rax')
        if ty.size == 4:
            self._emit(f'movsxd rax, {self.dialect.dword} [rax]')
        else:
            self._emit('mov rax, [rax]')
        self._emit('push rax')

    def _store(self, ty: Type):
        """Pop value and address, store, push the value back"""
        self._emit('pop rdi')
        self._emit('pop rax')
        if ty.size == 4:
            self._emit(f'mov {self.dialect.dword} [rax], edi')
        else:
            self._emit('mov [rax], rdi')
        self._emit('push rdi')

    # Expressions

    def visit_number(self, node: NumberNode):
        if -2**31 <= node.value < 2**31:
            self._emit(f'push {node.value}')
        else:
            self._emit(f'mov rax, {node.value}')
            self._emit('push rax')

    def visit_variable(self, node: VariableNode):
        self._gen_addr(node)
        # An array evaluates to its own address
        if not node.ty.is_array():
            self._load(node.ty)

    def visit_address_of(self, node: AddressOfNode):
        self._gen_addr(node.operand)

    def visit_dereference(self, node: DereferenceNode):
        node.operand.accept(self)
        if not node.ty.is_array():
            self._load(node.ty)

    def visit_assignment(self, node: AssignmentNode):
        self._gen_addr(node.target)
        node.value.accept(self)
        self._store(node.target.ty)

    def visit_binary_op(self, node: BinaryOpNode):
        node.left.accept(self)
        node.right.accept(self)

        self._emit('pop rdi')
        self._emit('pop rax')

        op = node.operator
        if op == BinaryOperator.ADD:
            self._emit('add rax, rdi')
        elif op == BinaryOperator.SUB:
            self._emit('sub rax, rdi')
        elif op == BinaryOperator.MUL:
            self._emit('imul rax, rdi')
        elif op == BinaryOperator.DIV:
            self._emit('cqo')
            self._emit('idiv rdi')
        elif op == BinaryOperator.MOD:
            self._emit('cqo')
            self._emit('idiv rdi')
            self._emit('mov rax, rdx')
        else:
            setcc = {
                BinaryOperator.EQ: 'sete',
                BinaryOperator.NE: 'setne',
                BinaryOperator.LT: 'setl',
                BinaryOperator.LE: 'setle',
            }[op]
            self._emit('cmp rax, rdi')
            self._emit(f'{setcc} al')
            self._emit('movzx rax, al')

        self._emit('push rax')

    def visit_function_call(self, node: FunctionCallNode):
        self.called.add(node.name)

        for arg in node.arguments:
            arg.accept(self)
        for i in reversed(range(len(node.arguments))):
            self._emit(f'pop {ARG_REGS_64[i]}')

        # rsp must be 16-byte aligned at the call; operand pushes may have
        # left it off by 8
        seq = self.labels.next_id()
        unaligned = self.labels.make('call', seq)
        end = self.labels.make('end', seq)
        self._emit('mov rax, rsp')
        self._emit('and rax, 15')
        self._emit(f'jnz {unaligned}')
        self._emit('mov rax, 0')
        self._emit(f'call {node.name}')
        self._emit(f'jmp {end}')
        self._label(unaligned)
        self._emit('sub rsp, 8')
        self._emit('mov rax, 0')
        self._emit(f'call {node.name}')
        self._emit('add rsp, 8')
        self._label(end)

        if node.ty.size == 4:
            self._emit('movsxd rax, eax')
        self._emit('push rax')

    # Statements

    def visit_expression_statement(self, node: ExpressionStatementNode):
        node.expression.accept(self)
        self._emit('add rsp, 8', 'discard')

    def visit_block(self, node: BlockNode):
        for stmt in node.statements:
            stmt.accept(self)

    def visit_return(self, node: ReturnNode):
        node.value.accept(self)
        self._emit('pop rax')
        self._emit(f'jmp {self._return_label()}')

    def visit_if(self, node: IfNode):
        seq = self.labels.next_id()
        else_label = self.labels.make('else', seq)
        end_label = self.labels.make('end', seq)

        node.condition.accept(self)
        self._emit('pop rax')
        self._emit('cmp rax, 0')
        if node.else_branch is not None:
            self._emit(f'je {else_label}')
            node.then_branch.accept(self)
            self._emit(f'jmp {end_label}')
            self._label(else_label)
            node.else_branch.accept(self)
        else:
            self._emit(f'je {end_label}')
            node.then_branch.accept(self)
        self._label(end_label)

    def visit_while(self, node: WhileNode):
        seq = self.labels.next_id()
        begin_label = self.labels.make('begin', seq)
        end_label = self.labels.make('end', seq)

        self._label(begin_label)
        node.condition.accept(self)
        self._emit('pop rax')
        self._emit('cmp rax, 0')
        self._emit(f'je {end_label}')
        node.body.accept(self)
        self._emit(f'jmp {begin_label}')
        self._label(end_label)

    def visit_for(self, node: ForNode):
        seq = self.labels.next_id()
        begin_label = self.labels.make('begin', seq)
        end_label = self.labels.make('end', seq)

        if node.init is not None:
            node.init.accept(self)
        self._label(begin_label)
        if node.condition is not None:
            node.condition.accept(self)
            self._emit('pop rax')
            self._emit('cmp rax, 0')
            self._emit(f'je {end_label}')
        node.body.accept(self)
        if node.increment is not None:
            node.increment.accept(self)
        self._emit(f'jmp {begin_label}')
        self._label(end_label)


def generate(program: ProgramNode, dialect: Union[str, AsmDialect] = 'nasm') -> str:
    return AssemblyCodeGenerator(dialect).generate(program)

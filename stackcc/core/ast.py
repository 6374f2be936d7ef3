from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List

from .symbols import Variable
from .tokens import SourceLocation
from .types import Type


class ASTNode(ABC):
    """Base class for all AST nodes"""

    @abstractmethod
    def accept(self, visitor):
        pass


class ExpressionNode(ASTNode):
    """Expressions carry a resolved `ty` once the annotator has visited them"""
    ty: Optional[Type]


class StatementNode(ASTNode):
    pass


class BinaryOperator(Enum):
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    MOD = "%"
    EQ = "=="
    NE = "!="
    LT = "<"
    LE = "<="

    @property
    def is_comparison(self) -> bool:
        return self in (BinaryOperator.EQ, BinaryOperator.NE,
                        BinaryOperator.LT, BinaryOperator.LE)


# Expression nodes

@dataclass
class NumberNode(ExpressionNode):
    value: int
    ty: Optional[Type] = None
    location: Optional[SourceLocation] = None

    def accept(self, visitor):
        return visitor.visit_number(self)


@dataclass
class VariableNode(ExpressionNode):
    var: Variable
    ty: Optional[Type] = None
    location: Optional[SourceLocation] = None

    def accept(self, visitor):
        return visitor.visit_variable(self)


@dataclass
class AddressOfNode(ExpressionNode):
    operand: ExpressionNode
    ty: Optional[Type] = None
    location: Optional[SourceLocation] = None

    def accept(self, visitor):
        return visitor.visit_address_of(self)


@dataclass
class DereferenceNode(ExpressionNode):
    operand: ExpressionNode
    ty: Optional[Type] = None
    location: Optional[SourceLocation] = None

    def accept(self, visitor):
        return visitor.visit_dereference(self)


@dataclass
class BinaryOpNode(ExpressionNode):
    operator: BinaryOperator
    left: ExpressionNode
    right: ExpressionNode
    ty: Optional[Type] = None
    location: Optional[SourceLocation] = None

    def accept(self, visitor):
        return visitor.visit_binary_op(self)


@dataclass
class AssignmentNode(ExpressionNode):
    target: ExpressionNode
    value: ExpressionNode
    ty: Optional[Type] = None
    location: Optional[SourceLocation] = None

    def accept(self, visitor):
        return visitor.visit_assignment(self)


@dataclass
class FunctionCallNode(ExpressionNode):
    name: str
    arguments: List[ExpressionNode] = field(default_factory=list)
    ty: Optional[Type] = None
    location: Optional[SourceLocation] = None

    def accept(self, visitor):
        return visitor.visit_function_call(self)


# Statement nodes

@dataclass
class ExpressionStatementNode(StatementNode):
    expression: ExpressionNode
    location: Optional[SourceLocation] = None

    def accept(self, visitor):
        return visitor.visit_expression_statement(self)


@dataclass
class BlockNode(StatementNode):
    statements: List[StatementNode] = field(default_factory=list)
    location: Optional[SourceLocation] = None

    def accept(self, visitor):
        return visitor.visit_block(self)


@dataclass
class IfNode(StatementNode):
    condition: ExpressionNode
    then_branch: StatementNode
    else_branch: Optional[StatementNode] = None
    location: Optional[SourceLocation] = None

    def accept(self, visitor):
        return visitor.visit_if(self)


@dataclass
class WhileNode(StatementNode):
    condition: ExpressionNode
    body: StatementNode
    location: Optional[SourceLocation] = None

    def accept(self, visitor):
        return visitor.visit_while(self)


@dataclass
class ForNode(StatementNode):
    body: StatementNode
    init: Optional[ExpressionStatementNode] = None
    condition: Optional[ExpressionNode] = None
    increment: Optional[ExpressionStatementNode] = None
    location: Optional[SourceLocation] = None

    def accept(self, visitor):
        return visitor.visit_for(self)


@dataclass
class ReturnNode(StatementNode):
    value: ExpressionNode
    location: Optional[SourceLocation] = None

    def accept(self, visitor):
        return visitor.visit_return(self)


# Top level

@dataclass
class FunctionNode(ASTNode):
    name: str
    return_type: Type
    params: List[Variable]
    locals: List[Variable]
    body: BlockNode
    stack_size: int = 0
    location: Optional[SourceLocation] = None

    def accept(self, visitor):
        return visitor.visit_function(self)


@dataclass
class ProgramNode(ASTNode):
    functions: List[FunctionNode] = field(default_factory=list)

    def accept(self, visitor):
        return visitor.visit_program(self)

    def get_function(self, name: str) -> Optional[FunctionNode]:
        for fn in self.functions:
            if fn.name == name:
                return fn
        return None


class ASTVisitor(ABC):
    """Visitor interface for traversing AST"""

    @abstractmethod
    def visit_program(self, node: ProgramNode): pass

    @abstractmethod
    def visit_function(self, node: FunctionNode): pass

    @abstractmethod
    def visit_number(self, node: NumberNode): pass

    @abstractmethod
    def visit_variable(self, node: VariableNode): pass

    @abstractmethod
    def visit_address_of(self, node: AddressOfNode): pass

    @abstractmethod
    def visit_dereference(self, node: DereferenceNode): pass

    @abstractmethod
    def visit_binary_op(self, node: BinaryOpNode): pass

    @abstractmethod
    def visit_assignment(self, node: AssignmentNode): pass

    @abstractmethod
    def visit_function_call(self, node: FunctionCallNode): pass

    @abstractmethod
    def visit_expression_statement(self, node: ExpressionStatementNode): pass

    @abstractmethod
    def visit_block(self, node: BlockNode): pass

    @abstractmethod
    def visit_if(self, node: IfNode): pass

    @abstractmethod
    def visit_while(self, node: WhileNode): pass

    @abstractmethod
    def visit_for(self, node: ForNode): pass

    @abstractmethod
    def visit_return(self, node: ReturnNode): pass

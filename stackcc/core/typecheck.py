"""Type annotation pass.

Attaches a resolved `Type` to every expression node and lowers pointer
arithmetic into plain integer arithmetic on byte offsets:

    p + n   ->  p + n * sizeof(*p)
    p - q   ->  (p - q) / sizeof(*p)

Nodes whose type is already set are left untouched, so annotating a tree
twice is a no-op.
"""
import logging
from typing import Optional

from .ast import (
    ASTVisitor, ASTNode, ProgramNode, FunctionNode, NumberNode, VariableNode,
    AddressOfNode, DereferenceNode, BinaryOpNode, BinaryOperator, AssignmentNode,
    FunctionCallNode, ExpressionNode, ExpressionStatementNode, BlockNode, IfNode,
    WhileNode, ForNode, ReturnNode,
)
from .diagnostics import TypeCheckError
from .symbols import SymbolTable
from .types import INT_TYPE, Type, pointer_to

logger = logging.getLogger(__name__)


class TypeAnnotator(ASTVisitor):
    def __init__(self, symbols: Optional[SymbolTable] = None):
        self.symbols = symbols

    def annotate(self, node: Optional[ASTNode]):
        if node is not None:
            node.accept(self)
        return node

    # Top level and statements

    def visit_program(self, node: ProgramNode):
        for fn in node.functions:
            self.annotate(fn)

    def visit_function(self, node: FunctionNode):
        self.annotate(node.body)

    def visit_expression_statement(self, node: ExpressionStatementNode):
        self.annotate(node.expression)

    def visit_block(self, node: BlockNode):
        for stmt in node.statements:
            self.annotate(stmt)

    def visit_if(self, node: IfNode):
        self.annotate(node.condition)
        self.annotate(node.then_branch)
        self.annotate(node.else_branch)

    def visit_while(self, node: WhileNode):
        self.annotate(node.condition)
        self.annotate(node.body)

    def visit_for(self, node: ForNode):
        self.annotate(node.init)
        self.annotate(node.condition)
        self.annotate(node.increment)
        self.annotate(node.body)

    def visit_return(self, node: ReturnNode):
        self.annotate(node.value)

    # Expressions

    def visit_number(self, node: NumberNode):
        if node.ty is None:
            node.ty = INT_TYPE

    def visit_variable(self, node: VariableNode):
        if node.ty is None:
            node.ty = node.var.type

    def visit_address_of(self, node: AddressOfNode):
        if node.ty is not None:
            return
        self.annotate(node.operand)
        self._require_lvalue(node.operand, allow_array=True)
        operand_ty = node.operand.ty
        if operand_ty.is_array():
            node.ty = pointer_to(operand_ty.base_type)
        else:
            node.ty = pointer_to(operand_ty)

    def visit_dereference(self, node: DereferenceNode):
        if node.ty is not None:
            return
        self.annotate(node.operand)
        if not node.operand.ty.has_base():
            raise TypeCheckError("invalid pointer dereference", node.location)
        node.ty = node.operand.ty.base_type

    def visit_assignment(self, node: AssignmentNode):
        if node.ty is not None:
            return
        self.annotate(node.target)
        self.annotate(node.value)
        self._require_lvalue(node.target, allow_array=False)
        node.ty = node.target.ty

    def visit_function_call(self, node: FunctionCallNode):
        if node.ty is not None:
            return
        for arg in node.arguments:
            self.annotate(arg)
        signature = self.symbols.lookup_function(node.name) if self.symbols else None
        node.ty = signature.return_type if signature else INT_TYPE

    def visit_binary_op(self, node: BinaryOpNode):
        if node.ty is not None:
            return
        self.annotate(node.left)
        self.annotate(node.right)

        op = node.operator
        if op == BinaryOperator.ADD:
            self._annotate_add(node)
        elif op == BinaryOperator.SUB:
            self._annotate_sub(node)
        elif op.is_comparison:
            node.ty = INT_TYPE
        else:
            if node.left.ty.has_base() or node.right.ty.has_base():
                raise TypeCheckError("invalid operands", node.location)
            node.ty = INT_TYPE

    def _annotate_add(self, node: BinaryOpNode):
        lhs, rhs = node.left.ty, node.right.ty

        if lhs.is_integer() and rhs.is_integer():
            node.ty = INT_TYPE
            return

        if lhs.has_base() and rhs.has_base():
            raise TypeCheckError("invalid operands", node.location)

        # Canonicalize `num + ptr` to `ptr + num`
        if lhs.is_integer():
            node.left, node.right = node.right, node.left
            lhs = rhs

        node.right = self._scale(node.right, lhs.base_type.size)
        node.ty = self._decay(lhs)
        logger.debug(f"scaled pointer addition by {lhs.base_type.size} at {node.location}")

    def _annotate_sub(self, node: BinaryOpNode):
        lhs, rhs = node.left.ty, node.right.ty

        if lhs.is_integer() and rhs.is_integer():
            node.ty = INT_TYPE
            return

        if lhs.has_base() and rhs.is_integer():
            node.right = self._scale(node.right, lhs.base_type.size)
            node.ty = self._decay(lhs)
            return

        if lhs.has_base() and rhs.has_base() and lhs.base_type == rhs.base_type:
            # Byte distance divided by the element size
            byte_distance = BinaryOpNode(
                BinaryOperator.SUB, node.left, node.right,
                ty=INT_TYPE, location=node.location,
            )
            node.operator = BinaryOperator.DIV
            node.left = byte_distance
            node.right = NumberNode(lhs.base_type.size, ty=INT_TYPE, location=node.location)
            node.ty = INT_TYPE
            return

        raise TypeCheckError("invalid operands", node.location)

    @staticmethod
    def _scale(expr: ExpressionNode, size: int) -> BinaryOpNode:
        return BinaryOpNode(
            BinaryOperator.MUL, expr, NumberNode(size, ty=INT_TYPE, location=expr.location),
            ty=INT_TYPE, location=expr.location,
        )

    @staticmethod
    def _decay(ty: Type) -> Type:
        return pointer_to(ty.base_type) if ty.is_array() else ty

    @staticmethod
    def _require_lvalue(node: ExpressionNode, allow_array: bool):
        if isinstance(node, (VariableNode, DereferenceNode)):
            if allow_array or not node.ty.is_array():
                return
        raise TypeCheckError("not an lvalue", node.location)


def annotate(node: ASTNode, symbols: Optional[SymbolTable] = None) -> ASTNode:
    return TypeAnnotator(symbols).annotate(node)

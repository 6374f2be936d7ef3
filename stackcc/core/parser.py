import logging
from typing import List, Optional, Tuple

from .ast import (
    ProgramNode, FunctionNode, StatementNode, ExpressionNode, NumberNode,
    VariableNode, AddressOfNode, DereferenceNode, BinaryOpNode, BinaryOperator,
    AssignmentNode, FunctionCallNode, ExpressionStatementNode, BlockNode, IfNode,
    WhileNode, ForNode, ReturnNode,
)
from .diagnostics import ParseError
from .symbols import FunctionSignature, SymbolTable, Variable
from .tokens import SourceLocation, Token, TokenType
from .typecheck import TypeAnnotator
from .types import INT_TYPE, Type, array_of, pointer_to

logger = logging.getLogger(__name__)

MAX_CALL_ARGS = 6


class Parser:
    """Recursive-descent parser, one method per grammar production.

    Declarations populate the symbol table as they are parsed, and every
    finished statement is run through the type annotator, so the tree
    handed back is fully typed with pointer arithmetic already scaled.
    """

    def __init__(self, tokens: List[Token], symbols: Optional[SymbolTable] = None):
        self.tokens = tokens
        self.i = 0
        self.symbols = symbols or SymbolTable()
        self.annotator = TypeAnnotator(self.symbols)

    # Token cursor

    def _peek(self, ahead: int = 0) -> Token:
        index = min(self.i + ahead, len(self.tokens) - 1)
        return self.tokens[index]

    def _next(self) -> Token:
        t = self.tokens[self.i]
        if t.type != TokenType.EOF:
            self.i += 1
        return t

    def _check(self, typ: TokenType) -> bool:
        return self._peek().type == typ

    def _accept(self, typ: TokenType) -> Optional[Token]:
        if self._check(typ):
            return self._next()
        return None

    def _expect(self, typ: TokenType, message: Optional[str] = None) -> Token:
        t = self._peek()
        if t.type == typ:
            return self._next()
        raise ParseError(message or f"expected '{typ.value}'", t.location)

    # program = function-definition*
    def parse(self) -> ProgramNode:
        functions = []
        while not self._check(TokenType.EOF):
            functions.append(self._function_definition())
        logger.debug(f"parsed {len(functions)} function(s)")
        return ProgramNode(functions=functions)

    # function-definition = type-spec declarator "(" params? ")" "{" compound-statement
    def _function_definition(self) -> FunctionNode:
        base = self._type_spec()
        name_tok, return_type = self._declarator(base)
        name = name_tok.value

        if self.symbols.lookup_function(name) is not None:
            raise ParseError(f"redefinition of function '{name}'", name_tok.location)

        scope = self.symbols.enter_function(name)
        try:
            self._expect(TokenType.LEFT_PAREN)
            params = self._params()
            self.symbols.define_function(FunctionSignature(
                name=name,
                return_type=return_type,
                param_types=[p.type for p in params],
                location=name_tok.location,
            ))
            lbrace = self._expect(TokenType.LEFT_BRACE)
            body = self._compound_statement(lbrace.location)
        finally:
            self.symbols.exit_function()

        return FunctionNode(
            name=name,
            return_type=return_type,
            params=params,
            locals=scope.locals,
            body=body,
            location=name_tok.location,
        )

    # params = param ("," param)*
    # param = type-spec declarator
    def _params(self) -> List[Variable]:
        params: List[Variable] = []
        if self._accept(TokenType.RIGHT_PAREN):
            return params
        while True:
            base = self._type_spec()
            name_tok, ty = self._declarator(base)
            if ty.is_array():
                ty = pointer_to(ty.base_type)
            if len(params) == MAX_CALL_ARGS:
                raise ParseError(
                    f"too many parameters (at most {MAX_CALL_ARGS} supported)", name_tok.location)
            var = Variable(name_tok.value, ty, is_parameter=True, location=name_tok.location)
            params.append(self.symbols.declare_variable(var))
            if self._accept(TokenType.RIGHT_PAREN):
                return params
            self._expect(TokenType.COMMA, "expected ',' or ')'")

    def _type_spec(self) -> Type:
        self._expect(TokenType.INT, "expected a type name")
        return INT_TYPE

    # declarator = "*"* identifier ("[" integer-literal "]")?
    def _declarator(self, base: Type) -> Tuple[Token, Type]:
        ty = base
        while self._accept(TokenType.STAR):
            ty = pointer_to(ty)
        name_tok = self._expect(TokenType.IDENTIFIER, "expected an identifier")
        if self._accept(TokenType.LEFT_BRACKET):
            ty = array_of(ty, self._array_length())
            self._expect(TokenType.RIGHT_BRACKET)
        return name_tok, ty

    def _array_length(self) -> int:
        tok = self._expect(TokenType.NUMBER, "expected an array length")
        return tok.number

    # compound-statement = (declaration | statement)* "}"
    def _compound_statement(self, location: Optional[SourceLocation] = None) -> BlockNode:
        stmts: List[StatementNode] = []
        while not self._accept(TokenType.RIGHT_BRACE):
            if self._check(TokenType.EOF):
                raise ParseError("expected '}'", self._peek().location)
            if self._check(TokenType.INT):
                new_stmts = self._declaration()
            else:
                new_stmts = [self._statement()]
            for stmt in new_stmts:
                self.annotator.annotate(stmt)
                stmts.append(stmt)
        return BlockNode(statements=stmts, location=location)

    # declaration = type-spec declarator ("=" expression)? ("," declarator ("=" expression)?)* ";"
    def _declaration(self) -> List[StatementNode]:
        base = self._type_spec()
        stmts: List[StatementNode] = []
        while True:
            name_tok, ty = self._declarator(base)
            # Declared before the initializer is parsed, so `int a = a;` resolves
            var = self.symbols.declare_variable(
                Variable(name_tok.value, ty, location=name_tok.location))

            assign_tok = self._accept(TokenType.ASSIGN)
            if assign_tok:
                target = VariableNode(var, location=name_tok.location)
                value = self._expression()
                assign = AssignmentNode(target, value, location=assign_tok.location)
                stmts.append(ExpressionStatementNode(assign, location=name_tok.location))

            if not self._accept(TokenType.COMMA):
                break
        self._expect(TokenType.SEMICOLON)
        return stmts

    def _statement(self) -> StatementNode:
        t = self._peek()

        # "return" expression ";"
        if self._accept(TokenType.RETURN):
            value = self._expression()
            self._expect(TokenType.SEMICOLON)
            return ReturnNode(value, location=t.location)

        # "if" "(" expression ")" statement ("else" statement)?
        if self._accept(TokenType.IF):
            self._expect(TokenType.LEFT_PAREN)
            cond = self._expression()
            self._expect(TokenType.RIGHT_PAREN)
            then_branch = self._statement()
            else_branch = None
            if self._accept(TokenType.ELSE):
                else_branch = self._statement()
            return IfNode(cond, then_branch, else_branch, location=t.location)

        # "for" "(" expression? ";" expression? ";" expression? ")" statement
        if self._accept(TokenType.FOR):
            self._expect(TokenType.LEFT_PAREN)
            init = cond = inc = None
            if not self._accept(TokenType.SEMICOLON):
                init = self._expression_statement()
                self._expect(TokenType.SEMICOLON)
            if not self._accept(TokenType.SEMICOLON):
                cond = self._expression()
                self._expect(TokenType.SEMICOLON)
            if not self._accept(TokenType.RIGHT_PAREN):
                inc = self._expression_statement()
                self._expect(TokenType.RIGHT_PAREN)
            body = self._statement()
            return ForNode(body, init=init, condition=cond, increment=inc, location=t.location)

        # "while" "(" expression ")" statement
        if self._accept(TokenType.WHILE):
            self._expect(TokenType.LEFT_PAREN)
            cond = self._expression()
            self._expect(TokenType.RIGHT_PAREN)
            body = self._statement()
            return WhileNode(cond, body, location=t.location)

        if self._accept(TokenType.LEFT_BRACE):
            return self._compound_statement(t.location)

        # Empty statement
        if self._accept(TokenType.SEMICOLON):
            return BlockNode(statements=[], location=t.location)

        stmt = self._expression_statement()
        self._expect(TokenType.SEMICOLON)
        return stmt

    def _expression_statement(self) -> ExpressionStatementNode:
        location = self._peek().location
        return ExpressionStatementNode(self._expression(), location=location)

    # expression = assignment
    def _expression(self) -> ExpressionNode:
        return self._assignment()

    # assignment = equality ("=" assignment)?
    def _assignment(self) -> ExpressionNode:
        node = self._equality()
        tok = self._accept(TokenType.ASSIGN)
        if tok:
            return AssignmentNode(node, self._assignment(), location=tok.location)
        return node

    # equality = relational ("==" relational | "!=" relational)*
    def _equality(self) -> ExpressionNode:
        node = self._relational()
        while True:
            t = self._peek()
            if self._accept(TokenType.EQUALS):
                node = BinaryOpNode(BinaryOperator.EQ, node, self._relational(), location=t.location)
            elif self._accept(TokenType.NOT_EQUALS):
                node = BinaryOpNode(BinaryOperator.NE, node, self._relational(), location=t.location)
            else:
                return node

    # relational = additive ("<" additive | "<=" additive | ">" additive | ">=" additive)*
    def _relational(self) -> ExpressionNode:
        node = self._additive()
        while True:
            t = self._peek()
            if self._accept(TokenType.LESS_THAN):
                node = BinaryOpNode(BinaryOperator.LT, node, self._additive(), location=t.location)
            elif self._accept(TokenType.LESS_EQUAL):
                node = BinaryOpNode(BinaryOperator.LE, node, self._additive(), location=t.location)
            elif self._accept(TokenType.GREATER_THAN):
                # a > b is emitted as b < a
                node = BinaryOpNode(BinaryOperator.LT, self._additive(), node, location=t.location)
            elif self._accept(TokenType.GREATER_EQUAL):
                node = BinaryOpNode(BinaryOperator.LE, self._additive(), node, location=t.location)
            else:
                return node

    # additive = multiplicative ("+" multiplicative | "-" multiplicative)*
    def _additive(self) -> ExpressionNode:
        node = self._multiplicative()
        while True:
            t = self._peek()
            if self._accept(TokenType.PLUS):
                node = BinaryOpNode(BinaryOperator.ADD, node, self._multiplicative(), location=t.location)
            elif self._accept(TokenType.MINUS):
                node = BinaryOpNode(BinaryOperator.SUB, node, self._multiplicative(), location=t.location)
            else:
                return node

    # multiplicative = unary ("*" unary | "/" unary | "%" unary)*
    def _multiplicative(self) -> ExpressionNode:
        node = self._unary()
        while True:
            t = self._peek()
            if self._accept(TokenType.STAR):
                node = BinaryOpNode(BinaryOperator.MUL, node, self._unary(), location=t.location)
            elif self._accept(TokenType.SLASH):
                node = BinaryOpNode(BinaryOperator.DIV, node, self._unary(), location=t.location)
            elif self._accept(TokenType.PERCENT):
                node = BinaryOpNode(BinaryOperator.MOD, node, self._unary(), location=t.location)
            else:
                return node

    # unary = ("+" | "-" | "*" | "&") unary | "sizeof" unary | postfix
    def _unary(self) -> ExpressionNode:
        t = self._peek()
        if self._accept(TokenType.PLUS):
            return self._unary()
        if self._accept(TokenType.MINUS):
            zero = NumberNode(0, location=t.location)
            return BinaryOpNode(BinaryOperator.SUB, zero, self._unary(), location=t.location)
        if self._accept(TokenType.STAR):
            return DereferenceNode(self._unary(), location=t.location)
        if self._accept(TokenType.AMPERSAND):
            return AddressOfNode(self._unary(), location=t.location)
        if self._accept(TokenType.SIZEOF):
            return self._sizeof(t)
        return self._postfix()

    def _sizeof(self, sizeof_tok: Token) -> NumberNode:
        """Fold `sizeof` into a literal at parse time"""
        if self._check(TokenType.LEFT_PAREN) and self._peek(1).type == TokenType.INT:
            self._next()
            ty = self._type_name()
            self._expect(TokenType.RIGHT_PAREN)
        else:
            operand = self.annotator.annotate(self._unary())
            ty = operand.ty
        return NumberNode(ty.size, location=sizeof_tok.location)

    # type-name = type-spec "*"* ("[" integer-literal "]")?
    def _type_name(self) -> Type:
        ty = self._type_spec()
        while self._accept(TokenType.STAR):
            ty = pointer_to(ty)
        if self._accept(TokenType.LEFT_BRACKET):
            ty = array_of(ty, self._array_length())
            self._expect(TokenType.RIGHT_BRACKET)
        return ty

    # postfix = primary ("[" expression "]")*
    def _postfix(self) -> ExpressionNode:
        node = self._primary()
        while True:
            t = self._peek()
            if not self._accept(TokenType.LEFT_BRACKET):
                return node
            index = self._expression()
            self._expect(TokenType.RIGHT_BRACKET)
            # x[y] is *(x + y)
            node = DereferenceNode(
                BinaryOpNode(BinaryOperator.ADD, node, index, location=t.location),
                location=t.location,
            )

    # primary = "(" expression ")" | identifier ("(" args? ")")? | integer-literal
    def _primary(self) -> ExpressionNode:
        t = self._peek()

        if self._accept(TokenType.LEFT_PAREN):
            node = self._expression()
            self._expect(TokenType.RIGHT_PAREN)
            return node

        if self._accept(TokenType.IDENTIFIER):
            if self._accept(TokenType.LEFT_PAREN):
                return self._function_call(t)
            var = self.symbols.lookup_variable(t.value)
            if var is None:
                raise ParseError(f"undefined variable '{t.value}'", t.location)
            return VariableNode(var, location=t.location)

        if self._accept(TokenType.NUMBER):
            return NumberNode(t.number, location=t.location)

        raise ParseError("expected an expression", t.location)

    # args = assignment ("," assignment)*
    def _function_call(self, name_tok: Token) -> FunctionCallNode:
        args: List[ExpressionNode] = []
        if not self._accept(TokenType.RIGHT_PAREN):
            while True:
                args.append(self._assignment())
                if self._accept(TokenType.RIGHT_PAREN):
                    break
                self._expect(TokenType.COMMA, "expected ',' or ')'")

        if len(args) > MAX_CALL_ARGS:
            raise ParseError(
                f"too many arguments to '{name_tok.value}' (at most {MAX_CALL_ARGS} supported)",
                name_tok.location,
            )

        signature = self.symbols.lookup_function(name_tok.value)
        if signature is not None and len(signature.param_types) != len(args):
            raise ParseError(
                f"'{name_tok.value}' expects {len(signature.param_types)} argument(s), got {len(args)}",
                name_tok.location,
                notes=[f"'{name_tok.value}' is defined at {signature.location}"],
            )
        return FunctionCallNode(name_tok.value, args, location=name_tok.location)


def parse(tokens: List[Token], symbols: Optional[SymbolTable] = None) -> ProgramNode:
    return Parser(tokens, symbols).parse()

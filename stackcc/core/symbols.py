from dataclasses import dataclass, field
from typing import Optional, List, Dict

from .tokens import SourceLocation
from .types import Type


@dataclass
class Variable:
    """A local variable or parameter of one function"""
    name: str
    type: Type
    offset: int = 0  # Distance below rbp, set by the layout pass
    is_parameter: bool = False
    location: Optional[SourceLocation] = None


@dataclass
class FunctionSignature:
    name: str
    return_type: Type
    param_types: List[Type] = field(default_factory=list)
    location: Optional[SourceLocation] = None


class FunctionScope:
    """Variables declared by a single function definition.

    `locals` keeps every declaration in order, including shadowed ones, so
    each still receives a stack slot. `variables` maps a name to its most
    recent declaration.
    """

    def __init__(self, name: str):
        self.name = name
        self.locals: List[Variable] = []
        self.variables: Dict[str, Variable] = {}

    def declare(self, variable: Variable) -> Variable:
        self.locals.append(variable)
        self.variables[variable.name] = variable
        return variable

    def lookup(self, name: str) -> Optional[Variable]:
        return self.variables.get(name)


class SymbolTable:
    """Function signatures for the whole program plus one scope per function body"""

    def __init__(self):
        self.functions: Dict[str, FunctionSignature] = {}
        self.scopes: List[FunctionScope] = []

    @property
    def current_scope(self) -> Optional[FunctionScope]:
        return self.scopes[-1] if self.scopes else None

    def enter_function(self, name: str) -> FunctionScope:
        scope = FunctionScope(name)
        self.scopes.append(scope)
        return scope

    def exit_function(self) -> FunctionScope:
        return self.scopes.pop()

    def declare_variable(self, variable: Variable) -> Variable:
        if self.current_scope is None:
            raise RuntimeError(f"variable '{variable.name}' declared outside of a function")
        return self.current_scope.declare(variable)

    def lookup_variable(self, name: str) -> Optional[Variable]:
        if self.current_scope is None:
            return None
        return self.current_scope.lookup(name)

    def define_function(self, signature: FunctionSignature) -> bool:
        if signature.name in self.functions:
            return False
        self.functions[signature.name] = signature
        return True

    def lookup_function(self, name: str) -> Optional[FunctionSignature]:
        return self.functions.get(name)

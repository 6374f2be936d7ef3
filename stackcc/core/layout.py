import logging

from .ast import FunctionNode, ProgramNode
from .types import align_to

logger = logging.getLogger(__name__)

# r12-r15 are saved just below the saved rbp
CALLEE_SAVED_REGISTERS = ['r12', 'r13', 'r14', 'r15']
CALLEE_SAVED_RESERVATION = 8 * len(CALLEE_SAVED_REGISTERS)
STACK_ALIGNMENT = 16


def assign_function_layout(func: FunctionNode, reserved: int = CALLEE_SAVED_RESERVATION) -> int:
    """Give every local of `func` a frame offset and return the frame size."""
    offset = reserved
    for var in func.locals:
        offset = align_to(offset + var.type.size, var.type.alignment)
        var.offset = offset
    func.stack_size = align_to(offset, STACK_ALIGNMENT)
    logger.debug(f"{func.name}: {len(func.locals)} local(s), frame size {func.stack_size}")
    return func.stack_size


def assign_stack_layout(program: ProgramNode, reserved: int = CALLEE_SAVED_RESERVATION) -> ProgramNode:
    for func in program.functions:
        assign_function_layout(func, reserved)
    return program

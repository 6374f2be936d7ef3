from enum import Enum, auto
from dataclasses import dataclass
from typing import Optional


class TypeKind(Enum):
    INT = auto()
    POINTER = auto()
    ARRAY = auto()


@dataclass
class Type:
    kind: TypeKind
    name: str
    size: int = 0
    alignment: int = 0

    # Pointee for pointers, element for arrays
    base_type: Optional['Type'] = None
    array_size: Optional[int] = None

    def __str__(self):
        if self.kind == TypeKind.POINTER:
            return f"{self.base_type}*"
        elif self.kind == TypeKind.ARRAY:
            return f"{self.base_type}[{self.array_size}]"
        else:
            return self.name

    @property
    def base(self) -> Optional['Type']:
        return self.base_type

    def is_integer(self) -> bool:
        return self.kind == TypeKind.INT

    def is_pointer(self) -> bool:
        return self.kind == TypeKind.POINTER

    def is_array(self) -> bool:
        return self.kind == TypeKind.ARRAY

    def has_base(self) -> bool:
        """Pointers and arrays both scale arithmetic by their base size"""
        return self.base_type is not None


class TypeFactory:
    _types_cache = {}

    @classmethod
    def get_int(cls, size: int = 4) -> Type:
        key = ("int", size)
        if key not in cls._types_cache:
            cls._types_cache[key] = Type(
                kind=TypeKind.INT,
                name="int",
                size=size,
                alignment=size,
            )
        return cls._types_cache[key]

    @classmethod
    def get_pointer(cls, base: Type) -> Type:
        return Type(
            kind=TypeKind.POINTER,
            name=f"{base.name}*",
            size=8,  # 64-bit pointer
            alignment=8,
            base_type=base
        )

    @classmethod
    def get_array(cls, base: Type, length: int) -> Type:
        return Type(
            kind=TypeKind.ARRAY,
            name=f"{base.name}[{length}]",
            size=base.size * length,
            alignment=base.alignment,
            base_type=base,
            array_size=length
        )


INT_TYPE = TypeFactory.get_int()


def pointer_to(base: Type) -> Type:
    return TypeFactory.get_pointer(base)


def array_of(base: Type, length: int) -> Type:
    return TypeFactory.get_array(base, length)


def align_to(n: int, align: int) -> int:
    """Round n up to the nearest multiple of align"""
    return (n + align - 1) // align * align

"""IR Design — target-independent type algebra."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Annotated, Iterator, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class SourceLocation(BaseModel):
    """Structured source span from tree-sitter AST nodes."""

    start_line: int
    start_col: int
    end_line: int
    end_col: int

    def is_unknown(self) -> bool:
        return (
            self.start_line == 0
            and self.start_col == 0
            and self.end_line == 0
            and self.end_col == 0
        )

    def __str__(self) -> str:
        if self.is_unknown():
            return "<unknown>"
        return f"{self.start_line}:{self.start_col}-{self.end_line}:{self.end_col}"


NO_SOURCE_LOCATION = SourceLocation(start_line=0, start_col=0, end_line=0, end_col=0)


class PrimitiveKind(str, Enum):
    STRING = "String"
    BOOL = "Bool"
    INT128 = "Int128"
    FLOAT64 = "Float64"


class _Node(BaseModel):
    model_config = ConfigDict(frozen=True)


# ── literal kinds ────────────────────────────────────────────────


class BoolLiteral(_Node):
    kind: Literal["bool"] = "bool"
    value: bool


class StringLiteral(_Node):
    kind: Literal["string"] = "string"
    value: str


class NumericLiteral(_Node):
    """Numeric or bigint literal, kept in its source spelling."""

    kind: Literal["numeric"] = "numeric"
    raw: str


class NullLiteral(_Node):
    kind: Literal["null"] = "null"


class TypeVariant(_Node):
    """A whole type carried in literal position (named tuple members)."""

    kind: Literal["type"] = "type"
    inner: IRType


LiteralKind = Annotated[
    Union[BoolLiteral, StringLiteral, NumericLiteral, NullLiteral, TypeVariant],
    Field(discriminator="kind"),
]


# ── IR nodes ─────────────────────────────────────────────────────


class PrimitiveType(_Node):
    node: Literal["primitive"] = "primitive"
    kind: PrimitiveKind


class ContainerType(_Node):
    node: Literal["container"] = "container"
    element: IRType


class OptionalType(_Node):
    """Possibly-absent value. Never wraps another ``OptionalType``."""

    node: Literal["optional"] = "optional"
    inner: IRType

    @model_validator(mode="before")
    @classmethod
    def _collapse_nested(cls, data):
        if not isinstance(data, dict):
            return data
        inner = data.get("inner")
        while True:
            if isinstance(inner, OptionalType):
                inner = inner.inner
            elif isinstance(inner, dict) and inner.get("node") == "optional":
                inner = inner.get("inner")
            else:
                break
        return {**data, "inner": inner}


class ChoiceType(_Node):
    """Normalized union: none-signalling members are folded into ``has_none``."""

    node: Literal["choice"] = "choice"
    variants: list[IRType] = Field(default_factory=list)
    has_none: bool = False


class LiteralType(_Node):
    node: Literal["literal"] = "literal"
    value: LiteralKind


class RecordType(_Node):
    node: Literal["record"] = "record"
    fields: dict[str, IRType]

    @model_validator(mode="after")
    def _non_empty(self) -> RecordType:
        if not self.fields:
            raise ValueError("a record must have at least one field")
        return self


class UnresolvedReference(_Node):
    node: Literal["unresolved_reference"] = "unresolved_reference"
    name: str
    module_specifier: str | None = None


class ResolvedReference(_Node):
    node: Literal["resolved_reference"] = "resolved_reference"
    name: str
    module_path: Path


class DynamicValueType(_Node):
    node: Literal["dynamic"] = "dynamic"


class UnitType(_Node):
    node: Literal["unit"] = "unit"


class UnsupportedType(_Node):
    node: Literal["unsupported"] = "unsupported"
    construct_name: str
    source_snippet: str


IRType = Annotated[
    Union[
        PrimitiveType,
        ContainerType,
        OptionalType,
        ChoiceType,
        LiteralType,
        RecordType,
        UnresolvedReference,
        ResolvedReference,
        DynamicValueType,
        UnitType,
        UnsupportedType,
    ],
    Field(discriminator="node"),
]

for _model in (
    TypeVariant,
    ContainerType,
    OptionalType,
    ChoiceType,
    LiteralType,
    RecordType,
):
    _model.model_rebuild()


STRING = PrimitiveType(kind=PrimitiveKind.STRING)
BOOL = PrimitiveType(kind=PrimitiveKind.BOOL)
INT128 = PrimitiveType(kind=PrimitiveKind.INT128)
FLOAT64 = PrimitiveType(kind=PrimitiveKind.FLOAT64)
NULL = LiteralType(value=NullLiteral())
DYNAMIC = DynamicValueType()
UNIT = UnitType()


def is_none_signal(ir: IRType) -> bool:
    """True for members that mean "no value" inside a union."""
    if isinstance(ir, UnitType):
        return True
    return isinstance(ir, LiteralType) and isinstance(ir.value, NullLiteral)


def iter_children(ir: IRType) -> Iterator[IRType]:
    """Yield the direct IR children of *ir*."""
    if isinstance(ir, ContainerType):
        yield ir.element
    elif isinstance(ir, OptionalType):
        yield ir.inner
    elif isinstance(ir, ChoiceType):
        yield from ir.variants
    elif isinstance(ir, RecordType):
        yield from ir.fields.values()
    elif isinstance(ir, LiteralType) and isinstance(ir.value, TypeVariant):
        yield ir.value.inner

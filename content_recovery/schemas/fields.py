"""Declarative field descriptors for record schemas.

A schema is a tuple of tagged descriptors. Each scalar descriptor carries a
default generator ``(context, index) -> value`` and list descriptors carry a
``Cardinality``. The coercer dispatches on ``kind``; nothing here knows how
responses are parsed.
"""

from __future__ import annotations

from collections.abc import Callable
import dataclasses
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar

from content_recovery.exceptions import SchemaDefinitionError
from content_recovery.response.extractor import ShapeHint

if TYPE_CHECKING:
    from content_recovery.schemas.context import StrategyContext

DefaultFn = Callable[["StrategyContext", int], Any]


class FieldKind(str, Enum):
    TEXT = "text"
    INTEGER = "integer"
    TEXT_LIST = "text_list"
    OBJECT = "object"
    OBJECT_LIST = "object_list"


def blank_text(context: StrategyContext, index: int) -> str:
    return ""


def position(context: StrategyContext, index: int) -> int:
    """1-based position of the item, the natural default for week/day numbers."""
    return index + 1


def _check_name(name: Any) -> None:
    if not isinstance(name, str) or not name.strip():
        raise SchemaDefinitionError(f"Field name must be a non-empty str, got {name!r}")


@dataclasses.dataclass(frozen=True, slots=True)
class Cardinality:
    """Allowed element count of a list field."""

    minimum: int = 0
    maximum: int | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.minimum, int) or self.minimum < 0:
            raise SchemaDefinitionError(
                f"Cardinality minimum must be a non-negative int, got {self.minimum!r}"
            )
        if self.maximum is not None and (
            not isinstance(self.maximum, int) or self.maximum < self.minimum
        ):
            raise SchemaDefinitionError(
                f"Cardinality maximum ({self.maximum!r}) must be an int >= "
                f"minimum ({self.minimum})"
            )

    @classmethod
    def exactly(cls, count: int) -> Cardinality:
        return cls(minimum=count, maximum=count)

    @classmethod
    def at_least(cls, count: int) -> Cardinality:
        return cls(minimum=count)

    @property
    def is_exact(self) -> bool:
        return self.maximum == self.minimum

    def accepts(self, count: int) -> bool:
        return count >= self.minimum and (self.maximum is None or count <= self.maximum)

    def __str__(self) -> str:
        if self.is_exact:
            return f"exactly {self.minimum}"
        if self.maximum is None:
            return f"at least {self.minimum}"
        return f"{self.minimum} to {self.maximum}"


@dataclasses.dataclass(frozen=True, slots=True)
class TextField:
    name: str
    default: DefaultFn = blank_text
    kind: ClassVar[FieldKind] = FieldKind.TEXT

    def __post_init__(self) -> None:
        _check_name(self.name)


@dataclasses.dataclass(frozen=True, slots=True)
class IntegerField:
    name: str
    default: DefaultFn = position
    kind: ClassVar[FieldKind] = FieldKind.INTEGER

    def __post_init__(self) -> None:
        _check_name(self.name)


@dataclasses.dataclass(frozen=True, slots=True)
class TextListField:
    """A list of strings; ``item_default`` fills each missing position."""

    name: str
    item_default: DefaultFn = blank_text
    cardinality: Cardinality = Cardinality()
    kind: ClassVar[FieldKind] = FieldKind.TEXT_LIST

    def __post_init__(self) -> None:
        _check_name(self.name)


@dataclasses.dataclass(frozen=True, slots=True)
class ObjectSchema:
    """An ordered set of uniquely named fields."""

    fields: tuple[FieldSpec, ...]

    def __post_init__(self) -> None:
        if not self.fields:
            raise SchemaDefinitionError("An object schema needs at least one field")
        names = [spec.name for spec in self.fields]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise SchemaDefinitionError(
                f"Duplicate field names: {', '.join(duplicates)}"
            )

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(spec.name for spec in self.fields)

    def get(self, name: str) -> FieldSpec | None:
        return next((spec for spec in self.fields if spec.name == name), None)


@dataclasses.dataclass(frozen=True, slots=True)
class ObjectField:
    name: str
    schema: ObjectSchema
    kind: ClassVar[FieldKind] = FieldKind.OBJECT

    def __post_init__(self) -> None:
        _check_name(self.name)


@dataclasses.dataclass(frozen=True, slots=True)
class ObjectListField:
    """A list of objects, optionally ordered by one or more scalar keys."""

    name: str
    item_schema: ObjectSchema
    cardinality: Cardinality = Cardinality()
    order_by: tuple[str, ...] = ()
    kind: ClassVar[FieldKind] = FieldKind.OBJECT_LIST

    def __post_init__(self) -> None:
        _check_name(self.name)
        for key in self.order_by:
            spec = self.item_schema.get(key)
            if spec is None or spec.kind not in (FieldKind.TEXT, FieldKind.INTEGER):
                raise SchemaDefinitionError(
                    f"'{self.name}' cannot be ordered by '{key}': "
                    "ordering keys must be text or integer item fields"
                )


FieldSpec = TextField | IntegerField | TextListField | ObjectField | ObjectListField

_SCALAR_KINDS = (FieldKind.TEXT, FieldKind.INTEGER)
_LIST_KINDS = (FieldKind.TEXT_LIST, FieldKind.OBJECT_LIST)


@dataclasses.dataclass(frozen=True, slots=True)
class RecordSchema:
    """Top-level declaration of one use case's output.

    Attributes:
        name: Registry key, e.g. ``"weekly_themes"``.
        fields: Top-level fields of the record.
        bare_array_field: List field that a bare JSON array response is
            wrapped into. Set it when the model is asked for an array.
        description: Human-readable summary.
    """

    name: str
    fields: tuple[FieldSpec, ...]
    bare_array_field: str | None = None
    description: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise SchemaDefinitionError("Schema name must be a non-empty str")
        root = ObjectSchema(tuple(self.fields))
        object.__setattr__(self, "fields", root.fields)
        if self.bare_array_field is not None:
            spec = root.get(self.bare_array_field)
            if spec is None or spec.kind not in _LIST_KINDS:
                raise SchemaDefinitionError(
                    f"bare_array_field '{self.bare_array_field}' of schema "
                    f"'{self.name}' must name a list field"
                )

    @property
    def root(self) -> ObjectSchema:
        return ObjectSchema(self.fields)

    @property
    def primary_list_field(self) -> TextListField | ObjectListField | None:
        """The field a bare array response belongs to."""
        if self.bare_array_field is not None:
            return self.root.get(self.bare_array_field)  # type: ignore[return-value]
        return next((spec for spec in self.fields if spec.kind in _LIST_KINDS), None)

    @property
    def shape_hint(self) -> ShapeHint:
        """What the extractor should look for in a response to this schema."""
        primary = self.primary_list_field
        scalars = tuple(s.name for s in self.fields if s.kind in _SCALAR_KINDS)
        if isinstance(primary, ObjectListField):
            return ShapeHint(
                array_field=primary.name,
                item_fields=_scalar_names(primary.item_schema),
                scalar_fields=scalars,
                bare_array=self.bare_array_field is not None,
            )
        if isinstance(primary, TextListField):
            return ShapeHint(
                array_field=primary.name,
                scalar_fields=scalars,
                bare_array=self.bare_array_field is not None,
            )
        nested = next((s for s in self.fields if isinstance(s, ObjectField)), None)
        if nested is not None and not scalars:
            return ShapeHint(
                scalar_fields=_scalar_names(nested.schema),
                object_field=nested.name,
            )
        return ShapeHint(scalar_fields=scalars)


def _scalar_names(schema: ObjectSchema) -> tuple[str, ...]:
    return tuple(spec.name for spec in schema.fields if spec.kind in _SCALAR_KINDS)

"""Record schemas, their default generators and the schema registry."""

from content_recovery.schemas.catalog import (
    BUILTIN_SCHEMAS,
    available_schemas,
    get_schema,
    register_schema,
    resolve_schema,
    unregister_schema,
)
from content_recovery.schemas.context import AudienceSegment, StrategyContext
from content_recovery.schemas.fields import (
    Cardinality,
    FieldKind,
    IntegerField,
    ObjectField,
    ObjectListField,
    ObjectSchema,
    RecordSchema,
    TextField,
    TextListField,
)

__all__ = [
    "BUILTIN_SCHEMAS",
    "AudienceSegment",
    "Cardinality",
    "FieldKind",
    "IntegerField",
    "ObjectField",
    "ObjectListField",
    "ObjectSchema",
    "RecordSchema",
    "StrategyContext",
    "TextField",
    "TextListField",
    "available_schemas",
    "get_schema",
    "register_schema",
    "resolve_schema",
    "unregister_schema",
]

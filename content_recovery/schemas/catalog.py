"""
Built-in record schemas and the schema registry

Each schema describes the JSON a content-planning prompt asks the model for.
Callers can register their own schemas alongside the built-in ones.
"""

from __future__ import annotations

import logging

from content_recovery.exceptions import SchemaDefinitionError
from content_recovery.schemas import defaults
from content_recovery.schemas.fields import (
    Cardinality,
    IntegerField,
    ObjectField,
    ObjectListField,
    ObjectSchema,
    RecordSchema,
    TextField,
    TextListField,
)

log = logging.getLogger(__name__)

THEMES_PER_PLAN = 3
POSTS_PER_WEEK = 3
ENGAGEMENT_DAYS = 21
SUGGESTION_COUNT = 3

# --- Shared item schemas ---

_POST_CORE_FIELDS = (
    TextField("type", defaults.post_type),
    TextField("topic", defaults.post_topic),
    TextField("audience", defaults.post_audience),
    TextField("cta", defaults.post_cta),
    TextField("principle", defaults.principle),
    TextField("principleExplanation", defaults.principle_explanation),
    TextField("visual", defaults.post_visual),
)

OUTLINE_POST = ObjectSchema(_POST_CORE_FIELDS)
WEEK_POST = ObjectSchema(
    (*_POST_CORE_FIELDS, TextField("proposedCaption", defaults.post_caption))
)

# --- Built-in schemas ---

WEEKLY_THEMES = RecordSchema(
    name="weekly_themes",
    fields=(
        ObjectListField(
            "weeklyThemes",
            ObjectSchema(
                (
                    IntegerField("week"),
                    TextField("theme", defaults.weekly_theme),
                    TextField("objective", defaults.customer_action),
                    TextField("targetSegment", defaults.target_segment),
                    TextField("phase", defaults.phase),
                )
            ),
            cardinality=Cardinality.exactly(THEMES_PER_PLAN),
            order_by=("week",),
        ),
    ),
    description="Three weekly themes for a content plan, one per funnel phase",
)

WEEK_POSTS = RecordSchema(
    name="week_posts",
    fields=(
        ObjectListField(
            "posts",
            WEEK_POST,
            cardinality=Cardinality.exactly(POSTS_PER_WEEK),
        ),
    ),
    description="Three social media posts for one week of a content plan",
)

CAMPAIGN_OUTLINE = RecordSchema(
    name="campaign_outline",
    fields=(
        ObjectListField(
            "campaigns",
            ObjectSchema(
                (
                    IntegerField("week"),
                    TextField("theme", defaults.weekly_theme),
                    ObjectListField(
                        "posts",
                        OUTLINE_POST,
                        cardinality=Cardinality.exactly(POSTS_PER_WEEK),
                    ),
                )
            ),
            cardinality=Cardinality.exactly(THEMES_PER_PLAN),
            order_by=("week",),
        ),
    ),
    description="A three-week campaign outline with three posts per week",
)

SINGLE_POST = RecordSchema(
    name="single_post",
    fields=(
        ObjectField(
            "post",
            ObjectSchema(
                (
                    TextField("title", defaults.post_title),
                    TextField("type", defaults.post_type),
                    TextField("channel", defaults.post_channel),
                    TextField("topic", defaults.post_topic_plain),
                    TextField("audience", defaults.post_audience),
                    TextField("content", defaults.post_caption),
                    TextField("cta", defaults.post_cta),
                    TextField("principle", defaults.principle),
                    TextField("principleExplanation", defaults.principle_explanation),
                    TextField("visual", defaults.post_visual),
                    TextListField(
                        "hashtags",
                        defaults.hashtag,
                        cardinality=Cardinality.at_least(1),
                    ),
                )
            ),
        ),
    ),
    description="One fully specified post for a calendar slot",
)

DAILY_ENGAGEMENT = RecordSchema(
    name="daily_engagement",
    fields=(
        ObjectListField(
            "dailyEngagement",
            ObjectSchema(
                (
                    IntegerField("day", defaults.engagement_day),
                    IntegerField("week", defaults.engagement_week),
                    TextField("contentType", defaults.engagement_content_type),
                    TextField("description", defaults.engagement_description),
                    TextField("caption", defaults.engagement_caption),
                    TextField("targetAudience", defaults.engagement_audience),
                )
            ),
            cardinality=Cardinality.exactly(ENGAGEMENT_DAYS),
            order_by=("week", "day"),
        ),
    ),
    description="Three weeks of daily engagement post ideas",
)

SUGGESTIONS = RecordSchema(
    name="suggestions",
    fields=(
        TextListField(
            "suggestions",
            defaults.suggestion,
            cardinality=Cardinality.exactly(SUGGESTION_COUNT),
        ),
    ),
    bare_array_field="suggestions",
    description="Three short answer suggestions, requested as a bare JSON array",
)

BUILTIN_SCHEMAS = (
    WEEKLY_THEMES,
    WEEK_POSTS,
    CAMPAIGN_OUTLINE,
    SINGLE_POST,
    DAILY_ENGAGEMENT,
    SUGGESTIONS,
)

# --- Registry ---

_REGISTRY: dict[str, RecordSchema] = {schema.name: schema for schema in BUILTIN_SCHEMAS}


def register_schema(schema: RecordSchema, *, replace: bool = False) -> RecordSchema:
    """Make ``schema`` available by name.

    Raises:
        SchemaDefinitionError: If the name is taken and ``replace`` is False.
    """
    if not isinstance(schema, RecordSchema):
        raise SchemaDefinitionError(
            f"Expected a RecordSchema, got {type(schema).__name__}"
        )
    if schema.name in _REGISTRY and not replace:
        raise SchemaDefinitionError(
            f"Schema '{schema.name}' is already registered; pass replace=True to override"
        )
    _REGISTRY[schema.name] = schema
    log.debug("Registered schema '%s'", schema.name)
    return schema


def unregister_schema(name: str) -> None:
    """Remove a registered schema. Unknown names are ignored."""
    _REGISTRY.pop(name, None)


def get_schema(name: str) -> RecordSchema:
    """Look up a schema by name.

    Raises:
        SchemaDefinitionError: If no schema with that name is registered.
    """
    try:
        return _REGISTRY[name]
    except KeyError:
        raise SchemaDefinitionError(
            f"Unknown schema '{name}'. Available: {', '.join(available_schemas())}"
        ) from None


def available_schemas() -> tuple[str, ...]:
    return tuple(sorted(_REGISTRY))


def resolve_schema(schema: RecordSchema | str) -> RecordSchema:
    """Accept either a schema or the name of a registered one."""
    if isinstance(schema, RecordSchema):
        return schema
    if isinstance(schema, str):
        return get_schema(schema)
    raise TypeError(f"schema must be a RecordSchema or str, got {type(schema).__name__}")

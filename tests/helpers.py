import json
from typing import Any

PHASES = ("Awareness", "Consideration", "Conversion")


def theme(week: int, /, **overrides: Any) -> dict[str, Any]:
    """A complete weekly theme item."""
    item = {
        "week": week,
        "theme": f"Theme {week}",
        "objective": f"Objective {week}",
        "targetSegment": f"Segment {week}",
        "phase": PHASES[(week - 1) % 3],
    }
    item.update(overrides)
    return item


def themes_json(count: int = 3) -> str:
    """A fully valid weekly_themes response with ``count`` themes."""
    return json.dumps({"weeklyThemes": [theme(i + 1) for i in range(count)]})


def post(index: int, **overrides: Any) -> dict[str, Any]:
    """A complete week_posts item."""
    item = {
        "type": "Video",
        "topic": f"Topic {index}",
        "audience": "Busy professionals",
        "cta": "Book a free class",
        "principle": "Scarcity",
        "principleExplanation": "Limited spots drive action.",
        "visual": "Coach demo",
        "proposedCaption": f"Caption {index}",
    }
    item.update(overrides)
    return item


def posts_json(count: int = 3) -> str:
    return json.dumps({"posts": [post(i + 1) for i in range(count)]})

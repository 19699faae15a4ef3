#!/usr/bin/env python3
"""
Recovering structured records from messy model output

Runs a handful of realistic responses through ``recover`` and shows the
record and the provenance each one ends up with. No model is called.
"""

import json
import logging

from content_recovery import StrategyContext, recover

RESPONSES = [
    (
        "weekly_themes",
        '```json\n{"weeklyThemes":[{"week":1,"theme":"Strength basics"},'
        '{"week":2,"theme":"Nutrition",},]}\n```',
    ),
    (
        "single_post",
        "Sure! Here's your post:\n"
        '{"post": {"title": "Deadlift 101", "type": "Reel", "hashtags": ["#Deadlift"]}}\n'
        "Hope that helps.",
    ),
    (
        "suggestions",
        "Here are a few ideas:\n1. Lead with client results\n2. Offer a free trial week",
    ),
    ("week_posts", "I'm sorry, I can't help with that."),
]


def main():
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    strategy = StrategyContext.model_validate(
        {
            "businessDescription": "Neighborhood strength gym",
            "targetAudience": "Busy professionals\nBeginners",
            "keyMessages": ["Join our small group classes", "Eat well without dieting"],
            "weekTheme": "Strength basics",
        }
    )

    for schema_name, text in RESPONSES:
        record = recover(text, schema_name, strategy)
        print(f"=== {schema_name}: {record.provenance.value} ===")
        print(json.dumps(record.value, indent=2, ensure_ascii=False))
        if record.defaulted_fields:
            print("Defaulted:", ", ".join(record.defaulted_fields))
        print()


if __name__ == "__main__":
    main()

"""
Deterministic default generators

Every generator takes ``(context, index)`` and returns a plausible value for
one field. Values depend only on the context and the position of the item,
never on randomness, so the same gap is always filled the same way.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from content_recovery.schemas.context import StrategyContext

PHASES = ("Awareness", "Consideration", "Conversion")

CUSTOMER_ACTIONS = (
    "a free consultation to discuss fitness goals",
    "our beginner-friendly fitness class",
    "the 7-day meal plan",
    "workout routines with a friend",
    "our fitness challenge",
    "a personal training session",
    "our workout guide PDF",
    "implementing one new healthy habit",
    "our fitness app",
    "a friend who would enjoy our content",
    "with your own fitness journey story",
    "this post for future reference",
    "us for daily motivation",
    "your fitness questions in the comments",
)

# First matching keyword group wins.
_MESSAGE_ACTIONS = (
    (("class", "session"), "a fitness class to experience our approach firsthand"),
    (("meal", "nutrition", "diet"), "our customized meal planning service"),
    (("consult", "advice"), "a free consultation with our fitness experts"),
    (("plan", "program"), "our structured fitness program"),
    (("community", "group"), "our fitness community and attend a group session"),
    (("transform", "change"), "our transformation challenge and track your progress"),
    (("guide", "resource"), "our fitness resource guide and implement one tip"),
)

POST_TYPES = ("Carousel", "Video", "Image")
POST_TOPIC_SUFFIXES = ("introduction", "demonstration", "success story")
POST_AUDIENCES = ("Fitness enthusiasts", "Active adults", "Beginners")
POST_CTAS = (
    "Save this post for reference",
    "Try this in your next workout",
    "Comment with your questions",
)
PRINCIPLES = ("Authority", "Social Proof", "Reciprocity")
PRINCIPLE_EXPLANATIONS = (
    "Expert information establishes credibility.",
    "Showing others succeeding motivates viewers.",
    "Sharing valuable information creates goodwill.",
)
POST_VISUALS = ("Infographic carousel", "Demonstration video", "Before/after comparison")
POST_CAPTIONS = (
    "Learn more about {theme} in this helpful guide. "
    "Save this post to reference later! #Fitness #HealthTips",
    "Watch how to properly execute this {theme} technique. "
    "Let me know if you try it in your next workout! #FitnessTips #WorkoutWednesday",
    "Real results from our {theme} approach. Have questions? "
    "Drop them in the comments below and I'll answer! #FitnessJourney #Results",
)

DEFAULT_HASHTAGS = ("#Fitness", "#HealthyLiving", "#Workout")

ENGAGEMENT_CONTENT_TYPES = ("Image", "Video", "Story", "Carousel", "Poll")
ENGAGEMENT_CAPTION = (
    "Boost your fitness journey with this simple tip! #fitness #health #wellness"
)
DAYS_PER_WEEK = 7

SUGGESTIONS = (
    "Option 1: Consider your unique strengths and positioning in the market.",
    "Option 2: Think about what specific problems you solve for your clients.",
    "Option 3: Focus on what differentiates you from competitors.",
)

THEME_PREVIEW_CHARS = 30


def cycle(values: Sequence[str], index: int, fallback: str) -> str:
    """``values[index]`` wrapping around, or ``fallback`` for an empty sequence."""
    if not values:
        return fallback
    return values[index % len(values)]


def action_from_message(message: str | None, fallback: str) -> str:
    """Map a key message to a concrete customer action by keyword."""
    if not message:
        return fallback
    lowered = message.lower()
    for keywords, action in _MESSAGE_ACTIONS:
        if any(keyword in lowered for keyword in keywords):
            return action
    return fallback


# --- Weekly themes ---


def phase(context: StrategyContext, index: int) -> str:
    return PHASES[index % len(PHASES)]


def customer_action(context: StrategyContext, index: int) -> str:
    fallback = CUSTOMER_ACTIONS[index % len(CUSTOMER_ACTIONS)]
    if context.key_messages:
        return action_from_message(cycle(context.key_messages, index, ""), fallback)
    return fallback


def weekly_theme(context: StrategyContext, index: int) -> str:
    """Theme built from the matching key message, when there is one."""
    if index < len(context.key_messages):
        message = context.key_messages[index]
        if len(message) > THEME_PREVIEW_CHARS:
            message = message[:THEME_PREVIEW_CHARS].rstrip() + "..."
        return f"Week {index + 1}: {message}"
    return f"Theme for Week {index + 1}"


def target_segment(context: StrategyContext, index: int) -> str:
    return (
        context.segment_at(index)
        or context.audience_at(index)
        or POST_AUDIENCES[index % len(POST_AUDIENCES)]
    )


# --- Posts ---


def post_type(context: StrategyContext, index: int) -> str:
    return POST_TYPES[index % len(POST_TYPES)]


def post_topic(context: StrategyContext, index: int) -> str:
    return f"{context.theme} {POST_TOPIC_SUFFIXES[index % len(POST_TOPIC_SUFFIXES)]}"


def post_audience(context: StrategyContext, index: int) -> str:
    return context.audience_at(index) or POST_AUDIENCES[index % len(POST_AUDIENCES)]


def post_cta(context: StrategyContext, index: int) -> str:
    return POST_CTAS[index % len(POST_CTAS)]


def principle(context: StrategyContext, index: int) -> str:
    return PRINCIPLES[index % len(PRINCIPLES)]


def principle_explanation(context: StrategyContext, index: int) -> str:
    return PRINCIPLE_EXPLANATIONS[index % len(PRINCIPLE_EXPLANATIONS)]


def post_visual(context: StrategyContext, index: int) -> str:
    return POST_VISUALS[index % len(POST_VISUALS)]


def post_caption(context: StrategyContext, index: int) -> str:
    return POST_CAPTIONS[index % len(POST_CAPTIONS)].format(theme=context.theme)


# --- Single post ---


def post_title(context: StrategyContext, index: int) -> str:
    return f"{context.theme} Post"


def post_channel(context: StrategyContext, index: int) -> str:
    return context.channel or "Instagram"


def post_topic_plain(context: StrategyContext, index: int) -> str:
    return context.theme


def hashtag(context: StrategyContext, index: int) -> str:
    return DEFAULT_HASHTAGS[index % len(DEFAULT_HASHTAGS)]


# --- Daily engagement ---


def engagement_day(context: StrategyContext, index: int) -> int:
    return index % DAYS_PER_WEEK + 1


def engagement_week(context: StrategyContext, index: int) -> int:
    return index // DAYS_PER_WEEK + 1


def engagement_content_type(context: StrategyContext, index: int) -> str:
    return ENGAGEMENT_CONTENT_TYPES[index % len(ENGAGEMENT_CONTENT_TYPES)]


def engagement_description(context: StrategyContext, index: int) -> str:
    return (
        f"Day {engagement_day(context, index)} fitness tip related to "
        f"{context.business_type}"
    )


def engagement_caption(context: StrategyContext, index: int) -> str:
    return ENGAGEMENT_CAPTION


def engagement_audience(context: StrategyContext, index: int) -> str:
    return cycle(context.target_audience, index, POST_AUDIENCES[0])


# --- Suggestions ---


def suggestion(context: StrategyContext, index: int) -> str:
    return SUGGESTIONS[index % len(SUGGESTIONS)]

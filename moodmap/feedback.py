"""
Reply renderers for the four feedback styles.

Each renderer turns the conversation state (and, for emoji, the raw reading
of the current message) into reply text or a chart image URL.
"""

import math

from .models import (
    EMOTIONS,
    FEEDBACK_TYPES,
    ConversationState,
    EmotionScores,
    UserMood,
)
from .projector import render_series

EMOJI = {
    "joy": "\U0001F60A",
    "anger": "\U0001F620",
    "sadness": "\U0001F622",
    "fear": "\U0001F628",
    "disgust": "\U0001F612",
}

ADJECTIVES = {
    "joy": "joyful",
    "anger": "angry",
    "sadness": "sad",
    "fear": "afraid",
    "disgust": "disgusted",
}


def parse_feedback_command(text: str) -> str | None:
    """Return the feedback type named by a command message, if any."""
    word = text.strip().lower().removeprefix("/")
    return word if word in FEEDBACK_TYPES else None


# MARK: - Emoji


def render_emoji(reading: EmotionScores, threshold: float = 0.5) -> str:
    lines = []
    for emotion in EMOTIONS:
        score = reading.get(emotion, 0.0)
        if score >= threshold:
            lines.append(
                f"You feel '{emotion.capitalize()}' with a score of: {score:.2f} "
                f"{EMOJI[emotion]}"
            )
    if not lines:
        return "No tone detected."
    return "\n".join(lines)


# MARK: - Charts


def line_chart_url(
    state: ConversationState, base_url: str, size: str = "600x300"
) -> str:
    """Line chart of the conversation history, one series per emotion."""
    series = []
    for emotion in EMOTIONS:
        points = [str(round(entry.get(emotion, 0.0) * 100)) for entry in state.history]
        series.append(",".join(points))
    legend = "|".join(emotion.capitalize() for emotion in EMOTIONS)
    return (
        f"{base_url}?cht=lc&chs={size}&chxt=y&chds=0,100"
        f"&chd=t:{'|'.join(series)}&chdl={legend}"
    )


def scatter_chart_url(
    state: ConversationState, base_url: str, size: str = "600x300"
) -> str:
    """Scatter plot of every participant's current mood point."""
    return (
        f"{base_url}?cht=s&chs={size}&chxt=x,y&chds=0,100,0,100"
        f"&{render_series(state.mood_space)}"
    )


# MARK: - Empathy


def _intensity_word(score: float) -> str:
    if score >= 0.75:
        return "very"
    if score >= 0.5:
        return "quite"
    if score >= 0.25:
        return "a little"
    return "barely"


def nearest_user(state: ConversationState, user: UserMood) -> UserMood | None:
    """The other participant whose mood point is closest to this user's."""
    closest = None
    best = math.inf
    for other in state.mood_space.users:
        if other.user_id == user.user_id or other.messages == 0:
            continue
        distance = math.hypot(other.x - user.x, other.y - user.y)
        if distance < best:
            closest, best = other, distance
    return closest


def render_empathy(state: ConversationState, user: UserMood) -> str:
    name = user.name or user.user_id
    dominant = max(EMOTIONS, key=lambda emotion: user.emotions.get(emotion, 0.0))
    score = user.emotions.get(dominant, 0.0)

    if score <= 0.0:
        text = f"{name}, I can't quite read how you feel yet."
    else:
        text = (
            f"{name}, you seem {_intensity_word(score)} {ADJECTIVES[dominant]} "
            f"right now ({score:.2f})."
        )
    text += f" Your mood point is at ({user.x}, {user.y})."

    other = nearest_user(state, user)
    if other is not None:
        text += f" {other.name or other.user_id} feels closest to you."
    return text


def chart_url(state: ConversationState, kind: str, base_url: str, size: str) -> str:
    if kind == "line":
        return line_chart_url(state, base_url, size)
    if kind == "scatter":
        return scatter_chart_url(state, base_url, size)
    raise ValueError(f"Unknown chart kind: {kind}")


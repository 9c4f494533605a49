"""
Mood projection.

Turns emotion readings into smoothed per-user channels and a 2D mood point,
and encodes a whole mood space as a chart data fragment. Every function here
is pure: callers own persistence of the returned values.
"""

import math
from urllib.parse import quote

from pydantic import BaseModel, Field

from .models import EMOTIONS, EmotionScores, MoodSpace, UserMood


class ProjectorConfig(BaseModel):
    """Tuned constants of the projection. All of them are overridable."""

    prior_weight: float = Field(0.6, description="Weight of the previous value")
    reading_weight: float = Field(0.4, description="Weight of the new reading")
    x_weights: dict[str, float] = Field(
        default_factory=lambda: {
            "joy": 0.5,
            "anger": -0.6,
            "sadness": -0.8,
            "fear": -0.6,
            "disgust": -0.8,
        }
    )
    y_weights: dict[str, float] = Field(
        default_factory=lambda: {
            "joy": 0.9,
            "anger": 0.8,
            "sadness": -0.6,
            "fear": 0.6,
            "disgust": -0.5,
        }
    )
    gain: float = 50.0
    offset: float = 50.0
    lower: int = 0
    upper: int = 100


DEFAULT_CONFIG = ProjectorConfig()


def clamp_unit(value: float | None) -> float:
    """Clamp a score into [0, 1]; missing and NaN scores count as 0."""
    if value is None or math.isnan(value):
        return 0.0
    return max(0.0, min(1.0, float(value)))


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def update_emotion(
    prior: EmotionScores,
    reading: EmotionScores,
    first: bool = False,
    config: ProjectorConfig = DEFAULT_CONFIG,
) -> EmotionScores:
    """
    Blend a new reading into the prior smoothed channels.

    On the first observation the reading is taken as is, so a new user does
    not start biased towards neutral.

    Args:
        prior: Previous smoothed value per channel
        reading: New scores for this message; missing channels count as 0
        first: Whether this is the user's first scored message
        config: Smoothing weights

    Returns:
        A new mapping with one value in [0, 1] per emotion channel
    """
    smoothed: EmotionScores = {}
    for emotion in EMOTIONS:
        new = clamp_unit(reading.get(emotion))
        if first:
            smoothed[emotion] = new
            continue
        old = clamp_unit(prior.get(emotion))
        value = config.prior_weight * old + config.reading_weight * new
        smoothed[emotion] = clamp_unit(value)
    return smoothed


def project(
    channels: EmotionScores, config: ProjectorConfig = DEFAULT_CONFIG
) -> tuple[int, int]:
    """
    Map smoothed channels to an (x, y) point clamped to the display bounds.

    A neutral reading (all zeros) lands in the middle of the space.
    """
    values = {emotion: clamp_unit(channels.get(emotion)) for emotion in EMOTIONS}
    norm = max(sum(abs(v) for v in values.values()), 1.0)

    sum_x = sum(config.x_weights.get(e, 0.0) * v for e, v in values.items())
    sum_y = sum(config.y_weights.get(e, 0.0) * v for e, v in values.items())

    def to_axis(total: float) -> int:
        point = config.offset + _round_half_away(config.gain * total / norm)
        return int(max(config.lower, min(config.upper, point)))

    return to_axis(sum_x), to_axis(sum_y)


def observe(
    user: UserMood, reading: EmotionScores, config: ProjectorConfig = DEFAULT_CONFIG
) -> UserMood:
    """Return a copy of the user with the reading applied."""
    emotions = update_emotion(
        user.emotions, reading, first=user.messages == 0, config=config
    )
    x, y = project(emotions, config)
    return user.model_copy(
        update={"emotions": emotions, "x": x, "y": y, "messages": user.messages + 1}
    )


def series_lists(mood_space: MoodSpace) -> tuple[list[int], list[int], list[str]]:
    """Split a mood space into x values, y values and names, in order."""
    xs = [user.x for user in mood_space.users]
    ys = [user.y for user in mood_space.users]
    names = [user.name or user.user_id for user in mood_space.users]
    return xs, ys, names


def render_series(mood_space: MoodSpace) -> str:
    """
    Encode every user's position for a chart-rendering endpoint.

    The format is ``chd=t:<xs>|<ys>&chl=<names>``: x values, then y values,
    each comma separated, then the percent-encoded names separated by ``|``.

    Example:
        Users (50, 50) "A" and (75, 95) "B" give ``chd=t:50,75|50,95&chl=A|B``.
    """
    xs, ys, names = series_lists(mood_space)
    data = ",".join(str(x) for x in xs) + "|" + ",".join(str(y) for y in ys)
    # An empty space leaves a lone axis separator; labels keep every entry
    data = data.removesuffix("|")
    labels = "|".join(quote(name, safe="") for name in names)
    return f"chd=t:{data}&chl={labels}"

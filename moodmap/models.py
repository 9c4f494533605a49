"""
Shared data models for the moodmap service.

This module defines the core domain models used across multiple layers
of the application (projector, bot, store, API, CLI).
"""

from typing import Literal, get_args

from pydantic import BaseModel, Field

EMOTIONS: tuple[str, ...] = ("joy", "anger", "sadness", "fear", "disgust")

FeedbackType = Literal["emoji", "chart", "scatter", "empathy"]
FEEDBACK_TYPES: tuple[str, ...] = get_args(FeedbackType)

# Emotion name -> intensity in [0, 1]
EmotionScores = dict[str, float]


def neutral_emotions() -> EmotionScores:
    return {emotion: 0.0 for emotion in EMOTIONS}


class UserMood(BaseModel):
    """A single participant's position in the mood space."""

    user_id: str = Field(..., description="Opaque user identifier")
    name: str = Field("", description="Display name")
    x: int = Field(50, description="Horizontal mood coordinate in [0, 100]")
    y: int = Field(50, description="Vertical mood coordinate in [0, 100]")
    emotions: EmotionScores = Field(
        default_factory=neutral_emotions,
        description="Smoothed intensity per emotion channel",
    )
    messages: int = Field(0, description="Number of scored messages")


class MoodSpace(BaseModel):
    """
    All participants of a conversation in order of first appearance.

    Identifiers are unique; entries are never removed.
    """

    users: list[UserMood] = Field(default_factory=list)

    def get(self, user_id: str) -> UserMood | None:
        for user in self.users:
            if user.user_id == user_id:
                return user
        return None

    def get_or_create(self, user_id: str, name: str = "") -> UserMood:
        """Return the user with this identifier, appending a neutral one if new."""
        user = self.get(user_id)
        if user is None:
            user = UserMood(user_id=user_id, name=name or user_id)
            self.users.append(user)
        return user

    def put(self, user: UserMood) -> None:
        """Replace the entry with the same identifier, or append it."""
        for index, existing in enumerate(self.users):
            if existing.user_id == user.user_id:
                self.users[index] = user
                return
        self.users.append(user)


class ConversationState(BaseModel):
    """Everything remembered about one conversation."""

    turn_count: int = Field(0, description="Number of scored turns")
    feedback_type: FeedbackType = Field("emoji", description="Reply style")
    mood_space: MoodSpace = Field(default_factory=MoodSpace)
    history: list[EmotionScores] = Field(
        default_factory=list,
        description="Recent smoothed readings, oldest first",
    )

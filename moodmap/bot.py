"""
Chat turn handling for the moodmap bot.
"""

import logging

from pydantic import BaseModel, Field

from .config import Settings
from .errors import ToneServiceError
from .feedback import (
    line_chart_url,
    parse_feedback_command,
    render_emoji,
    render_empathy,
    scatter_chart_url,
)
from .models import ConversationState, EmotionScores, UserMood
from .projector import observe
from .store import ConversationStore
from .tone import EmotionSource

logger = logging.getLogger(__name__)

TONE_UNAVAILABLE = "Sorry, I couldn't read the tone of that message. Please try again."


class Reply(BaseModel):
    """What the bot sends back for one incoming message."""

    text: str = Field("", description="Reply text")
    image_url: str | None = Field(None, description="Chart image to attach")
    mood: UserMood | None = Field(None, description="The sender's updated mood")


class MoodBot:
    """Scores each message, updates the sender's mood and renders feedback."""

    def __init__(
        self,
        store: ConversationStore,
        emotion_source: EmotionSource,
        settings: Settings,
    ) -> None:
        self.store = store
        self.emotion_source = emotion_source
        self.settings = settings

    async def handle_message(
        self, conversation_id: str, user_id: str, name: str, text: str
    ) -> Reply:
        """
        Process one chat message.

        Feedback commands ("emoji", "chart", "scatter", "empathy") switch the
        conversation's reply style. Any other text is scored and folded into
        the sender's mood. If the tone API fails the state is left untouched.
        """
        feedback = parse_feedback_command(text)
        if feedback is not None:
            async with self.store.session(conversation_id) as state:
                state.feedback_type = feedback
            logger.info("Conversation %s switched to %s", conversation_id, feedback)
            return Reply(text=f"Feedback set to {feedback}.")

        try:
            reading = await self.emotion_source.fetch_emotion(text)
        except ToneServiceError as e:
            logger.warning("Could not score message in %s: %s", conversation_id, e)
            return Reply(text=TONE_UNAVAILABLE)

        async with self.store.session(conversation_id) as state:
            user = self.apply_reading(state, user_id, name, reading)
            reply = self.render(state, user, reading)

        logger.debug(
            "Turn %d in %s: %s at (%d, %d)",
            state.turn_count,
            conversation_id,
            user.user_id,
            user.x,
            user.y,
        )
        return reply

    def apply_reading(
        self, state: ConversationState, user_id: str, name: str, reading: EmotionScores
    ) -> UserMood:
        """Fold a reading into the conversation state and return the new user."""
        state.turn_count += 1
        current = state.mood_space.get_or_create(user_id, name)
        if name and current.name != name:
            current = current.model_copy(update={"name": name})

        user = observe(current, reading, self.settings.projector)
        state.mood_space.put(user)

        state.history.append(dict(user.emotions))
        del state.history[: -self.settings.history_limit]
        return user

    def render(
        self, state: ConversationState, user: UserMood, reading: EmotionScores
    ) -> Reply:
        base_url = self.settings.chart_base_url
        size = self.settings.chart_size

        if state.feedback_type == "chart":
            return Reply(
                text="Here is how the conversation feels so far.",
                image_url=line_chart_url(state, base_url, size),
                mood=user,
            )
        if state.feedback_type == "scatter":
            return Reply(
                text="Here is where everyone stands.",
                image_url=scatter_chart_url(state, base_url, size),
                mood=user,
            )
        if state.feedback_type == "empathy":
            return Reply(text=render_empathy(state, user), mood=user)
        return Reply(
            text=render_emoji(reading, self.settings.tone_threshold), mood=user
        )

"""
FastAPI server for the moodmap service.

This module implements the HTTP API for chat turns, conversation state and
chart URLs, plus Server-Sent Events streaming of conversation updates.
"""

import asyncio
import json
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Literal

from fastapi import FastAPI, HTTPException
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from .bot import MoodBot, Reply
from .config import Settings, get_settings
from .feedback import chart_url
from .log import configure_logging
from .models import ConversationState, FeedbackType
from .store import ConversationStore
from .tone import EmotionSource, ToneAnalyzerClient

logger = logging.getLogger(__name__)


# API Request/Response Schemas
class MessageIn(BaseModel):
    """Payload for an incoming chat message."""

    user_id: str = Field(..., description="Identifier of the sender")
    name: str = Field("", description="Display name of the sender")
    text: str = Field(..., description="Message text")


class FeedbackUpdate(BaseModel):
    """Payload for feedback style updates."""

    feedback: FeedbackType = Field(..., description="The new reply style")


class ChartResponse(BaseModel):
    """Response model for chart endpoints."""

    url: str = Field(..., description="Chart image URL")


def create_app(
    store: ConversationStore,
    emotion_source: EmotionSource | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """
    Create a FastAPI application with the given conversation store.

    Args:
        store: The ConversationStore instance to use for the application
        emotion_source: Scores messages; defaults to the configured tone API
        settings: Runtime settings; defaults to the environment

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    if emotion_source is None:
        emotion_source = ToneAnalyzerClient.from_settings(settings)
    bot = MoodBot(store, emotion_source, settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Lifespan context manager for FastAPI application."""
        configure_logging(settings.log_level)
        logger.info("moodmap started")
        yield

    app = FastAPI(
        title="moodmap",
        description="A chatbot that maps conversation moods",
        version="0.1.0",
        lifespan=lifespan,
    )

    @app.get("/")
    async def root() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "moodmap"}

    @app.post("/conversations/{conversation_id}/messages")
    async def post_message(conversation_id: str, message: MessageIn) -> Reply:
        """
        Handle one chat message and return the bot's reply.

        Args:
            conversation_id: The conversation the message belongs to
            message: The incoming message

        Returns:
            The reply, with the sender's updated mood when it was scored
        """
        try:
            return await bot.handle_message(
                conversation_id, message.user_id, message.name, message.text
            )
        except Exception as e:
            logger.exception("Failed to handle message in %s", conversation_id)
            raise HTTPException(
                status_code=500, detail=f"Failed to handle message: {str(e)}"
            )

    @app.get("/conversations/{conversation_id}")
    async def get_conversation(conversation_id: str) -> ConversationState:
        """Get the current state of a conversation."""
        return await store.load(conversation_id)

    @app.put("/conversations/{conversation_id}/feedback")
    async def update_feedback(
        conversation_id: str, update: FeedbackUpdate
    ) -> ConversationState:
        """Switch the reply style of a conversation."""
        async with store.session(conversation_id) as state:
            state.feedback_type = update.feedback
        return state

    @app.get("/conversations/{conversation_id}/chart")
    async def get_chart(
        conversation_id: str, kind: Literal["line", "scatter"] = "scatter"
    ) -> ChartResponse:
        """Build a chart URL for the conversation without sending a message."""
        state = await store.load(conversation_id)
        url = chart_url(state, kind, settings.chart_base_url, settings.chart_size)
        return ChartResponse(url=url)

    @app.get("/conversations/{conversation_id}/stream")
    async def stream_conversation(conversation_id: str) -> StreamingResponse:
        """
        Stream conversation updates via Server-Sent Events.

        The current state is sent immediately upon connection, then every
        saved state after it.

        Returns:
            StreamingResponse with text/event-stream content type
        """

        async def event_generator() -> AsyncGenerator[str, None]:
            """Generate SSE events for conversation updates."""
            try:
                async with store.stream(conversation_id) as state_stream:
                    async for state in state_stream:
                        yield f"data: {state.model_dump_json()}\n\n"
            except asyncio.CancelledError:
                # Client disconnected
                pass
            except Exception as e:
                # Send error event and close
                error_data = json.dumps({"error": str(e)})
                yield f"event: error\ndata: {error_data}\n\n"

        return StreamingResponse(
            event_generator(),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "Access-Control-Allow-Origin": "*",
                "Access-Control-Allow-Headers": "*",
            },
        )

    return app


app = create_app(ConversationStore())


def main() -> None:
    """Main entry point for the server."""
    import uvicorn

    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run(
        "moodmap.server:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()

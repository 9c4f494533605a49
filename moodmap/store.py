"""
Conversation storage for the moodmap service.

This module provides an in-memory store of per-conversation state. Each
conversation is updated by at most one turn at a time, and every saved state
is streamed to subscribers. The design allows for easy replacement with
persistent storage backends like Redis in the future.
"""

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from .models import ConversationState

logger = logging.getLogger(__name__)


class ConversationStore:
    """
    In-memory conversation storage with real-time streaming capabilities.

    Callers always receive copies, so state only changes through ``save`` or
    a ``session``. Sessions hold a per-conversation lock, which keeps
    concurrent turns of the same conversation from losing each other's
    updates.
    """

    def __init__(self) -> None:
        self._conversations: dict[str, ConversationState] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}  # Sessions holding or awaiting a lock
        self._condition = asyncio.Condition()
        self._versions: dict[str, int] = {}  # Per-conversation update counter

    async def load(self, conversation_id: str) -> ConversationState:
        """
        Get a copy of a conversation's state.

        Args:
            conversation_id: The conversation to read

        Returns:
            The stored state, or a fresh one for an unknown conversation
        """
        async with self._condition:
            return self._snapshot(conversation_id)

    async def save(self, conversation_id: str, state: ConversationState) -> None:
        """
        Store a conversation's state and notify all subscribers.

        Args:
            conversation_id: The conversation to write
            state: The new state; a copy is stored
        """
        async with self._condition:
            self._conversations[conversation_id] = state.model_copy(deep=True)
            self._versions[conversation_id] = self._versions.get(conversation_id, 0) + 1

            # Notify all waiting subscribers
            self._condition.notify_all()

    @asynccontextmanager
    async def session(
        self, conversation_id: str
    ) -> AsyncGenerator[ConversationState, None]:
        """
        Read-modify-write a conversation under its lock.

        The yielded state is a working copy that is saved when the block exits
        without an exception and discarded otherwise. The lock is dropped once
        no session holds or awaits it.
        """
        lock = self._locks.setdefault(conversation_id, asyncio.Lock())
        self._lock_users[conversation_id] = self._lock_users.get(conversation_id, 0) + 1
        try:
            async with lock:
                state = await self.load(conversation_id)
                yield state
                await self.save(conversation_id, state)
                logger.debug("Saved conversation %s", conversation_id)
        finally:
            self._lock_users[conversation_id] -= 1
            if not self._lock_users[conversation_id]:
                del self._lock_users[conversation_id]
                del self._locks[conversation_id]

    @asynccontextmanager
    async def stream(
        self, conversation_id: str
    ) -> AsyncGenerator[AsyncGenerator[ConversationState, None], None]:
        """
        Stream a conversation's state to a subscriber.

        This context manager yields an async generator that produces the
        current state and then every state saved afterwards.

        Yields:
            An async generator of ConversationState objects
        """

        async def state_generator() -> AsyncGenerator[ConversationState, None]:
            # Get initial state and counter; never yield with the lock held
            async with self._condition:
                last_seen = self._versions.get(conversation_id, 0)
                state = self._snapshot(conversation_id)
            yield state

            # Wait for updates
            try:
                while True:
                    async with self._condition:
                        await self._condition.wait_for(
                            lambda: self._versions.get(conversation_id, 0) > last_seen
                        )

                        last_seen = self._versions[conversation_id]
                        state = self._snapshot(conversation_id)
                    yield state

            except (asyncio.CancelledError, GeneratorExit):
                # Client disconnected or generator closed, clean exit
                return

        yield state_generator()

    def _snapshot(self, conversation_id: str) -> ConversationState:
        state = self._conversations.get(conversation_id)
        if state is None:
            return ConversationState()
        return state.model_copy(deep=True)

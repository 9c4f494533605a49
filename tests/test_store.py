"""
Tests for the ConversationStore implementation.

These tests verify the core functionality of the conversation storage,
including copies on read/write, serialized sessions and streaming.
"""

import asyncio

import pytest

from moodmap.models import ConversationState
from moodmap.store import ConversationStore


class TestConversationStore:
    """Test suite for ConversationStore functionality."""

    def setup_method(self):
        """Set up a fresh ConversationStore for each test."""
        self.store = ConversationStore()

    async def test_initial_state(self):
        """Test that an unknown conversation starts empty."""
        state = await self.store.load("room")
        assert state.turn_count == 0
        assert state.feedback_type == "emoji"
        assert state.mood_space.users == []
        assert state.history == []

    async def test_save_and_load_are_copies(self):
        state = ConversationState(turn_count=3)
        state.mood_space.get_or_create("u1", "Ana")
        await self.store.save("room", state)

        # Mutating the caller's object does not leak into the store
        state.turn_count = 99
        loaded = await self.store.load("room")
        assert loaded.turn_count == 3

        # Neither does mutating a loaded copy
        loaded.mood_space.get_or_create("u2")
        again = await self.store.load("room")
        assert [user.user_id for user in again.mood_space.users] == ["u1"]

    async def test_conversations_are_independent(self):
        await self.store.save("a", ConversationState(turn_count=1))
        assert (await self.store.load("b")).turn_count == 0

    async def test_session_saves_on_exit(self):
        async with self.store.session("room") as state:
            state.turn_count += 1
            state.feedback_type = "scatter"

        loaded = await self.store.load("room")
        assert loaded.turn_count == 1
        assert loaded.feedback_type == "scatter"

    async def test_session_discards_on_error(self):
        with pytest.raises(RuntimeError):
            async with self.store.session("room") as state:
                state.turn_count = 5
                raise RuntimeError("boom")

        assert (await self.store.load("room")).turn_count == 0

    async def test_sessions_are_serialized(self):
        """Concurrent read-modify-write cycles do not lose updates."""

        async def bump() -> None:
            async with self.store.session("room") as state:
                count = state.turn_count
                await asyncio.sleep(0.01)
                state.turn_count = count + 1

        await asyncio.gather(*(bump() for _ in range(5)))
        assert (await self.store.load("room")).turn_count == 5

    async def test_idle_locks_are_released(self):
        async def bump() -> None:
            async with self.store.session("room") as state:
                await asyncio.sleep(0.01)
                state.turn_count += 1

        await asyncio.gather(bump(), bump())
        with pytest.raises(RuntimeError):
            async with self.store.session("other"):
                raise RuntimeError("boom")

        assert self.store._locks == {}
        assert self.store._lock_users == {}
        assert (await self.store.load("room")).turn_count == 2

    async def test_streaming(self):
        """Test that two consumers receive streaming state updates."""
        consumer1_turns = []
        consumer2_turns = []

        async def consume(turns: list[int]) -> None:
            async with self.store.stream("room") as state_stream:
                async for state in state_stream:
                    turns.append(state.turn_count)
                    if len(turns) >= 3:  # initial + 2 updates
                        break

        task1 = asyncio.create_task(consume(consumer1_turns))
        task2 = asyncio.create_task(consume(consumer2_turns))

        # Let them set up
        await asyncio.sleep(0.01)

        await self.store.save("room", ConversationState(turn_count=1))
        await asyncio.sleep(0.01)
        # Updates to other conversations are not streamed
        await self.store.save("elsewhere", ConversationState(turn_count=7))
        await asyncio.sleep(0.01)
        await self.store.save("room", ConversationState(turn_count=2))

        try:
            await asyncio.wait_for(asyncio.gather(task1, task2), timeout=2.0)
        except TimeoutError:
            task1.cancel()
            task2.cancel()
            await asyncio.gather(task1, task2, return_exceptions=True)
            assert False, (
                f"Test timed out. Consumer1 got: {consumer1_turns}, "
                f"Consumer2 got: {consumer2_turns}"
            )

        assert consumer1_turns == [0, 1, 2]
        assert consumer2_turns == [0, 1, 2]

"""
Command-line interface tools for the moodmap service.
"""

import asyncio
import json
from collections.abc import Coroutine
from typing import Any

import httpx
import typer
from httpx_sse import ServerSentEvent, aconnect_sse

from .models import ConversationState, UserMood

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_CONVERSATION = "default"

app = typer.Typer(help="moodmap CLI tools")

URL_OPTION = typer.Option(
    DEFAULT_BASE_URL, "--url", "-u", help="Base URL of the moodmap service"
)
CONVERSATION_OPTION = typer.Option(
    DEFAULT_CONVERSATION, "--conversation", "-c", help="Conversation identifier"
)


# MARK: - Commands


@app.command()
def send(
    text: str = typer.Argument(..., help="The message to send"),
    user_id: str = typer.Option("cli", "--user", help="Sender identifier"),
    name: str = typer.Option("", "--name", "-n", help="Sender display name"),
    conversation: str = CONVERSATION_OPTION,
    base_url: str = URL_OPTION,
) -> None:
    """Send a chat message and print the bot's reply."""

    async def _send() -> None:
        async with httpx.AsyncClient() as client:
            response = await client.post(
                f"{base_url}/conversations/{conversation}/messages",
                json={"user_id": user_id, "name": name, "text": text},
            )
            response.raise_for_status()
            result = response.json()
            print(result["text"])
            if result.get("image_url"):
                print(result["image_url"])

    _run_with_error_handling(_send(), base_url)


@app.command()
def show(
    conversation: str = CONVERSATION_OPTION,
    base_url: str = URL_OPTION,
    json_output: bool = typer.Option(False, "--json", "-j", help="Output raw JSON"),
) -> None:
    """Show every participant's mood in a conversation."""

    async def _show() -> None:
        async with httpx.AsyncClient() as client:
            response = await client.get(f"{base_url}/conversations/{conversation}")
            response.raise_for_status()
            result = response.json()

            if json_output:
                print(json.dumps(result, indent=2))
                return

            state = ConversationState.model_validate(result)
            print(_format_state(state))

    _run_with_error_handling(_show(), base_url)


@app.command()
def feedback(
    style: str = typer.Argument(..., help="emoji, chart, scatter or empathy"),
    conversation: str = CONVERSATION_OPTION,
    base_url: str = URL_OPTION,
) -> None:
    """Switch the reply style of a conversation."""

    async def _feedback() -> None:
        async with httpx.AsyncClient() as client:
            response = await client.put(
                f"{base_url}/conversations/{conversation}/feedback",
                json={"feedback": style},
            )
            response.raise_for_status()
            print(f"Feedback set to: {response.json()['feedback_type']}")

    _run_with_error_handling(_feedback(), base_url)


@app.command()
def chart(
    kind: str = typer.Option("scatter", "--kind", "-k", help="line or scatter"),
    conversation: str = CONVERSATION_OPTION,
    base_url: str = URL_OPTION,
) -> None:
    """Print a chart URL for a conversation."""

    async def _chart() -> None:
        async with httpx.AsyncClient() as client:
            response = await client.get(
                f"{base_url}/conversations/{conversation}/chart", params={"kind": kind}
            )
            response.raise_for_status()
            print(response.json()["url"])

    _run_with_error_handling(_chart(), base_url)


@app.command()
def stream(
    conversation: str = CONVERSATION_OPTION,
    base_url: str = URL_OPTION,
) -> None:
    """Stream conversation updates in real-time."""

    async def _stream() -> None:
        url = f"{base_url}/conversations/{conversation}/stream"
        print(f"Streaming from {url}... (Ctrl+C to stop)")

        async with httpx.AsyncClient(timeout=None) as client:
            async with aconnect_sse(client, "GET", url) as event_source:
                async for sse in event_source.aiter_sse():
                    _handle_sse_event(sse)

    _run_with_error_handling(_stream(), base_url)


# MARK: - Private Helpers


def _format_user(user: UserMood) -> str:
    name = user.name or user.user_id
    return f"{name}: ({user.x}, {user.y}) after {user.messages} messages"


def _format_state(state: ConversationState) -> str:
    """Format a conversation as one line per participant."""
    if not state.mood_space.users:
        return "No moods yet"
    lines = [f"Turn {state.turn_count}, {state.feedback_type} feedback"]
    lines.extend(_format_user(user) for user in state.mood_space.users)
    return "\n".join(lines)


def _handle_sse_event(sse: ServerSentEvent) -> None:
    """Handle a single SSE event."""
    try:
        # Handle error events from server
        if sse.event == "error":
            error_data = json.loads(sse.data)
            print(f"Server error: {error_data.get('error', 'Unknown error')}")
            return

        state = ConversationState.model_validate_json(sse.data)
        print(_format_state(state))

    except json.JSONDecodeError as e:
        print(f"Warning: Could not parse SSE data: {sse.data} - {e}")
    except Exception as e:
        print(f"Warning: Error processing conversation data: {e}")


def _run_with_error_handling(coro: Coroutine[Any, Any, Any], base_url: str) -> None:
    """Run an async coroutine with standardized error handling."""
    try:
        asyncio.run(coro)
    except KeyboardInterrupt:
        print("\nStopped")
        raise typer.Exit(0)
    except httpx.ConnectError:
        print(f"Error: Could not connect to {base_url}")
        raise typer.Exit(1)
    except httpx.HTTPStatusError as e:
        print(f"Error: HTTP {e.response.status_code}")
        raise typer.Exit(1)
    except Exception as e:
        error_msg = str(e) if str(e) else f"Unknown error of type {type(e).__name__}"
        print(f"Error: {error_msg}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()

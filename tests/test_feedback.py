"""
Tests for the feedback renderers.
"""

import pytest

from moodmap.feedback import (
    chart_url,
    line_chart_url,
    nearest_user,
    parse_feedback_command,
    render_emoji,
    render_empathy,
    scatter_chart_url,
)
from moodmap.models import ConversationState, MoodSpace, UserMood

BASE_URL = "http://charts.test/chart"


def make_state() -> ConversationState:
    return ConversationState(
        mood_space=MoodSpace(
            users=[
                UserMood(user_id="a", name="Ana", x=75, y=95, messages=1,
                         emotions={"joy": 0.8, "anger": 0.0, "sadness": 0.1,
                                   "fear": 0.0, "disgust": 0.0}),
                UserMood(user_id="b", name="Bo", x=10, y=20, messages=2),
                UserMood(user_id="c", name="Cy", x=70, y=80, messages=1),
                UserMood(user_id="d", name="Di", x=75, y=94, messages=0),
            ]
        )
    )


class TestFeedbackCommands:
    """Test suite for feedback command parsing."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("emoji", "emoji"),
            ("Scatter", "scatter"),
            (" chart \n", "chart"),
            ("/empathy", "empathy"),
            ("I feel great", None),
            ("charts", None),
            ("", None),
        ],
    )
    def test_parse(self, text, expected):
        assert parse_feedback_command(text) == expected


class TestEmoji:
    """Test suite for emoji feedback."""

    def test_single_tone(self):
        text = render_emoji({"joy": 0.834, "anger": 0.1})
        assert text == "You feel 'Joy' with a score of: 0.83 \U0001F60A"

    def test_several_tones_in_channel_order(self):
        text = render_emoji({"fear": 0.6, "anger": 0.7})
        lines = text.split("\n")
        assert lines[0].startswith("You feel 'Anger'")
        assert lines[1].startswith("You feel 'Fear'")

    def test_nothing_above_threshold(self):
        assert render_emoji({"joy": 0.3}) == "No tone detected."
        assert render_emoji({}) == "No tone detected."

    def test_custom_threshold(self):
        assert "Joy" in render_emoji({"joy": 0.3}, threshold=0.25)


class TestCharts:
    """Test suite for chart URLs."""

    def test_scatter_uses_series_encoding(self):
        url = scatter_chart_url(make_state(), BASE_URL, "400x400")

        assert url.startswith(f"{BASE_URL}?cht=s&chs=400x400")
        assert url.endswith("&chd=t:75,10,70,75|95,20,80,94&chl=Ana|Bo|Cy|Di")

    def test_line_chart_over_history(self):
        state = ConversationState(
            history=[
                {"joy": 1.0, "anger": 0.0, "sadness": 0.0, "fear": 0.0, "disgust": 0.0},
                {"joy": 0.5, "sadness": 0.25},
            ]
        )
        url = line_chart_url(state, BASE_URL)

        assert url.startswith(f"{BASE_URL}?cht=lc&chs=600x300")
        assert "&chd=t:100,50|0,0|0,25|0,0|0,0&" in url
        assert url.endswith("&chdl=Joy|Anger|Sadness|Fear|Disgust")

    def test_chart_url_dispatch(self):
        state = make_state()
        assert chart_url(state, "scatter", BASE_URL, "1x1") == scatter_chart_url(
            state, BASE_URL, "1x1"
        )
        assert chart_url(state, "line", BASE_URL, "1x1") == line_chart_url(
            state, BASE_URL, "1x1"
        )
        with pytest.raises(ValueError):
            chart_url(state, "pie", BASE_URL, "1x1")


class TestEmpathy:
    """Test suite for the empathy narrative."""

    def test_nearest_user_skips_self_and_unscored(self):
        state = make_state()
        ana = state.mood_space.get("a")
        # Di sits closest but has not been scored yet
        assert nearest_user(state, ana).user_id == "c"

    def test_nearest_user_alone(self):
        state = ConversationState()
        user = state.mood_space.get_or_create("a", "Ana")
        assert nearest_user(state, user) is None

    def test_narrative(self):
        state = make_state()
        text = render_empathy(state, state.mood_space.get("a"))

        assert text == (
            "Ana, you seem very joyful right now (0.80). "
            "Your mood point is at (75, 95). Cy feels closest to you."
        )

    def test_neutral_user(self):
        state = ConversationState()
        user = state.mood_space.get_or_create("z", "Zed")
        text = render_empathy(state, user)

        assert text == (
            "Zed, I can't quite read how you feel yet. Your mood point is at (50, 50)."
        )

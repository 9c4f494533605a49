import asyncio

from moodmap.config import Settings
from moodmap.errors import ToneServiceError
from moodmap.models import EmotionScores

JOY = {"joy": 1.0, "anger": 0.0, "sadness": 0.0, "fear": 0.0, "disgust": 0.0}
SADNESS = {"joy": 0.0, "anger": 0.0, "sadness": 0.9, "fear": 0.1, "disgust": 0.0}


class FakeEmotionSource:
    """Returns canned scores per message text instead of calling the tone API."""

    def __init__(
        self,
        readings: dict[str, EmotionScores] | None = None,
        error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.readings = readings or {}
        self.error = error
        self.delay = delay
        self.calls: list[str] = []

    async def fetch_emotion(self, text: str) -> EmotionScores:
        self.calls.append(text)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return dict(self.readings.get(text, {}))


def make_settings(**overrides) -> Settings:
    values = {
        "tone_api_url": "http://tone.test",
        "chart_base_url": "http://charts.test/chart",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def unavailable() -> ToneServiceError:
    return ToneServiceError("Tone API returned HTTP 503")

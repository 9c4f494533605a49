"""
Client for the external tone analysis API.

The bot only depends on the ``EmotionSource`` protocol, so tests and other
deployments can swap in any object with an async ``fetch_emotion`` method.
"""

import logging
from typing import Any, Protocol

import httpx

from .config import Settings
from .errors import ToneServiceError
from .models import EMOTIONS, EmotionScores
from .projector import clamp_unit

logger = logging.getLogger(__name__)


class EmotionSource(Protocol):
    async def fetch_emotion(self, text: str) -> EmotionScores: ...


def parse_tone_response(payload: dict[str, Any]) -> EmotionScores:
    """
    Extract emotion scores from a tone analysis response.

    Accepts both the flat ``document_tone.tones`` layout and the older
    ``document_tone.tone_categories[].tones`` one. Unknown tones are dropped
    and scores are clamped into [0, 1], with NaN read as 0.
    """
    document = payload.get("document_tone") or {}
    tones: list[dict[str, Any]] = list(document.get("tones") or [])
    for category in document.get("tone_categories") or []:
        tones.extend(category.get("tones") or [])

    scores: EmotionScores = {}
    for tone in tones:
        tone_id = tone.get("tone_id")
        if tone_id not in EMOTIONS:
            continue
        try:
            score = float(tone.get("score", 0.0))
        except (TypeError, ValueError):
            score = 0.0
        scores[tone_id] = clamp_unit(score)
    return scores


class ToneAnalyzerClient:
    """Scores text through the tone analysis HTTP API."""

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        version: str = "2017-09-21",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.version = version
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "ToneAnalyzerClient":
        api_key = None
        if settings.tone_api_key is not None:
            api_key = settings.tone_api_key.get_secret_value()
        return cls(
            base_url=settings.tone_api_url,
            api_key=api_key,
            version=settings.tone_api_version,
            timeout=settings.tone_timeout,
        )

    async def fetch_emotion(self, text: str) -> EmotionScores:
        """
        Score a single message.

        Raises:
            ToneServiceError: If the API is not configured or the call fails
        """
        if not self.base_url:
            raise ToneServiceError("Tone API URL is not configured")

        auth = ("apikey", self.api_key) if self.api_key else None
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    f"{self.base_url}/v3/tone",
                    params={"version": self.version, "sentences": "false"},
                    json={"text": text},
                    auth=auth,
                )
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as e:
            raise ToneServiceError(
                f"Tone API returned HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise ToneServiceError(f"Tone API request failed: {e}") from e
        except ValueError as e:
            raise ToneServiceError("Tone API returned invalid JSON") from e

        scores = parse_tone_response(payload)
        logger.debug("Scored %d characters: %s", len(text), scores)
        return scores

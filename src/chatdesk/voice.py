"""Concrete implementations for voice synthesis."""

import logging
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import httpx

from .errors import AdapterError

logger = logging.getLogger(__name__)


class Voice(ABC):
    """Interface for turning text into playable audio."""

    @abstractmethod
    def synthesize(
        self,
        text: str,
        voice_id: str,
        model_id: Optional[str] = None,
        similarity_boost: Optional[float] = None,
        stability: Optional[float] = None,
    ) -> str:
        """Synthesizes ``text`` and returns a playable audio reference.

        Raises
        ------
        AdapterError
            If the synthesis service fails.
        """
        pass


class ElevenLabs(Voice):
    """ElevenLabs text-to-speech; audio is written to ``audio_dir``."""

    API_URL = "https://api.elevenlabs.io/v1"
    DEFAULT_MODEL = "eleven_multilingual_v2"
    DEFAULT_SIMILARITY_BOOST = 0.75
    DEFAULT_STABILITY = 0.75

    def __init__(
        self,
        api_key: str,
        audio_dir: str = "audio",
        timeout: float = 30.0,
        client: Optional[httpx.Client] = None,
    ):
        self.api_key = api_key
        self.audio_dir = Path(audio_dir)
        self._client = client if client is not None else httpx.Client(timeout=timeout)

    def close(self) -> None:
        self._client.close()

    def synthesize(
        self, text, voice_id, model_id=None, similarity_boost=None, stability=None
    ):
        body = {
            "text": text,
            "model_id": model_id or self.DEFAULT_MODEL,
            "voice_settings": {
                "similarity_boost": (
                    self.DEFAULT_SIMILARITY_BOOST
                    if similarity_boost is None
                    else similarity_boost
                ),
                "stability": self.DEFAULT_STABILITY if stability is None else stability,
            },
        }
        try:
            response = self._client.post(
                f"{self.API_URL}/text-to-speech/{voice_id}",
                json=body,
                headers={"xi-api-key": self.api_key, "Accept": "audio/mpeg"},
            )
        except httpx.HTTPError as e:
            raise AdapterError(f"ElevenLabs request failed: {e}", source="elevenlabs") from e
        if not response.is_success:
            raise AdapterError(
                f"ElevenLabs API error: {response.status_code}", source="elevenlabs"
            )

        try:
            self.audio_dir.mkdir(parents=True, exist_ok=True)
            path = self.audio_dir / f"{uuid.uuid4().hex}.mp3"
            path.write_bytes(response.content)
        except OSError as e:
            raise AdapterError(f"Could not store synthesized audio: {e}", source="elevenlabs") from e

        logger.info("Synthesized %d bytes of audio", len(response.content), extra={"voice_id": voice_id})
        return path.resolve().as_uri()

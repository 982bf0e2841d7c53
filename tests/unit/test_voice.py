"""Tests for the ElevenLabs voice implementation."""

import json
from pathlib import Path
from urllib.parse import urlparse
from urllib.request import url2pathname

import httpx
import pytest
from chatdesk.errors import AdapterError
from chatdesk.voice import ElevenLabs, Voice

AUDIO = b"ID3\x03fake-mp3-bytes"


@pytest.fixture
def requests_seen():
    return []


@pytest.fixture
def voice(tmp_path, requests_seen) -> ElevenLabs:
    def handler(request: httpx.Request) -> httpx.Response:
        requests_seen.append(request)
        return httpx.Response(200, content=AUDIO, headers={"Content-Type": "audio/mpeg"})

    client = httpx.Client(transport=httpx.MockTransport(handler))
    return ElevenLabs("xi-secret", audio_dir=str(tmp_path / "audio"), client=client)


def test_voice_is_abstract():
    with pytest.raises(TypeError, match="Can't instantiate abstract class"):
        Voice()


def test_request_uses_defaults(voice, requests_seen):
    voice.synthesize("Your order has shipped.", "pNInz6obpgDQGcFmaJgB")

    request = requests_seen[0]
    assert request.method == "POST"
    assert str(request.url) == (
        "https://api.elevenlabs.io/v1/text-to-speech/pNInz6obpgDQGcFmaJgB"
    )
    assert request.headers["xi-api-key"] == "xi-secret"
    assert json.loads(request.content) == {
        "text": "Your order has shipped.",
        "model_id": "eleven_multilingual_v2",
        "voice_settings": {"similarity_boost": 0.75, "stability": 0.75},
    }


def test_overrides_are_sent(voice, requests_seen):
    voice.synthesize("Hi", "v-2", model_id="eleven_turbo_v2", similarity_boost=0.5, stability=0.0)
    body = json.loads(requests_seen[0].content)
    assert body["model_id"] == "eleven_turbo_v2"
    assert body["voice_settings"] == {"similarity_boost": 0.5, "stability": 0.0}


def test_audio_written_and_uri_returned(voice, tmp_path):
    uri = voice.synthesize("Hi", "v-1")

    assert uri.startswith("file://")
    path = Path(url2pathname(urlparse(uri).path))
    assert path.parent == (tmp_path / "audio").resolve()
    assert path.suffix == ".mp3"
    assert path.read_bytes() == AUDIO


def test_each_call_gets_its_own_file(voice):
    assert voice.synthesize("a", "v-1") != voice.synthesize("b", "v-1")


def test_error_status_raises(tmp_path):
    transport = httpx.MockTransport(lambda req: httpx.Response(401, json={"detail": "bad key"}))
    voice = ElevenLabs("bad", audio_dir=str(tmp_path), client=httpx.Client(transport=transport))

    with pytest.raises(AdapterError, match="401") as exc_info:
        voice.synthesize("Hi", "v-1")
    assert exc_info.value.source == "elevenlabs"
    assert list(tmp_path.iterdir()) == []


def test_transport_failure_raises(tmp_path):
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    voice = ElevenLabs(
        "k", audio_dir=str(tmp_path), client=httpx.Client(transport=httpx.MockTransport(handler))
    )
    with pytest.raises(AdapterError, match="request failed"):
        voice.synthesize("Hi", "v-1")


def test_close_releases_client(tmp_path):
    client = httpx.Client(transport=httpx.MockTransport(lambda req: httpx.Response(200)))
    voice = ElevenLabs("k", audio_dir=str(tmp_path), client=client)

    voice.close()

    assert client.is_closed

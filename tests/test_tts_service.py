import asyncio

import pytest

from sentence_studio.main import app
from sentence_studio.routers.assistant_router import get_speech_service
from sentence_studio.services.storage_service import StorageError
from sentence_studio.services.tts_service import SpeechService, SpeechError, attach_sentence_audio, DEFAULT_VOICE


class MemoryStorage:
    def __init__(self):
        self.uploaded = []

    async def upload(self, key, body, content_type):
        self.uploaded.append((key, content_type))
        return {"url": f"https://cdn.test/{key}", "key": key, "size": len(body)}


class OfflineSpeech(SpeechService):
    def _synthesize(self, text, voice):
        return b"ID3" + text.encode()


def test_generate_uploads_mp3():
    storage = MemoryStorage()

    result = asyncio.run(OfflineSpeech(storage=storage).generate("Good night"))

    key, content_type = storage.uploaded[0]
    assert key.startswith("tts/audio/") and key.endswith(".mp3")
    assert content_type == "audio/mpeg"
    assert result == {"url": f"https://cdn.test/{key}", "text": "Good night", "voice": DEFAULT_VOICE,
                      "size": len(b"ID3Good night")}


def test_generate_requires_text():
    with pytest.raises(SpeechError):
        asyncio.run(OfflineSpeech(storage=MemoryStorage()).generate("  "))


def test_synthesis_failure_is_wrapped():
    class BrokenSpeech(SpeechService):
        def _synthesize(self, text, voice):
            raise RuntimeError("quota exceeded")

    with pytest.raises(SpeechError):
        asyncio.run(BrokenSpeech(storage=MemoryStorage()).generate("Hello"))


def test_attach_audio_never_raises():
    class FailingSpeech:
        async def generate(self, text):
            raise StorageError("Failed to upload file")

    assert asyncio.run(attach_sentence_audio(1, "Hello", speech=FailingSpeech())) is False


def test_tts_route(client):
    app.dependency_overrides[get_speech_service] = lambda: OfflineSpeech(storage=MemoryStorage())

    response = client.post("/api/tts", json={"text": "Good night", "voice": "en-GB-Neural2-A"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["voice"] == "en-GB-Neural2-A"
    assert body["url"].endswith(".mp3")


def test_tts_route_failure(client):
    class BrokenSpeech:
        async def generate(self, text, voice):
            raise SpeechError("TTS generation failed")

    app.dependency_overrides[get_speech_service] = BrokenSpeech

    response = client.post("/api/tts", json={"text": "Good night"})

    assert response.status_code == 500

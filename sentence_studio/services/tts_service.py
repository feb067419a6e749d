import os

from dotenv import load_dotenv
from fastapi.concurrency import run_in_threadpool
from google.cloud import texttospeech
from google.oauth2 import service_account
from sqlalchemy.exc import SQLAlchemyError

from sentence_studio.database.setup import SessionLocal
from sentence_studio.models.sentence_model import Sentence
from sentence_studio.services.storage_service import StorageService, make_object_key

from sentence_studio.logging_config import setup_logger
logger = setup_logger(__name__, "tts.log")

load_dotenv()

DEFAULT_VOICE = "en-US-Neural2-F"


class SpeechError(Exception):
    pass


class SpeechService:
    """English speech synthesis with Google Cloud Text-to-Speech, stored as MP3."""

    def __init__(self, storage: StorageService = None):
        self.storage = storage or StorageService()
        self._client = None

    def _create_google_client(self):
        credentials_info = {
            "type": "service_account",
            "project_id": os.getenv("GOOGLE_PROJECT_ID"),
            "private_key_id": os.getenv("GOOGLE_PRIVATE_KEY_ID"),
            "private_key": os.getenv("GOOGLE_PRIVATE_KEY", "").replace('\\n', '\n'),
            "client_email": os.getenv("GOOGLE_CLIENT_EMAIL"),
            "client_id": os.getenv("GOOGLE_CLIENT_ID"),
            "auth_uri": os.getenv("GOOGLE_AUTH_URI", "https://accounts.google.com/o/oauth2/auth"),
            "token_uri": os.getenv("GOOGLE_TOKEN_URI", "https://oauth2.googleapis.com/token"),
            "auth_provider_x509_cert_url": os.getenv("GOOGLE_AUTH_PROVIDER_X509_CERT_URL",
                                                     "https://www.googleapis.com/oauth2/v1/certs"),
        }
        try:
            credentials = service_account.Credentials.from_service_account_info(credentials_info)
            return texttospeech.TextToSpeechClient(credentials=credentials)
        except Exception as e:
            logger.error(f"Failed to create Google TTS client: {str(e)}")
            raise SpeechError("Google TTS service configuration error") from e

    @property
    def client(self):
        if self._client is None:
            self._client = self._create_google_client()
        return self._client

    def _synthesize(self, text: str, voice: str) -> bytes:
        language_code = '-'.join(voice.split('-')[:2])
        response = self.client.synthesize_speech(
            input=texttospeech.SynthesisInput(text=text),
            voice=texttospeech.VoiceSelectionParams(language_code=language_code, name=voice),
            audio_config=texttospeech.AudioConfig(audio_encoding=texttospeech.AudioEncoding.MP3),
        )
        return response.audio_content

    async def generate(self, text: str, voice: str = DEFAULT_VOICE) -> dict:
        if not text or not text.strip():
            raise SpeechError("Text is required")

        try:
            audio = await run_in_threadpool(self._synthesize, text, voice)
        except SpeechError:
            raise
        except Exception as e:
            logger.error(f"Google TTS error: {str(e)}")
            raise SpeechError("TTS generation failed") from e

        stored = await self.storage.upload(make_object_key("tts/audio", "mp3"), audio, "audio/mpeg")
        return {"url": stored["url"], "text": text, "voice": voice, "size": stored["size"]}


async def attach_sentence_audio(sentence_id: int, text: str, speech: SpeechService = None) -> bool:
    """Generate audio for one sentence and save its URL. Never raises."""
    speech = speech or SpeechService()
    try:
        result = await speech.generate(text)
    except Exception as e:
        logger.error(f"TTS generation failed for sentence {sentence_id}: {str(e)}")
        return False

    try:
        async with SessionLocal() as session:
            sentence = await session.get(Sentence, sentence_id)
            if sentence is None:
                logger.warning(f"Sentence {sentence_id} disappeared before audio was attached")
                return False
            sentence.audio_url = result["url"]
            await session.commit()
    except SQLAlchemyError as e:
        logger.error(f"Could not save audio url for sentence {sentence_id}: {str(e)}")
        return False

    logger.info(f"TTS generated for sentence {sentence_id}: {result['url']}")
    return True

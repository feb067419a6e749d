from sqlalchemy import select

from sentence_studio.database.setup import SessionLocal
from sentence_studio.models.sentence_model import Sentence
from sentence_studio.services.tts_service import SpeechService

from sentence_studio.logging_config import setup_logger
logger = setup_logger(__name__, "audio_backfill.log")


async def backfill_missing_audio(batch_size: int = 50, speech: SpeechService = None) -> dict:
    """Generate audio for up to batch_size sentences that have none yet, oldest first."""
    speech = speech or SpeechService()
    generated = 0
    failed = 0

    async with SessionLocal() as session:
        result = await session.execute(
            select(Sentence).where(Sentence.audio_url.is_(None)).order_by(Sentence.id).limit(batch_size)
        )
        sentences = result.scalars().all()
        logger.info(f"Found {len(sentences)} sentences without audio")

        for sentence in sentences:
            try:
                audio = await speech.generate(sentence.english_text)
            except Exception as e:
                failed += 1
                logger.error(f"Audio generation failed for sentence {sentence.id}: {str(e)}")
                continue

            sentence.audio_url = audio["url"]
            await session.commit()
            generated += 1

    return {"generated": generated, "failed": failed}

from typing import List, Optional

from fastapi import HTTPException, status

from sqlalchemy import select, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sentence_studio.models.sentence_model import Recording, Sentence
from sentence_studio.repositories.sentence_repository import visible_to
from sentence_studio.services.storage_service import StorageService, StorageError, make_object_key

from sentence_studio.logging_config import setup_logger
logger = setup_logger(__name__, "recording.log")

DEFAULT_MIME_TYPE = "audio/webm"


def recording_data(recording: Recording) -> dict:
    return {
        "id": recording.id,
        "sentence_id": recording.sentence_id,
        "audio_url": recording.audio_url,
        "duration": recording.duration,
        "file_size": recording.file_size,
        "mime_type": recording.mime_type,
        "created_at": recording.created_at.isoformat() if recording.created_at else None,
    }


def recording_extension(content_type: Optional[str]) -> str:
    return "webm" if content_type and "webm" in content_type else "mp3"


class CreateRecordingRepository:
    def __init__(self, db: AsyncSession, user_id: int, storage: StorageService):
        self.db = db
        self.user_id = user_id
        self.storage = storage

    async def create_recording(self, sentence_id: int, audio: bytes, content_type: Optional[str],
                               duration: Optional[int] = None) -> dict:
        if not audio:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Audio file is empty")

        visible = await self.db.execute(
            select(Sentence.id).where(Sentence.id == sentence_id, visible_to(self.user_id))
        )
        if visible.scalar_one_or_none() is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sentence not found")

        mime_type = content_type or DEFAULT_MIME_TYPE
        key = make_object_key(f"recordings/{sentence_id}", recording_extension(mime_type), owner=self.user_id)

        try:
            stored = await self.storage.upload(key, audio, mime_type)
        except StorageError as e:
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

        try:
            recording = Recording(
                sentence_id=sentence_id,
                user_id=self.user_id,
                audio_url=stored["url"],
                object_key=stored["key"],
                duration=duration or 0,
                file_size=stored["size"],
                mime_type=mime_type,
            )
            self.db.add(recording)
            await self.db.commit()
            await self.db.refresh(recording)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Database error saving recording for sentence {sentence_id}: {str(e)}")
            try:
                await self.storage.delete(stored["key"])
                logger.info(f"Removed orphaned upload {stored['key']}")
            except StorageError as cleanup_error:
                logger.warning(f"Orphaned upload {stored['key']} could not be removed: {str(cleanup_error)}")
            raise HTTPException(status_code=500, detail="Failed to save recording")

        logger.info(f"User {self.user_id} uploaded recording {recording.id} for sentence {sentence_id}")
        return recording_data(recording)


class GetRecordingsRepository:
    def __init__(self, db: AsyncSession, user_id: int):
        self.db = db
        self.user_id = user_id

    async def get_recordings(self, sentence_id: int) -> List[dict]:
        result = await self.db.execute(
            select(Recording)
            .where(Recording.sentence_id == sentence_id, Recording.user_id == self.user_id)
            .order_by(Recording.created_at)
        )
        return [recording_data(r) for r in result.scalars().all()]


class DeleteRecordingRepository:
    def __init__(self, db: AsyncSession, user_id: int, storage: StorageService):
        self.db = db
        self.user_id = user_id
        self.storage = storage

    async def delete_recording(self, recording_id: int) -> dict:
        result = await self.db.execute(
            select(Recording).where(Recording.id == recording_id, Recording.user_id == self.user_id)
        )
        recording = result.scalar_one_or_none()
        if not recording:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND,
                                detail="Recording not found or not yours to delete")

        object_key = recording.object_key
        try:
            await self.db.execute(delete(Recording).where(Recording.id == recording_id))
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Database error deleting recording {recording_id}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to delete recording")

        if object_key:
            try:
                await self.storage.delete(object_key)
            except StorageError as e:
                # best effort, the row is already gone
                logger.warning(f"Recording {recording_id} removed but object {object_key} was not: {str(e)}")

        return {"success": True, "message": "Recording deleted"}

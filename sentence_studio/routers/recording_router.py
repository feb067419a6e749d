from typing import Optional

from fastapi import APIRouter, HTTPException, status, Query, Depends, UploadFile, File, Form
from sqlalchemy.ext.asyncio import AsyncSession

from sentence_studio.auth.token_handler import TokenHandler
from sentence_studio.database.setup import get_db
from sentence_studio.repositories.recording_repository import (CreateRecordingRepository, GetRecordingsRepository,
                                                               DeleteRecordingRepository)
from sentence_studio.services.storage_service import StorageService, get_storage

from sentence_studio.logging_config import setup_logger
logger = setup_logger(__name__, "recording.log")

router = APIRouter()


@router.post('', status_code=status.HTTP_201_CREATED)
async def upload_recording(
        audio: UploadFile = File(...),
        sentence_id: int = Form(...),
        duration: Optional[int] = Form(None),
        db: AsyncSession = Depends(get_db),
        storage: StorageService = Depends(get_storage),
        user_info: dict = Depends(TokenHandler.verify_access_token),
):
    try:
        repo = CreateRecordingRepository(db, int(user_info.get('sub')), storage)
        recording = await repo.create_recording(
            sentence_id=sentence_id,
            audio=await audio.read(),
            content_type=audio.content_type,
            duration=duration,
        )
        return {"success": True, "recording": recording}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error uploading recording: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to upload recording")


@router.get('')
async def get_recordings(
        sentence_id: Optional[int] = Query(None),
        db: AsyncSession = Depends(get_db),
        user_info: dict = Depends(TokenHandler.verify_access_token),
):
    if sentence_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="sentence_id is required")
    try:
        repo = GetRecordingsRepository(db, int(user_info.get('sub')))
        return {"success": True, "recordings": await repo.get_recordings(sentence_id)}
    except Exception as e:
        logger.error(f"Unexpected error listing recordings: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch recordings")


@router.delete('/{recording_id}')
async def delete_recording(
        recording_id: int,
        db: AsyncSession = Depends(get_db),
        storage: StorageService = Depends(get_storage),
        user_info: dict = Depends(TokenHandler.verify_access_token),
):
    try:
        repo = DeleteRecordingRepository(db, int(user_info.get('sub')), storage)
        return await repo.delete_recording(recording_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error deleting recording {recording_id}: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete recording")

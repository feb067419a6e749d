from typing import Optional

from fastapi import APIRouter, HTTPException, status, Query, BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sentence_studio.auth.token_handler import TokenHandler, is_admin
from sentence_studio.database.setup import get_db
from sentence_studio.repositories.sentence_repository import (GetSentencesRepository, CreateSentenceRepository,
                                                              UpdateSentenceRepository, PatchSentenceAudioRepository,
                                                              DeleteSentenceRepository, FavoriteSentenceRepository)
from sentence_studio.schemas.sentence_schema import (SentenceCreate, SentenceUpdate, SentencePatch, SentenceTab,
                                                     Difficulty, SentenceListResponse)
from sentence_studio.services.tts_service import attach_sentence_audio

from sentence_studio.logging_config import setup_logger
logger = setup_logger(__name__, "sentence.log")

router = APIRouter()


@router.get('', response_model=SentenceListResponse)
async def get_sentences(
        tab: SentenceTab = Query(SentenceTab.SHARED),
        category_id: Optional[int] = Query(None),
        difficulty: Optional[Difficulty] = Query(None),
        search: Optional[str] = Query(None, description="Matches English, Chinese and notes"),
        page: int = Query(1, ge=1),
        limit: int = Query(10, ge=1, le=100),
        db: AsyncSession = Depends(get_db),
        user_info: dict = Depends(TokenHandler.verify_access_token),
):
    try:
        repo = GetSentencesRepository(db, int(user_info.get('sub')))
        return await repo.get_sentences(
            tab=tab,
            category_id=category_id,
            difficulty=difficulty.value if difficulty else None,
            search=search,
            page=page,
            limit=limit,
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error listing sentences: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch sentences")


@router.post('', status_code=status.HTTP_201_CREATED)
async def create_sentence(
        data: SentenceCreate,
        background_tasks: BackgroundTasks,
        db: AsyncSession = Depends(get_db),
        user_info: dict = Depends(TokenHandler.verify_access_token),
):
    """
    Create a sentence. Audio is generated after the response is sent and the
    sentence's audio_url is filled in when it is ready.
    """
    try:
        repo = CreateSentenceRepository(db, int(user_info.get('sub')), admin=is_admin(user_info))
        sentence = await repo.create_sentence(data)
        background_tasks.add_task(attach_sentence_audio, sentence["id"], sentence["english_text"])
        return {"message": "Sentence created", "sentence": sentence}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error creating sentence: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create sentence")


@router.put('/{sentence_id}')
async def update_sentence(
        sentence_id: int,
        data: SentenceUpdate,
        db: AsyncSession = Depends(get_db),
        user_info: dict = Depends(TokenHandler.verify_access_token),
):
    try:
        repo = UpdateSentenceRepository(db, int(user_info.get('sub')), admin=is_admin(user_info))
        sentence = await repo.update_sentence(sentence_id, data)
        return {"message": "Sentence updated", "sentence": sentence}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error updating sentence {sentence_id}: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update sentence")


@router.patch('/{sentence_id}')
async def patch_sentence(
        sentence_id: int,
        data: SentencePatch,
        db: AsyncSession = Depends(get_db),
        user_info: dict = Depends(TokenHandler.verify_access_token),
):
    if 'audio_url' not in data.model_fields_set:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Nothing to update")
    try:
        repo = PatchSentenceAudioRepository(db, int(user_info.get('sub')), admin=is_admin(user_info))
        sentence = await repo.set_audio_url(sentence_id, data.audio_url)
        return {"message": "Sentence updated", "sentence": sentence}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error patching sentence {sentence_id}: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update sentence")


@router.delete('/{sentence_id}')
async def delete_sentence(
        sentence_id: int,
        db: AsyncSession = Depends(get_db),
        user_info: dict = Depends(TokenHandler.verify_access_token),
):
    try:
        repo = DeleteSentenceRepository(db, int(user_info.get('sub')), admin=is_admin(user_info))
        return await repo.delete_sentence(sentence_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error deleting sentence {sentence_id}: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete sentence")


@router.put('/{sentence_id}/favorite')
async def add_favorite(
        sentence_id: int,
        db: AsyncSession = Depends(get_db),
        user_info: dict = Depends(TokenHandler.verify_access_token),
):
    try:
        return await FavoriteSentenceRepository(db, int(user_info.get('sub'))).add_favorite(sentence_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error adding favorite {sentence_id}: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to add favorite")


@router.delete('/{sentence_id}/favorite')
async def remove_favorite(
        sentence_id: int,
        db: AsyncSession = Depends(get_db),
        user_info: dict = Depends(TokenHandler.verify_access_token),
):
    try:
        return await FavoriteSentenceRepository(db, int(user_info.get('sub'))).remove_favorite(sentence_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error removing favorite {sentence_id}: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to remove favorite")

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, HTTPException, status, Query, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from sentence_studio.auth.token_handler import TokenHandler
from sentence_studio.database.setup import get_db
from sentence_studio.repositories.practice_repository import (PracticeCandidateRepository, RandomSentenceRepository,
                                                              PlaylistRepository, PracticeLogRepository,
                                                              PracticeHistoryRepository, PracticeStatsRepository,
                                                              parse_id_list, clamp_utc_offset)
from sentence_studio.schemas.practice_schema import (RecommendationResponse, PracticeLogRequest, ScoreRequest,
                                                     ScoreResponse)
from sentence_studio.schemas.sentence_schema import Difficulty
from sentence_studio.services.practice_selector import select_candidates, PracticeSelectionError, SentenceSource
from sentence_studio.services.similarity import calculate_similarity

from sentence_studio.logging_config import setup_logger
logger = setup_logger(__name__, "practice.log")

router = APIRouter()


def get_candidate_source(db: AsyncSession = Depends(get_db)) -> SentenceSource:
    return PracticeCandidateRepository(db)


@router.get('/recommendation', response_model=RecommendationResponse)
async def get_recommendation(
        user_id: Optional[int] = Query(None, description="Must match the authenticated user when given"),
        source: SentenceSource = Depends(get_candidate_source),
        user_info: dict = Depends(TokenHandler.verify_access_token),
):
    """
    Up to ten sentences for a practice session, mixing unpractised sentences
    with a few that need reinforcement.
    """
    current_user_id = int(user_info.get('sub'))
    if user_id is not None and user_id != current_user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Cannot fetch recommendations for another user")

    try:
        sentences = await select_candidates(current_user_id, source)
    except PracticeSelectionError as ex:
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": str(ex)})

    logger.info(f"Recommended {len(sentences)} sentences to user {current_user_id}")
    return {"sentences": sentences, "total": len(sentences)}


@router.get('/random')
async def get_random_sentence(
        difficulty: Optional[Difficulty] = Query(None),
        category_id: Optional[int] = Query(None),
        exclude_ids: Optional[str] = Query(None, description="Comma separated sentence ids to skip"),
        db: AsyncSession = Depends(get_db),
        user_info: dict = Depends(TokenHandler.verify_access_token),
):
    try:
        repo = RandomSentenceRepository(db, int(user_info.get('sub')))
        return await repo.get_random(
            difficulty=difficulty.value if difficulty else None,
            category_id=category_id,
            exclude_ids=parse_id_list(exclude_ids),
        )
    except HTTPException as ex:
        return JSONResponse(status_code=ex.status_code, content={"error": ex.detail})
    except Exception as ex:
        logger.error(f"Failed to fetch random sentence: {ex}")
        return JSONResponse(status_code=500, content={"error": "Failed to fetch random sentence"})


@router.get('/playlist')
async def get_playlist(
        difficulty: Optional[Difficulty] = Query(None),
        category_id: Optional[int] = Query(None),
        db: AsyncSession = Depends(get_db),
        user_info: dict = Depends(TokenHandler.verify_access_token),
):
    try:
        repo = PlaylistRepository(db, int(user_info.get('sub')))
        return await repo.get_playlist(difficulty=difficulty.value if difficulty else None, category_id=category_id)
    except Exception as ex:
        logger.error(f"Failed to fetch playlist: {ex}")
        return JSONResponse(status_code=500, content={"error": "Failed to fetch playlist"})


@router.post('/log')
async def log_practice(
        data: PracticeLogRequest,
        db: AsyncSession = Depends(get_db),
        user_info: dict = Depends(TokenHandler.verify_access_token),
):
    try:
        repo = PracticeLogRepository(db, int(user_info.get('sub')))
        return await repo.log_practice(data.sentences)
    except HTTPException:
        raise
    except Exception as ex:
        logger.error(f"Unexpected error writing practice log: {ex}")
        raise HTTPException(status_code=500, detail="Failed to write practice log")


@router.post('/score', response_model=ScoreResponse)
async def score_transcript(
        data: ScoreRequest,
        user_info: dict = Depends(TokenHandler.verify_access_token),
):
    return {"similarity": calculate_similarity(data.reference, data.transcript)}


@router.get('/history')
async def get_history(
        page: int = Query(0, ge=0, description="Day offset, 0 is today (UTC)"),
        db: AsyncSession = Depends(get_db),
        user_info: dict = Depends(TokenHandler.verify_access_token),
):
    try:
        repo = PracticeHistoryRepository(db, int(user_info.get('sub')))
        return await repo.get_history(page)
    except Exception as ex:
        logger.error(f"Failed to fetch practice history: {ex}")
        raise HTTPException(status_code=500, detail="Failed to fetch practice history")


@router.get('/daily-count')
async def get_daily_count(
        db: AsyncSession = Depends(get_db),
        user_info: dict = Depends(TokenHandler.verify_access_token),
):
    try:
        repo = PracticeStatsRepository(db, int(user_info.get('sub')))
        return await repo.daily_count()
    except Exception as ex:
        logger.error(f"Failed to fetch daily practice count: {ex}")
        raise HTTPException(status_code=500, detail="Failed to fetch daily practice count")


@router.get('/calendar')
async def get_calendar(
        year: Optional[int] = Query(None, ge=1970, le=9999),
        month: Optional[int] = Query(None, ge=1, le=12),
        utc_offset: Optional[str] = Query(None, description="Local offset from UTC in minutes"),
        db: AsyncSession = Depends(get_db),
        user_info: dict = Depends(TokenHandler.verify_access_token),
):
    now = datetime.now(timezone.utc)
    try:
        repo = PracticeStatsRepository(db, int(user_info.get('sub')))
        return await repo.calendar(year or now.year, month or now.month, clamp_utc_offset(utc_offset))
    except Exception as ex:
        logger.error(f"Failed to fetch practice calendar: {ex}")
        raise HTTPException(status_code=500, detail="Failed to fetch practice calendar")

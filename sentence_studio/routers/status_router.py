# routers/status_router.py

from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, status, Depends

from sentence_studio.auth.token_handler import TokenHandler, is_admin
from sentence_studio.tasks.background_worker import worker

from sentence_studio.logging_config import setup_logger
logger = setup_logger(__name__, "audio_backfill.log")

router = APIRouter()


@router.get("/health")
async def health_check():
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/worker")
async def worker_status():
    """Current state of the audio backfill worker"""
    return worker.get_status()


@router.post("/backfill/run-now")
async def run_backfill_now(user_info: dict = Depends(TokenHandler.verify_access_token)):
    if not is_admin(user_info):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")

    try:
        result = await worker.run_once()
    except Exception as e:
        logger.error(f"Manual audio backfill failed: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Audio backfill failed")

    return {"status": "success", "result": result, "worker": worker.get_status()}

# main.py

import os
from contextlib import asynccontextmanager
from datetime import datetime

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sentence_studio.database.setup import SessionLocal
from sentence_studio.repositories.category_repository import SeedPresetCategoriesRepository
from sentence_studio.routers import (user_router, category_router, sentence_router, practice_router,
                                     recording_router, assistant_router, status_router)
from sentence_studio.tasks.background_worker import worker

from sentence_studio.logging_config import setup_logger
logger = setup_logger(__name__, "app.log")

load_dotenv()


def _enabled(name: str) -> bool:
    return os.getenv(name, 'true').lower() == 'true'


@asynccontextmanager
async def lifespan(app: FastAPI):

    if _enabled('SEED_PRESET_CATEGORIES'):
        try:
            async with SessionLocal() as session:
                await SeedPresetCategoriesRepository(session).seed()
        except Exception as e:
            logger.warning(f"Could not seed preset categories: {e}")

    if _enabled('START_BACKGROUND_WORKER'):
        try:
            worker.start()
            status = worker.get_status()
            logger.info(f"Audio backfill worker started, next run: {status['next_run']}")
        except Exception as e:
            logger.warning(f"Could not start background worker: {e}")

    yield

    logger.info(f"Shutting down application at {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    worker.stop()


app = FastAPI(title="Sentence Studio", lifespan=lifespan)

origins = [origin.strip() for origin in os.getenv('CORS_ORIGINS', 'http://localhost:3000').split(',')
           if origin.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)


# Include Routers
app.include_router(router=user_router.router, prefix='/api/auth', tags=['User'])
app.include_router(router=category_router.router, prefix='/api/categories', tags=['Category'])
app.include_router(router=sentence_router.router, prefix='/api/sentences', tags=['Sentence'])
app.include_router(router=practice_router.router, prefix='/api/practice', tags=['Practice'])
app.include_router(router=recording_router.router, prefix='/api/recordings', tags=['Recording'])
app.include_router(router=assistant_router.tts_router, prefix='/api/tts', tags=['TTS'])
app.include_router(router=assistant_router.ai_router, prefix='/api/ai', tags=['AI'])
app.include_router(router=assistant_router.translate_router, prefix='/api/translate', tags=['Translate'])
app.include_router(router=status_router.router, prefix='/api/status', tags=['Status'])

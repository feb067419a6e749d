from fastapi import APIRouter, HTTPException, status, Depends

from sentence_studio.auth.token_handler import TokenHandler
from sentence_studio.schemas.ai_schema import (AnalyzeAction, AnalyzeRequest, AnalyzeResponse, ChatRequest,
                                               ChatResponse, TranslateRequest, TranslateResponse, TTSRequest,
                                               TTSResponse)
from sentence_studio.services.ai_service import AIService, AIServiceError, get_ai_service
from sentence_studio.services.storage_service import StorageError
from sentence_studio.services.translate_service import TranslateService, TranslationError, get_translate_service
from sentence_studio.services.tts_service import SpeechService, SpeechError, DEFAULT_VOICE

from sentence_studio.logging_config import setup_logger
logger = setup_logger(__name__, "assistant.log")

ai_router = APIRouter()
translate_router = APIRouter()
tts_router = APIRouter()

SUPPORTED_ACTIONS = {action.value for action in AnalyzeAction}


def get_speech_service() -> SpeechService:
    return SpeechService()


@ai_router.post('/analyze', response_model=AnalyzeResponse)
async def analyze_sentence(
        data: AnalyzeRequest,
        ai_service: AIService = Depends(get_ai_service),
        user_info: dict = Depends(TokenHandler.verify_access_token),
):
    if not data.sentence:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Please provide a sentence to analyze")
    if data.action not in SUPPORTED_ACTIONS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unsupported action")

    try:
        result = await ai_service.analyze(data.sentence, data.action, data.user_level)
    except AIServiceError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    return {"success": True, "result": result, "action": data.action, "sentence": data.sentence}


@ai_router.post('/chat', response_model=ChatResponse)
async def chat(
        data: ChatRequest,
        ai_service: AIService = Depends(get_ai_service),
        user_info: dict = Depends(TokenHandler.verify_access_token),
):
    if not data.message:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Please provide a message")

    try:
        result = await ai_service.chat(data.message, data.context)
    except AIServiceError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    return {"success": True, "result": result, "message": data.message}


@translate_router.post('', response_model=TranslateResponse)
async def translate(
        data: TranslateRequest,
        translate_service: TranslateService = Depends(get_translate_service),
        user_info: dict = Depends(TokenHandler.verify_access_token),
):
    if not data.text or not data.text.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Text is required")

    try:
        return await translate_service.translate(data.text.strip(), data.target_lang)
    except TranslationError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))


@tts_router.post('', response_model=TTSResponse)
async def text_to_speech(
        data: TTSRequest,
        speech: SpeechService = Depends(get_speech_service),
        user_info: dict = Depends(TokenHandler.verify_access_token),
):
    if not data.text or not data.text.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Text is required")

    try:
        result = await speech.generate(data.text, data.voice or DEFAULT_VOICE)
    except (SpeechError, StorageError) as e:
        logger.error(f"TTS request failed: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="TTS generation failed")

    return {"success": True, **result}

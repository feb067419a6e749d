from enum import Enum
from typing import Optional, List, Dict

from pydantic import BaseModel, Field, field_validator


class AnalyzeAction(str, Enum):
    ANALYZE = "analyze"
    TRANSLATE = "translate"
    ADVICE = "advice"


class AnalyzeRequest(BaseModel):
    sentence: str
    action: str = AnalyzeAction.ANALYZE.value
    user_level: Optional[str] = None

    @field_validator("sentence")
    def strip_sentence(cls, value):
        return value.strip()


class AnalyzeResponse(BaseModel):
    success: bool = True
    result: str
    action: str
    sentence: str


class ChatRequest(BaseModel):
    message: str
    context: Optional[str] = None

    @field_validator("message")
    def strip_message(cls, value):
        return value.strip()


class ChatResponse(BaseModel):
    success: bool = True
    result: str
    message: str


class DeepSeekRequest(BaseModel):
    model: str = "deepseek-chat"
    messages: List[Dict[str, str]]
    temperature: float = 0.7
    max_tokens: int = Field(1000, ge=1)
    stream: bool = False


class TranslateRequest(BaseModel):
    text: str
    target_lang: str = "zh"

    @field_validator("target_lang")
    def normalize_target(cls, value):
        value = value.lower().strip()
        if value not in ("zh", "en"):
            raise ValueError("target_lang must be 'zh' or 'en'")
        return value


class TranslateResponse(BaseModel):
    translation: str
    detected_lang: Optional[str] = None


class TTSRequest(BaseModel):
    text: str
    voice: Optional[str] = None


class TTSResponse(BaseModel):
    success: bool = True
    url: str
    text: str
    voice: str
    size: int

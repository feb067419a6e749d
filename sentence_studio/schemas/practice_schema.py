from typing import Optional, List

from pydantic import BaseModel, Field

from sentence_studio.schemas.sentence_schema import CategoryBrief


class PracticeSentence(BaseModel):
    id: int
    english_text: str
    chinese_text: Optional[str] = None
    difficulty: Optional[str] = None
    audio_url: Optional[str] = None
    category: CategoryBrief


class RecommendationResponse(BaseModel):
    sentences: List[PracticeSentence]
    total: int


class PracticeLogEntry(BaseModel):
    sentence_id: int = Field(..., ge=1)
    score: Optional[int] = Field(None, ge=0, le=100)
    transcript: Optional[str] = None


class PracticeLogRequest(BaseModel):
    sentences: List[PracticeLogEntry] = Field(default_factory=list)


class ScoreRequest(BaseModel):
    reference: str
    transcript: str


class ScoreResponse(BaseModel):
    similarity: int

from datetime import datetime
from enum import Enum
from typing import Optional, List

from pydantic import BaseModel, Field, field_validator


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class SentenceTab(str, Enum):
    SHARED = "shared"
    CUSTOM = "custom"
    FAVORITE = "favorite"


class CategoryBrief(BaseModel):
    id: int
    name: str
    color: Optional[str] = None


class SentenceBase(BaseModel):
    english_text: str = Field(..., min_length=1)
    chinese_text: Optional[str] = None
    category_id: int = Field(..., ge=1)
    difficulty: Optional[Difficulty] = None
    notes: Optional[str] = None
    is_shared: Optional[bool] = None

    @field_validator('english_text')
    @classmethod
    def validate_english_text(cls, v: str) -> str:
        if not v.strip():
            raise ValueError('English text is required')
        return v.strip()

    @field_validator('chinese_text', 'notes')
    @classmethod
    def blank_to_none(cls, v):
        if v is None or not str(v).strip():
            return None
        return str(v).strip()


class SentenceCreate(SentenceBase):
    pass


class SentenceUpdate(SentenceBase):
    pass


class SentencePatch(BaseModel):
    audio_url: Optional[str] = None


class SentenceResponse(BaseModel):
    id: int
    english_text: str
    chinese_text: Optional[str] = None
    category_id: int
    user_id: int
    difficulty: Optional[str] = None
    notes: Optional[str] = None
    is_shared: bool
    audio_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SentenceListItem(SentenceResponse):
    category: CategoryBrief
    is_favorite: bool = False
    recordings_count: int = 0


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_more: bool


class SentenceListResponse(BaseModel):
    sentences: List[SentenceListItem]
    pagination: Pagination

import math
from datetime import datetime, timezone
from typing import Optional

from fastapi import HTTPException, status

from sqlalchemy import select, func, or_, and_, exists, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sentence_studio.constants.category import DEFAULT_DIFFICULTY
from sentence_studio.models.sentence_model import Sentence, Category, Recording, UserSentenceFavorite
from sentence_studio.schemas.sentence_schema import SentenceCreate, SentenceUpdate, SentenceTab

from sentence_studio.logging_config import setup_logger
logger = setup_logger(__name__, "sentence.log")


def sentence_data(sentence: Sentence) -> dict:
    return {
        "id": sentence.id,
        "english_text": sentence.english_text,
        "chinese_text": sentence.chinese_text,
        "category_id": sentence.category_id,
        "user_id": sentence.user_id,
        "difficulty": sentence.difficulty,
        "notes": sentence.notes,
        "is_shared": sentence.is_shared,
        "audio_url": sentence.audio_url,
        "created_at": sentence.created_at.isoformat() if sentence.created_at else None,
        "updated_at": sentence.updated_at.isoformat() if sentence.updated_at else None,
    }


def visible_to(user_id: int):
    return or_(Sentence.is_shared.is_(True), Sentence.user_id == user_id)


async def _get_sentence(db: AsyncSession, sentence_id: int) -> Sentence:
    sentence = await db.get(Sentence, sentence_id)
    if not sentence:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sentence not found")
    return sentence


async def _ensure_live_category(db: AsyncSession, category_id: int) -> None:
    result = await db.execute(
        select(Category.id).where(Category.id == category_id, Category.deleted_at.is_(None))
    )
    if result.scalar_one_or_none() is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category does not exist")


class GetSentencesRepository:
    def __init__(self, db: AsyncSession, user_id: int):
        self.db = db
        self.user_id = user_id

    async def get_sentences(self, tab: SentenceTab = SentenceTab.SHARED, category_id: Optional[int] = None,
                            difficulty: Optional[str] = None, search: Optional[str] = None,
                            page: int = 1, limit: int = 10) -> dict:
        conditions = [Category.deleted_at.is_(None)]

        if tab == SentenceTab.SHARED:
            conditions.append(Sentence.is_shared.is_(True))
        elif tab == SentenceTab.CUSTOM:
            conditions.extend([Sentence.user_id == self.user_id, Sentence.is_shared.is_(False)])
        elif tab == SentenceTab.FAVORITE:
            conditions.append(exists().where(
                UserSentenceFavorite.sentence_id == Sentence.id,
                UserSentenceFavorite.user_id == self.user_id,
            ))

        if category_id:
            conditions.append(Sentence.category_id == category_id)
        if difficulty:
            conditions.append(Sentence.difficulty == difficulty)
        if search and search.strip():
            term = f"%{search.strip()}%"
            conditions.append(or_(
                Sentence.english_text.ilike(term),
                Sentence.chinese_text.ilike(term),
                Sentence.notes.ilike(term),
            ))

        total = await self.db.scalar(
            select(func.count(Sentence.id))
            .join(Category, Sentence.category_id == Category.id)
            .where(and_(*conditions))
        ) or 0
        total_pages = math.ceil(total / limit) if limit else 0

        is_favorite = exists().where(
            UserSentenceFavorite.sentence_id == Sentence.id,
            UserSentenceFavorite.user_id == self.user_id,
        ).label("is_favorite")

        rows = await self.db.execute(
            select(Sentence, Category.id, Category.name, Category.color, is_favorite)
            .join(Category, Sentence.category_id == Category.id)
            .where(and_(*conditions))
            .order_by(Sentence.created_at.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        )
        rows = rows.all()

        sentence_ids = [row[0].id for row in rows]
        recording_counts = {}
        if sentence_ids:
            counts = await self.db.execute(
                select(Recording.sentence_id, func.count(Recording.id))
                .where(Recording.sentence_id.in_(sentence_ids), Recording.user_id == self.user_id)
                .group_by(Recording.sentence_id)
            )
            recording_counts = {sentence_id: count for sentence_id, count in counts.all()}

        items = []
        for sentence, cat_id, cat_name, cat_color, favorite in rows:
            item = sentence_data(sentence)
            item["category"] = {"id": cat_id, "name": cat_name, "color": cat_color}
            item["is_favorite"] = bool(favorite)
            item["recordings_count"] = recording_counts.get(sentence.id, 0)
            items.append(item)

        return {
            "sentences": items,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "total_pages": total_pages,
                "has_more": page < total_pages,
            },
        }


class CreateSentenceRepository:
    def __init__(self, db: AsyncSession, user_id: int, admin: bool = False):
        self.db = db
        self.user_id = user_id
        self.admin = admin

    async def create_sentence(self, data: SentenceCreate) -> dict:
        await _ensure_live_category(self.db, data.category_id)

        try:
            sentence = Sentence(
                english_text=data.english_text,
                chinese_text=data.chinese_text,
                category_id=data.category_id,
                user_id=self.user_id,
                difficulty=data.difficulty.value if data.difficulty else DEFAULT_DIFFICULTY,
                notes=data.notes,
                # only admins publish to the shared library
                is_shared=bool(self.admin and data.is_shared),
            )
            self.db.add(sentence)
            await self.db.commit()
            await self.db.refresh(sentence)

            logger.info(f"User {self.user_id} created sentence {sentence.id} (shared={sentence.is_shared})")
            return sentence_data(sentence)

        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Database error creating sentence: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to create sentence")


class UpdateSentenceRepository:
    def __init__(self, db: AsyncSession, user_id: int, admin: bool = False):
        self.db = db
        self.user_id = user_id
        self.admin = admin

    async def update_sentence(self, sentence_id: int, data: SentenceUpdate) -> dict:
        sentence = await _get_sentence(self.db, sentence_id)

        if sentence.is_shared and not self.admin:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                                detail="Only admins can edit shared sentences")
        if not sentence.is_shared and sentence.user_id != self.user_id:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                                detail="You can only edit your own sentences")

        if data.category_id != sentence.category_id:
            await _ensure_live_category(self.db, data.category_id)

        try:
            sentence.english_text = data.english_text
            sentence.chinese_text = data.chinese_text
            sentence.category_id = data.category_id
            sentence.difficulty = data.difficulty.value if data.difficulty else DEFAULT_DIFFICULTY
            sentence.notes = data.notes
            sentence.updated_at = datetime.now(timezone.utc)
            if self.admin and data.is_shared is not None:
                sentence.is_shared = data.is_shared

            await self.db.commit()
            await self.db.refresh(sentence)
            return sentence_data(sentence)

        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Database error updating sentence {sentence_id}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to update sentence")


class PatchSentenceAudioRepository:
    def __init__(self, db: AsyncSession, user_id: int, admin: bool = False):
        self.db = db
        self.user_id = user_id
        self.admin = admin

    async def set_audio_url(self, sentence_id: int, audio_url: Optional[str]) -> dict:
        sentence = await _get_sentence(self.db, sentence_id)

        if sentence.user_id != self.user_id and not self.admin:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                                detail="You do not have permission to update this sentence's audio")
        try:
            sentence.audio_url = audio_url
            sentence.updated_at = datetime.now(timezone.utc)
            await self.db.commit()
            await self.db.refresh(sentence)
            return sentence_data(sentence)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Database error patching sentence {sentence_id}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to update sentence")


class DeleteSentenceRepository:
    def __init__(self, db: AsyncSession, user_id: int, admin: bool = False):
        self.db = db
        self.user_id = user_id
        self.admin = admin

    async def delete_sentence(self, sentence_id: int) -> dict:
        sentence = await _get_sentence(self.db, sentence_id)

        if sentence.user_id != self.user_id and not (self.admin and sentence.is_shared):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                                detail="You can only delete your own sentences")
        try:
            await self.db.execute(delete(Sentence).where(Sentence.id == sentence_id))
            await self.db.commit()
            logger.info(f"Sentence {sentence_id} deleted by user {self.user_id}")
            return {"message": "Sentence deleted"}
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Database error deleting sentence {sentence_id}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to delete sentence")


class FavoriteSentenceRepository:
    def __init__(self, db: AsyncSession, user_id: int):
        self.db = db
        self.user_id = user_id

    async def _ensure_visible(self, sentence_id: int) -> None:
        result = await self.db.execute(
            select(Sentence.id).where(Sentence.id == sentence_id, visible_to(self.user_id))
        )
        if result.scalar_one_or_none() is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sentence not found")

    async def add_favorite(self, sentence_id: int) -> dict:
        await self._ensure_visible(sentence_id)
        existing = await self.db.get(UserSentenceFavorite, (self.user_id, sentence_id))
        if not existing:
            self.db.add(UserSentenceFavorite(user_id=self.user_id, sentence_id=sentence_id))
            await self.db.commit()
        return {"sentence_id": sentence_id, "is_favorite": True}

    async def remove_favorite(self, sentence_id: int) -> dict:
        await self.db.execute(
            delete(UserSentenceFavorite).where(
                UserSentenceFavorite.user_id == self.user_id,
                UserSentenceFavorite.sentence_id == sentence_id,
            )
        )
        await self.db.commit()
        return {"sentence_id": sentence_id, "is_favorite": False}

import random
from datetime import datetime, timedelta, timezone, date
from typing import Dict, List, Optional, Tuple

from fastapi import HTTPException, status

from sqlalchemy import select, func, and_, insert
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sentence_studio.constants.category import DEFAULT_CATEGORY_COLOR, DEFAULT_DIFFICULTY
from sentence_studio.models.sentence_model import Sentence, Category, PracticeLog
from sentence_studio.repositories.sentence_repository import visible_to
from sentence_studio.schemas.practice_schema import PracticeLogEntry
from sentence_studio.services.practice_selector import EligibleFilter

from sentence_studio.logging_config import setup_logger
logger = setup_logger(__name__, "practice.log")

PLAYLIST_LIMIT = 500
DAILY_COUNT_DAYS = 21
MAX_UTC_OFFSET_MINUTES = 840


def _practice_row(row) -> dict:
    return {
        "id": row.id,
        "english_text": row.english_text,
        "chinese_text": row.chinese_text,
        "difficulty": row.difficulty,
        "audio_url": row.audio_url,
        "category": {
            "id": row.category_id,
            "name": row.category_name,
            "color": row.category_color,
        },
    }


def _practice_query():
    return (
        select(
            Sentence.id,
            Sentence.english_text,
            Sentence.chinese_text,
            Sentence.difficulty,
            Sentence.audio_url,
            Category.id.label("category_id"),
            Category.name.label("category_name"),
            Category.color.label("category_color"),
        )
        .join(Category, Sentence.category_id == Category.id)
        .where(Category.deleted_at.is_(None))
    )


def parse_id_list(raw: Optional[str]) -> List[int]:
    """Comma separated ids; anything that is not an integer is dropped."""
    if not raw:
        return []
    ids = []
    for part in raw.split(','):
        try:
            ids.append(int(part.strip()))
        except ValueError:
            continue
    return ids


def clamp_utc_offset(raw: Optional[str]) -> int:
    try:
        offset = int(raw) if raw is not None else 0
    except ValueError:
        return 0
    if offset < -MAX_UTC_OFFSET_MINUTES or offset > MAX_UTC_OFFSET_MINUTES:
        return 0
    return offset


def history_window(page: int, now: datetime) -> Tuple[datetime, datetime]:
    day = (now.astimezone(timezone.utc) - timedelta(days=page)).date()
    start = datetime(day.year, day.month, day.day, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


def calendar_window(year: int, month: int, utc_offset: int) -> Tuple[datetime, datetime]:
    """UTC bounds of a calendar month as seen from a local offset in minutes."""
    shift = timedelta(minutes=utc_offset)
    start = datetime(year, month, 1, tzinfo=timezone.utc)
    end = datetime(year + 1, 1, 1, tzinfo=timezone.utc) if month == 12 \
        else datetime(year, month + 1, 1, tzinfo=timezone.utc)
    return start - shift, end - shift


def last_days(today: date, days: int = DAILY_COUNT_DAYS) -> List[str]:
    return [(today - timedelta(days=i)).isoformat() for i in range(days - 1, -1, -1)]


class PracticeCandidateRepository:
    """Database side of the recommendation selector."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def practice_counts(self, user_id: int) -> Dict[int, int]:
        result = await self.db.execute(
            select(PracticeLog.sentence_id, func.count(PracticeLog.id))
            .where(PracticeLog.user_id == user_id)
            .group_by(PracticeLog.sentence_id)
        )
        return {sentence_id: count for sentence_id, count in result.all()}

    async def find_eligible_sentences(self, criteria: EligibleFilter) -> List[dict]:
        query = _practice_query().where(
            visible_to(criteria.user_id),
            Sentence.audio_url.isnot(None),
        )
        if criteria.include_ids is not None:
            query = query.where(Sentence.id.in_(sorted(criteria.include_ids)))
        if criteria.exclude_ids:
            query = query.where(Sentence.id.notin_(sorted(criteria.exclude_ids)))

        result = await self.db.execute(query.order_by(func.random()).limit(criteria.limit))
        return [_practice_row(row) for row in result.all()]


class RandomSentenceRepository:
    def __init__(self, db: AsyncSession, user_id: int):
        self.db = db
        self.user_id = user_id

    async def get_random(self, difficulty: Optional[str] = None, category_id: Optional[int] = None,
                         exclude_ids: Optional[List[int]] = None, rng: random.Random = None) -> dict:
        rng = rng or random.Random()

        conditions = [visible_to(self.user_id)]
        if difficulty:
            conditions.append(Sentence.difficulty == difficulty)
        if category_id:
            conditions.append(Sentence.category_id == category_id)
        if exclude_ids:
            conditions.append(Sentence.id.notin_(exclude_ids))

        total = await self.db.scalar(
            select(func.count(Sentence.id))
            .join(Category, Sentence.category_id == Category.id)
            .where(Category.deleted_at.is_(None), and_(*conditions))
        ) or 0

        if total == 0:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No matching sentences found")

        result = await self.db.execute(
            _practice_query().where(*conditions).order_by(Sentence.id).limit(1).offset(rng.randrange(total))
        )
        row = result.first()
        if row is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No matching sentences found")

        return {"sentence": _practice_row(row), "total_available": total}


class PlaylistRepository:
    def __init__(self, db: AsyncSession, user_id: int):
        self.db = db
        self.user_id = user_id

    async def get_playlist(self, difficulty: Optional[str] = None, category_id: Optional[int] = None) -> dict:
        query = _practice_query().where(visible_to(self.user_id), Sentence.audio_url.isnot(None))
        if difficulty:
            query = query.where(Sentence.difficulty == difficulty)
        if category_id:
            query = query.where(Sentence.category_id == category_id)

        result = await self.db.execute(query.order_by(Sentence.id).limit(PLAYLIST_LIMIT))
        rows = [_practice_row(row) for row in result.all()]
        return {"sentences": rows, "total": len(rows)}


class PracticeLogRepository:
    def __init__(self, db: AsyncSession, user_id: int):
        self.db = db
        self.user_id = user_id

    async def log_practice(self, entries: List[PracticeLogEntry]) -> dict:
        if not entries:
            return {"logged": 0}

        rows = [
            {
                "user_id": self.user_id,
                "sentence_id": entry.sentence_id,
                "score": entry.score,
                "transcript": entry.transcript,
            }
            for entry in entries
        ]
        try:
            await self.db.execute(insert(PracticeLog), rows)
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(f"Practice log for unknown sentence from user {self.user_id}: {str(e)}")
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown sentence id in practice log")
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Database error writing practice log: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to write practice log")

        logger.info(f"User {self.user_id} logged {len(rows)} practice records")
        return {"logged": len(rows)}


class PracticeHistoryRepository:
    def __init__(self, db: AsyncSession, user_id: int):
        self.db = db
        self.user_id = user_id

    async def get_history(self, page: int = 0, now: datetime = None) -> dict:
        day_start, day_end = history_window(page, now or datetime.now(timezone.utc))

        result = await self.db.execute(
            select(
                PracticeLog.id,
                PracticeLog.score,
                PracticeLog.transcript,
                PracticeLog.practiced_at,
                Sentence.id.label("sentence_id"),
                Sentence.english_text,
                Sentence.chinese_text,
                Sentence.difficulty,
                Category.id.label("category_id"),
                Category.name.label("category_name"),
                Category.color.label("category_color"),
            )
            .join(Sentence, PracticeLog.sentence_id == Sentence.id)
            .join(Category, Sentence.category_id == Category.id)
            .where(
                PracticeLog.user_id == self.user_id,
                PracticeLog.practiced_at >= day_start,
                PracticeLog.practiced_at < day_end,
            )
            .order_by(PracticeLog.practiced_at.desc())
        )

        records = [
            {
                "id": row.id,
                "score": row.score,
                "transcript": row.transcript,
                "practiced_at": row.practiced_at.isoformat(),
                "sentence": {
                    "id": row.sentence_id,
                    "english_text": row.english_text,
                    "chinese_text": row.chinese_text,
                    "difficulty": row.difficulty or DEFAULT_DIFFICULTY,
                    "category": {
                        "id": row.category_id,
                        "name": row.category_name,
                        "color": row.category_color or DEFAULT_CATEGORY_COLOR,
                    },
                },
            }
            for row in result.all()
        ]

        older = await self.db.execute(
            select(PracticeLog.id)
            .where(PracticeLog.user_id == self.user_id, PracticeLog.practiced_at < day_start)
            .limit(1)
        )

        return {
            "date": day_start.date().isoformat(),
            "records": records,
            "has_more": older.first() is not None,
        }


class PracticeStatsRepository:
    def __init__(self, db: AsyncSession, user_id: int):
        self.db = db
        self.user_id = user_id

    async def daily_count(self, now: datetime = None) -> dict:
        today = (now or datetime.now(timezone.utc)).astimezone(timezone.utc).date()
        days = last_days(today)
        start = datetime.fromisoformat(days[0]).replace(tzinfo=timezone.utc)

        day_label = func.to_char(func.timezone('UTC', PracticeLog.practiced_at), 'YYYY-MM-DD')
        result = await self.db.execute(
            select(day_label, func.count(PracticeLog.id))
            .where(PracticeLog.user_id == self.user_id, PracticeLog.practiced_at >= start)
            .group_by(day_label)
        )
        counts = {label: count for label, count in result.all()}

        return {"data": [{"date": day, "count": counts.get(day, 0)} for day in days]}

    async def calendar(self, year: int, month: int, utc_offset: int = 0) -> dict:
        start, end = calendar_window(year, month, utc_offset)

        local_day = func.to_char(
            func.timezone('UTC', PracticeLog.practiced_at) + timedelta(minutes=utc_offset),
            'YYYY-MM-DD',
        )
        result = await self.db.execute(
            select(local_day)
            .where(
                PracticeLog.user_id == self.user_id,
                PracticeLog.practiced_at >= start,
                PracticeLog.practiced_at < end,
            )
            .distinct()
        )
        return {"dates": sorted(result.scalars().all())}

from datetime import datetime, timezone
from typing import List

from fastapi import HTTPException, status

from sqlalchemy import select, or_, and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sentence_studio.auth.token_handler import ADMIN_ROLES
from sentence_studio.constants.category import DEFAULT_CATEGORY_COLOR, PRESET_CATEGORIES
from sentence_studio.models.sentence_model import Category
from sentence_studio.models.user_model import UserModel
from sentence_studio.schemas.category_schema import CategoryCreate, CategoryUpdate

from sentence_studio.logging_config import setup_logger
logger = setup_logger(__name__, "category.log")


def category_data(category: Category) -> dict:
    return {
        "id": category.id,
        "name": category.name,
        "description": category.description,
        "color": category.color,
        "is_preset": category.is_preset,
        "user_id": category.user_id,
        "created_at": category.created_at.isoformat() if category.created_at else None,
        "updated_at": category.updated_at.isoformat() if category.updated_at else None,
    }


class GetCategoriesRepository:
    def __init__(self, db: AsyncSession, user_id: int):
        self.db = db
        self.user_id = user_id

    async def get_categories(self) -> List[dict]:
        admin_ids = select(UserModel.id).where(UserModel.role.in_(ADMIN_ROLES))

        query = (
            select(Category)
            .where(
                Category.deleted_at.is_(None),
                or_(
                    Category.is_preset.is_(True),
                    Category.user_id == self.user_id,
                    and_(Category.is_preset.is_(False), Category.user_id.in_(admin_ids)),
                ),
            )
            .order_by(Category.is_preset.desc(), Category.created_at.desc())
        )
        result = await self.db.execute(query)
        return [category_data(c) for c in result.scalars().all()]


class CreateCategoryRepository:
    def __init__(self, db: AsyncSession, user_id: int):
        self.db = db
        self.user_id = user_id

    async def create_category(self, data: CategoryCreate) -> dict:
        try:
            preset = await self.db.execute(
                select(Category.id).where(Category.name == data.name, Category.is_preset.is_(True)).limit(1)
            )
            if preset.scalar_one_or_none():
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                                    detail="This name is already used by a preset category")

            own = await self.db.execute(
                select(Category.id).where(
                    Category.name == data.name,
                    Category.user_id == self.user_id,
                    Category.is_preset.is_(False),
                ).limit(1)
            )
            if own.scalar_one_or_none():
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                                    detail="You already have a category with this name")

            category = Category(
                name=data.name,
                description=data.description,
                color=data.color or DEFAULT_CATEGORY_COLOR,
                is_preset=False,
                user_id=self.user_id,
            )
            self.db.add(category)
            await self.db.commit()
            await self.db.refresh(category)

            logger.info(f"User {self.user_id} created category {category.id}")
            return category_data(category)

        except HTTPException:
            raise
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Database error creating category: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to create category")


class _EditableCategoryMixin:
    """Loads a live category and checks the caller may change it."""

    db: AsyncSession
    user_id: int
    admin: bool

    async def _get_editable(self, category_id: int) -> Category:
        result = await self.db.execute(
            select(Category).where(Category.id == category_id, Category.deleted_at.is_(None))
        )
        category = result.scalar_one_or_none()
        if not category:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")

        if category.is_preset and not self.admin:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                                detail="Preset categories can only be changed by admins")
        if not category.is_preset and category.user_id != self.user_id and not self.admin:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                                detail="You do not have permission to change this category")
        return category


class UpdateCategoryRepository(_EditableCategoryMixin):
    def __init__(self, db: AsyncSession, user_id: int, admin: bool = False):
        self.db = db
        self.user_id = user_id
        self.admin = admin

    async def update_category(self, category_id: int, data: CategoryUpdate) -> dict:
        category = await self._get_editable(category_id)
        try:
            category.name = data.name
            category.color = data.color or category.color
            category.description = data.description
            category.updated_at = datetime.now(timezone.utc)
            await self.db.commit()
            await self.db.refresh(category)
            return category_data(category)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Database error updating category {category_id}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to update category")


class DeleteCategoryRepository(_EditableCategoryMixin):
    def __init__(self, db: AsyncSession, user_id: int, admin: bool = False):
        self.db = db
        self.user_id = user_id
        self.admin = admin

    async def delete_category(self, category_id: int) -> dict:
        category = await self._get_editable(category_id)
        try:
            category.deleted_at = datetime.now(timezone.utc)
            await self.db.commit()
            logger.info(f"Category {category_id} soft deleted by user {self.user_id}")
            return {"message": "Category deleted"}
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Database error deleting category {category_id}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to delete category")


class SeedPresetCategoriesRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def seed(self) -> int:
        result = await self.db.execute(select(Category.name).where(Category.is_preset.is_(True)))
        existing = set(result.scalars().all())

        created = 0
        for preset in PRESET_CATEGORIES:
            if preset["name"] in existing:
                continue
            self.db.add(Category(is_preset=True, user_id=None, **preset))
            created += 1

        if created:
            await self.db.commit()
            logger.info(f"Seeded {created} preset categories")
        return created

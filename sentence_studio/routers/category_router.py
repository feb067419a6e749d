from fastapi import APIRouter, HTTPException, status, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sentence_studio.auth.token_handler import TokenHandler, is_admin
from sentence_studio.database.setup import get_db
from sentence_studio.repositories.category_repository import (GetCategoriesRepository, CreateCategoryRepository,
                                                              UpdateCategoryRepository, DeleteCategoryRepository)
from sentence_studio.schemas.category_schema import CategoryCreate, CategoryUpdate

from sentence_studio.logging_config import setup_logger
logger = setup_logger(__name__, "category.log")

router = APIRouter()


@router.get('')
async def get_categories(
        db: AsyncSession = Depends(get_db),
        user_info: dict = Depends(TokenHandler.verify_access_token),
):
    """Preset categories, the caller's own, and those published by admins."""
    try:
        repo = GetCategoriesRepository(db, int(user_info.get('sub')))
        return {"categories": await repo.get_categories()}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error fetching categories: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch categories")


@router.post('', status_code=status.HTTP_201_CREATED)
async def create_category(
        data: CategoryCreate,
        db: AsyncSession = Depends(get_db),
        user_info: dict = Depends(TokenHandler.verify_access_token),
):
    try:
        repo = CreateCategoryRepository(db, int(user_info.get('sub')))
        category = await repo.create_category(data)
        return {"message": "Category created", "category": category}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error creating category: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create category")


@router.put('/{category_id}')
async def update_category(
        category_id: int,
        data: CategoryUpdate,
        db: AsyncSession = Depends(get_db),
        user_info: dict = Depends(TokenHandler.verify_access_token),
):
    try:
        repo = UpdateCategoryRepository(db, int(user_info.get('sub')), admin=is_admin(user_info))
        category = await repo.update_category(category_id, data)
        return {"message": "Category updated", "category": category}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error updating category {category_id}: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update category")


@router.delete('/{category_id}')
async def delete_category(
        category_id: int,
        db: AsyncSession = Depends(get_db),
        user_info: dict = Depends(TokenHandler.verify_access_token),
):
    try:
        repo = DeleteCategoryRepository(db, int(user_info.get('sub')), admin=is_admin(user_info))
        return await repo.delete_category(category_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error deleting category {category_id}: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete category")

import asyncio
from types import SimpleNamespace

import pytest
from fastapi import HTTPException

from sentence_studio.constants.category import DEFAULT_CATEGORY_COLOR, PRESET_CATEGORIES
from sentence_studio.repositories.category_repository import (CreateCategoryRepository, UpdateCategoryRepository,
                                                              DeleteCategoryRepository, SeedPresetCategoriesRepository)
from sentence_studio.schemas.category_schema import CategoryCreate, CategoryUpdate


def run(coro):
    return asyncio.run(coro)


def make_category(category_id=1, is_preset=False, user_id=1):
    return SimpleNamespace(id=category_id, name="Travel", description=None, color="#ff0000",
                           is_preset=is_preset, user_id=user_id, created_at=None, updated_at=None,
                           deleted_at=None)


def test_create_uses_default_color(fake_session_factory):
    session = fake_session_factory()

    data = run(CreateCategoryRepository(session, 1).create_category(CategoryCreate(name="  Idioms ")))

    assert data["name"] == "Idioms"
    assert data["color"] == DEFAULT_CATEGORY_COLOR
    assert data["is_preset"] is False
    assert data["user_id"] == 1
    assert session.commits == 1


def test_create_rejects_preset_name(fake_session_factory, fake_result):
    session = fake_session_factory(results=[fake_result(3)])

    with pytest.raises(HTTPException) as exc:
        run(CreateCategoryRepository(session, 1).create_category(CategoryCreate(name="Travel English")))

    assert exc.value.status_code == 400
    assert session.added == []


def test_create_rejects_own_duplicate(fake_session_factory, fake_result):
    session = fake_session_factory(results=[fake_result(None), fake_result(8)])

    with pytest.raises(HTTPException) as exc:
        run(CreateCategoryRepository(session, 1).create_category(CategoryCreate(name="Mine")))

    assert exc.value.status_code == 400


def test_blank_name_is_rejected():
    with pytest.raises(ValueError):
        CategoryCreate(name="   ")


def test_missing_category_is_not_found(fake_session_factory, fake_result):
    session = fake_session_factory(results=[fake_result(None)])

    with pytest.raises(HTTPException) as exc:
        run(DeleteCategoryRepository(session, 1).delete_category(42))

    assert exc.value.status_code == 404


def test_user_cannot_delete_preset(fake_session_factory, fake_result):
    preset = make_category(is_preset=True, user_id=None)
    session = fake_session_factory(results=[fake_result(preset)])

    with pytest.raises(HTTPException) as exc:
        run(DeleteCategoryRepository(session, 1).delete_category(preset.id))

    assert exc.value.status_code == 403
    assert preset.deleted_at is None


def test_admin_soft_deletes_preset(fake_session_factory, fake_result):
    preset = make_category(is_preset=True, user_id=None)
    session = fake_session_factory(results=[fake_result(preset)])

    result = run(DeleteCategoryRepository(session, 5, admin=True).delete_category(preset.id))

    assert result == {"message": "Category deleted"}
    assert preset.deleted_at is not None
    assert session.commits == 1


def test_user_cannot_edit_someone_elses_category(fake_session_factory, fake_result):
    category = make_category(user_id=2)
    session = fake_session_factory(results=[fake_result(category)])

    with pytest.raises(HTTPException) as exc:
        run(UpdateCategoryRepository(session, 1).update_category(category.id, CategoryUpdate(name="Renamed")))

    assert exc.value.status_code == 403
    assert category.name == "Travel"


def test_owner_updates_category_and_keeps_color(fake_session_factory, fake_result):
    category = make_category(user_id=1)
    session = fake_session_factory(results=[fake_result(category)])

    data = run(UpdateCategoryRepository(session, 1).update_category(
        category.id, CategoryUpdate(name="Renamed", description="  ")))

    assert data["name"] == "Renamed"
    assert data["color"] == "#ff0000"
    assert data["description"] is None


def test_seed_only_adds_missing_presets(fake_session_factory, fake_result):
    existing = [PRESET_CATEGORIES[0]["name"]]
    session = fake_session_factory(results=[fake_result(rows=existing)])

    created = run(SeedPresetCategoriesRepository(session).seed())

    assert created == len(PRESET_CATEGORIES) - 1
    assert all(c.is_preset for c in session.added)
    assert session.commits == 1


def test_seed_is_idempotent(fake_session_factory, fake_result):
    names = [preset["name"] for preset in PRESET_CATEGORIES]
    session = fake_session_factory(results=[fake_result(rows=names)])

    assert run(SeedPresetCategoriesRepository(session).seed()) == 0
    assert session.commits == 0

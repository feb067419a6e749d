from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request

from fastapi.responses import Response

from sqlalchemy.ext.asyncio import AsyncSession

from sentence_studio.auth.token_handler import TokenHandler
from sentence_studio.database.setup import get_db

from sentence_studio.repositories.user_repository import (UserRegisterRepository, UserLoginRepository,
                                                          UserLogoutRepository, RefreshSessionRepository,
                                                          UserProfileRepository)

from sentence_studio.schemas.user_schema import UserLoginSchema, UserRegisterSchema, UserUpdateSchema

from sentence_studio.logging_config import setup_logger
logger = setup_logger(__name__, "user.log")

router = APIRouter()


def _set_session_cookie(response: Response, refresh_token: str):
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"

    response.set_cookie('refresh_token', refresh_token,
                        httponly=True,
                        secure=True,
                        samesite="none"
                        )


@router.post('/register', status_code=201)
async def register(response: Response, register_data: UserRegisterSchema,
                   db_session: Annotated[AsyncSession, Depends(get_db)]):
    repository = UserRegisterRepository(db_session)

    try:
        data = await repository.register(register_data)
        _set_session_cookie(response, data.get('refresh_token'))

        return {
            'user': data.get('user'),
            'access_token': data.get('access_token')
        }

    except HTTPException as ex:
        raise ex
    except Exception as ex:
        logger.exception("Unexpected error registering user: %s", ex)
        raise HTTPException(500, 'Internal server error')


@router.post('/login', status_code=200)
async def login(response: Response, login_data: UserLoginSchema, db_session: Annotated[AsyncSession, Depends(get_db)]):

    repository = UserLoginRepository(db_session)

    try:
        data = await repository.login(login_data)
        _set_session_cookie(response, data.get('refresh_token'))

        return {
            'user': data.get('user'),
            'access_token': data.get('access_token')
        }

    except HTTPException as ex:
        raise ex
    except Exception as ex:
        logger.exception("Unexpected error login user: %s", ex)
        raise HTTPException(500, 'Internal server error')


@router.post("/refresh", status_code=200)
async def refresh_token(response: Response, request: Request, db: AsyncSession = Depends(get_db)):

    repository = RefreshSessionRepository(db)
    try:
        data = await repository.refresh(request.cookies.get('refresh_token'))
        _set_session_cookie(response, data.get('refresh_token'))

        return {
            "access_token": data.get("access_token"),
            "user": data.get('user'),
        }

    except HTTPException as e:
        logger.error(f"Error refreshing token: {e.detail}")
        response.delete_cookie(key="refresh_token")
        raise
    except Exception as e:
        logger.error(f"Unexpected error refreshing token: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="An error occurred while refreshing the token")


@router.post('/logout', status_code=200)
async def logout(
    response: Response,
    user_info: dict = Depends(TokenHandler.verify_access_token),
    db: AsyncSession = Depends(get_db)
):
    result = await UserLogoutRepository(db).logout(int(user_info.get('sub')))
    response.delete_cookie(key="refresh_token")
    return {"message": "Logout successful", **result}


@router.get('/me', status_code=200)
async def get_profile(
    db: AsyncSession = Depends(get_db),
    user_info: dict = Depends(TokenHandler.verify_access_token)
):
    repo = UserProfileRepository(db=db, user_id=int(user_info.get('sub')))
    return await repo.get_profile()


@router.put('/me', status_code=200)
async def update_profile(
    data: UserUpdateSchema,
    db: AsyncSession = Depends(get_db),
    user_info: dict = Depends(TokenHandler.verify_access_token)
):
    repo = UserProfileRepository(db=db, user_id=int(user_info.get('sub')))
    return await repo.update_profile(data)

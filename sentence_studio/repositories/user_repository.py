from typing import Union

from fastapi import HTTPException, status

from sqlalchemy import select, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sentence_studio.auth.token_handler import TokenHandler
from sentence_studio.models.user_model import UserModel, TokenModel
from sentence_studio.schemas.user_schema import UserRegisterSchema, UserLoginSchema, UserUpdateSchema
from sentence_studio.utils.hash_password import PasswordHash

from sentence_studio.logging_config import setup_logger
logger = setup_logger(__name__, "user.log")


def user_data(user: UserModel) -> dict:
    return {
        'sub': str(user.id),
        'email': user.email,
        'name': user.name,
        'role': user.role,
        'theme_mode': user.theme_mode,
    }


class RefreshTokenRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def manage_refresh_token(self, user_id: int, refresh_token: str) -> None:
        """Keep exactly one refresh token per user."""
        existing = await self.find_refresh_token(user_id)
        if existing:
            existing.tokens = refresh_token
        else:
            self.db.add(TokenModel(user_id=user_id, tokens=refresh_token))
        await self.db.commit()

    async def find_refresh_token(self, user_id: int) -> Union[TokenModel, None]:
        data = await self.db.execute(select(TokenModel).where(TokenModel.user_id == user_id))
        return data.scalar_one_or_none()

    async def search_refresh_token(self, refresh_token: str) -> Union[int, None]:
        data = await self.db.execute(select(TokenModel.user_id).where(TokenModel.tokens == refresh_token))
        return data.scalar_one_or_none()

    async def delete_refresh_token(self, user_id: int) -> None:
        await self.db.execute(delete(TokenModel).where(TokenModel.user_id == user_id))
        await self.db.commit()


class UserRegisterRepository:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.refresh_token_repo = RefreshTokenRepository(self.db)
        self.h_password = PasswordHash()

    async def register(self, register_data: UserRegisterSchema) -> dict:
        try:
            email = register_data.email.lower()
            logger.info(f"Registering new user {email}")

            data = await self.db.execute(select(UserModel).where(UserModel.email == email))
            if data.scalar():
                raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="This email is already registered")

            user = UserModel(
                email=email,
                name=register_data.name,
                password_hash=self.h_password.hash_password(register_data.password),
                role="user",
            )
            self.db.add(user)
            await self.db.commit()
            await self.db.refresh(user)

            return await issue_tokens(user, self.refresh_token_repo)

        except HTTPException:
            raise
        except SQLAlchemyError as ex:
            await self.db.rollback()
            logger.error(f"Database error during registration: {ex}")
            raise HTTPException(status_code=500, detail="Registration failed")


class UserLoginRepository:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.refresh_token_repo = RefreshTokenRepository(self.db)
        self.h_password = PasswordHash()

    async def login(self, login_data: UserLoginSchema) -> dict:
        email = login_data.email.lower()
        logger.info(f'{email} try to login')

        data = await self.db.execute(select(UserModel).where(UserModel.email == email))
        user = data.scalar()

        if not user or not self.h_password.verify(user.password_hash, login_data.password):
            logger.warning(f'{email} failed to login')
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")

        if not user.is_active:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is disabled")

        return await issue_tokens(user, self.refresh_token_repo)


async def issue_tokens(user: UserModel, refresh_token_repo: RefreshTokenRepository) -> dict:
    token_data = {
        'sub': str(user.id),
        'role': user.role,
    }

    access_token = TokenHandler.generate_access_token(token_data)
    refresh_token = TokenHandler.generate_refresh_token(token_data)

    await refresh_token_repo.manage_refresh_token(user.id, refresh_token)

    return {
        'user': user_data(user),
        'access_token': access_token,
        'refresh_token': refresh_token
    }


class RefreshSessionRepository:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.refresh_token_repo = RefreshTokenRepository(self.db)

    async def refresh(self, refresh_token: str) -> dict:
        payload = TokenHandler.verify_refresh_token(refresh_token)

        user_id = await self.refresh_token_repo.search_refresh_token(refresh_token)
        if user_id is None or str(user_id) != payload['sub']:
            raise HTTPException(status_code=401, detail="Invalid or revoked refresh token")

        user = await self.db.get(UserModel, user_id)
        if not user or not user.is_active:
            raise HTTPException(status_code=401, detail="Invalid or revoked refresh token")

        logger.info(f"New tokens issued for user: {user_id}")
        return await issue_tokens(user, self.refresh_token_repo)


class UserLogoutRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def logout(self, user_id: int) -> dict:
        try:
            await RefreshTokenRepository(self.db).delete_refresh_token(user_id)
            logger.info(f"User {user_id} logged out successfully.")
            return {"detail": "Logged out"}
        except SQLAlchemyError as e:
            logger.error(f"Database error during logout: {str(e)}")
            raise HTTPException(status_code=500, detail="Internal server error during logout")


class UserProfileRepository:
    def __init__(self, db: AsyncSession, user_id: int):
        self.db = db
        self.user_id = user_id

    async def _get_user(self) -> UserModel:
        user = await self.db.get(UserModel, self.user_id)
        if not user:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        return user

    async def get_profile(self) -> dict:
        return user_data(await self._get_user())

    async def update_profile(self, data: UserUpdateSchema) -> dict:
        user = await self._get_user()
        for key, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(user, key, value)
        try:
            await self.db.commit()
            await self.db.refresh(user)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Database error updating profile: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to update profile")
        return user_data(user)

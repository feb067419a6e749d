import os
from datetime import datetime, timezone, timedelta

from fastapi.requests import Request

import jwt
from jwt.exceptions import InvalidTokenError

from fastapi import HTTPException

from sentence_studio.logging_config import setup_logger
logger = setup_logger(__name__, "token.log")


def _secret(name: str) -> str:
    secret = os.getenv(name)
    if not secret:
        logger.error(f"{name} is not set, refusing to sign or verify tokens")
        raise HTTPException(status_code=500, detail="Token service is not configured")
    return secret


def _algorithm() -> str:
    return os.getenv('JWT_ALGORITHM', 'HS256')


class TokenHandler:

    @staticmethod
    def generate_access_token(user_data: dict) -> str:
        try:
            encode = user_data.copy()
            encode.update({"exp": datetime.now(timezone.utc) + timedelta(days=2)})
            return jwt.encode(encode, _secret('JWT_SECRET_KEY'), _algorithm())
        except Exception as ex:
            logger.error(f"Failed to create new access token {ex}")
            raise HTTPException(status_code=500, detail="Failed to create new access token")

    @staticmethod
    def generate_refresh_token(user_data: dict) -> str:
        try:
            encode = user_data.copy()
            encode.update({"exp": datetime.now(timezone.utc) + timedelta(days=30)})
            return jwt.encode(encode, _secret('JWT_REFRESH_SECRET_KEY'), _algorithm())
        except Exception as ex:
            logger.error(f"Failed to create new refresh token {ex}")
            raise HTTPException(status_code=500, detail="Failed to create new refresh token")

    @staticmethod
    def verify_access_token(req: Request) -> dict:
        """
        FastAPI dependency: decode the bearer token and return its payload.

        The payload carries 'sub' (user id as a string) and 'role'.
        """
        header = req.headers.get('Authorization')
        if not header:
            raise HTTPException(status_code=401, detail='Authorization Error')

        parts = header.split(' ')
        if len(parts) != 2 or parts[0].lower() != 'bearer' or not parts[1]:
            raise HTTPException(status_code=401, detail='Authorization Error')

        try:
            payload = jwt.decode(parts[1], _secret('JWT_SECRET_KEY'), algorithms=[_algorithm()])
        except InvalidTokenError as ex:
            raise HTTPException(status_code=401, detail=f'Authorization Error {ex}')

        if 'sub' not in payload:
            raise HTTPException(status_code=401, detail='Authorization Error')
        return payload

    @staticmethod
    def verify_refresh_token(refresh_token: str) -> dict:
        """
        Verify and decode a refresh token.

        :param refresh_token: The refresh token to verify
        :return: Decoded token payload if valid
        :raises HTTPException: If token is invalid or expired
        """
        if not refresh_token:
            raise HTTPException(status_code=401, detail="Refresh token is required")

        try:
            payload = jwt.decode(refresh_token, _secret('JWT_REFRESH_SECRET_KEY'), algorithms=[_algorithm()])
        except jwt.ExpiredSignatureError:
            logger.warning("Refresh token expired")
            raise HTTPException(status_code=401, detail="Refresh token expired")
        except jwt.InvalidTokenError as e:
            logger.warning(f"Invalid refresh token: {str(e)}")
            raise HTTPException(status_code=401, detail="Invalid refresh token")

        if 'sub' not in payload:
            raise HTTPException(status_code=401, detail="Invalid token: missing subject")

        logger.info(f"Successfully verified refresh token for user: {payload.get('sub')}")
        return payload


ADMIN_ROLES = ('admin', 'owner')


def is_admin(user_info: dict) -> bool:
    return user_info.get('role') in ADMIN_ROLES

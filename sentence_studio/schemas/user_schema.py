from typing import Optional, Literal

from pydantic import BaseModel, EmailStr, field_validator, Field



class UserRegisterSchema(BaseModel):

    email: EmailStr
    password: str
    name: Optional[str] = Field(None, max_length=255)

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:

        if len(value.strip()) < 8:
            raise ValueError("Password too short (min 8 chars)")
        if value.lower() in ["password", "12345678"]:
            raise ValueError("Password too common")
        if ' ' in value:
            raise ValueError("Password can't contain space")

        return value


class UserLoginSchema(BaseModel):

    email: EmailStr
    password: str


class UserUpdateSchema(BaseModel):

    name: Optional[str] = Field(None, max_length=255)
    theme_mode: Optional[Literal["light", "dark", "system"]] = None

from datetime import datetime
from typing import Optional

from sqlalchemy import String, Boolean, DateTime, ForeignKey, Text
from sqlalchemy.orm import mapped_column, Mapped, relationship
from sqlalchemy.sql import func

from sentence_studio.models.base_model import Base


class UserModel(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)

    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    password_hash: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="user")  # owner / admin / user
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    theme_mode: Mapped[str] = mapped_column(String(20), nullable=False, default="system")  # light / dark / system

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )

    tokens = relationship("TokenModel", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return f'UserModel(id:{self.id}, email: {self.email}, role: {self.role})'


class TokenModel(Base):
    __tablename__ = 'tokens'

    id: Mapped[int] = mapped_column(primary_key=True)

    tokens: Mapped[str] = mapped_column(String, unique=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey('users.id', ondelete="CASCADE"))

    user = relationship("UserModel", back_populates="tokens")

    def __str__(self):
        return f"{self.id} {self.tokens} {self.user_id}"

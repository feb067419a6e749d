from datetime import datetime
from typing import Optional

from sqlalchemy import String, Boolean, DateTime, ForeignKey, Text, Integer, Index, text
from sqlalchemy.orm import mapped_column, Mapped, relationship
from sqlalchemy.sql import func

from sentence_studio.models.base_model import Base


class Category(Base):
    """
    Groups sentences. Preset categories are global; custom ones belong to a user.
    Categories are never removed, deleted_at marks a soft delete.
    """
    __tablename__ = "categories"
    __table_args__ = (
        Index("categories_preset_name_idx", "name", unique=True,
              postgresql_where=text("is_preset = true")),
        Index("categories_user_name_idx", "user_id", "name", unique=True,
              postgresql_where=text("is_preset = false")),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    color: Mapped[Optional[str]] = mapped_column(String(20), default="#3b82f6")
    is_preset: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    user_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), nullable=True, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    sentences = relationship("Sentence", back_populates="category")

    def __repr__(self):
        return f'Category(id:{self.id}, name:{self.name}, is_preset:{self.is_preset})'


class Sentence(Base):
    __tablename__ = "sentences"
    __table_args__ = (
        Index("sentences_user_shared_idx", "user_id", "is_shared"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    english_text: Mapped[str] = mapped_column(Text, nullable=False)
    chinese_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category_id: Mapped[int] = mapped_column(ForeignKey("categories.id"), nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    difficulty: Mapped[str] = mapped_column(String(20), default="medium")  # easy / medium / hard
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_shared: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    audio_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    category = relationship("Category", back_populates="sentences")
    favorites = relationship("UserSentenceFavorite", cascade="all, delete-orphan", passive_deletes=True)
    recordings = relationship("Recording", cascade="all, delete-orphan", passive_deletes=True)
    practice_logs = relationship("PracticeLog", cascade="all, delete-orphan", passive_deletes=True)

    def __repr__(self):
        return f'Sentence(id:{self.id}, english_text:{self.english_text[:30]}, is_shared:{self.is_shared})'


class UserSentenceFavorite(Base):
    __tablename__ = "user_sentence_favorites"

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, index=True)
    sentence_id: Mapped[int] = mapped_column(ForeignKey("sentences.id", ondelete="CASCADE"), primary_key=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class Recording(Base):
    __tablename__ = "recordings"
    __table_args__ = (
        Index("recordings_user_sentence_idx", "user_id", "sentence_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    sentence_id: Mapped[int] = mapped_column(ForeignKey("sentences.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    audio_url: Mapped[str] = mapped_column(Text, nullable=False)
    object_key: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # seconds
    file_size: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # bytes
    mime_type: Mapped[Optional[str]] = mapped_column(String(50), default="audio/webm")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class PracticeLog(Base):
    """One practice event. Rows are only ever inserted."""
    __tablename__ = "practice_logs"
    __table_args__ = (
        Index("practice_logs_user_practiced_idx", "user_id", "practiced_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    sentence_id: Mapped[int] = mapped_column(ForeignKey("sentences.id", ondelete="CASCADE"), nullable=False, index=True)
    score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    transcript: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    practiced_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

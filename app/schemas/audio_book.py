"""Pydantic schemas for Audio Book API request bodies."""

from typing import Optional

from pydantic import BaseModel

AUDIO_BOOK_FILE_FIELDS = ("coverImage", "audioFile")


class AudioBookCreate(BaseModel):
    title: Optional[str] = None
    author_id: Optional[str] = None
    category_id: Optional[str] = None
    description: Optional[str] = None
    audio_url: Optional[str] = None
    cover_url: Optional[str] = None
    duration: Optional[str] = None
    language: Optional[str] = None
    is_free: Optional[bool] = None
    published_date: Optional[str] = None


class AudioBookUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    duration: Optional[str] = None
    language: Optional[str] = None
    category_id: Optional[str] = None
    audio_url: Optional[str] = None
    cover_url: Optional[str] = None
    is_free: Optional[bool] = None
    status: Optional[str] = None

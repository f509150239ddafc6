"""Pydantic schemas for Book API request bodies (JSON or multipart fields)."""

from typing import Optional

from pydantic import BaseModel, Field

BOOK_FILE_FIELDS = ("coverImage", "pdfFile")


class BookCreate(BaseModel):
    """Payload for creating a book. title, author_id and category_id are checked by the service."""

    title: Optional[str] = None
    author_id: Optional[str] = None
    category_id: Optional[str] = None
    summary: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    original_price: Optional[float] = Field(default=None, ge=0)
    pages: Optional[int] = Field(default=None, ge=0)
    language: Optional[str] = None
    isbn: Optional[str] = None
    is_free: Optional[bool] = None
    pdf_url: Optional[str] = None
    cover_image_url: Optional[str] = None
    cover_images: Optional[list[str]] = None
    published_date: Optional[str] = None


class BookUpdate(BaseModel):
    """Partial update; only fields present in the request are written."""

    title: Optional[str] = None
    author_id: Optional[str] = None
    category_id: Optional[str] = None
    summary: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    original_price: Optional[float] = Field(default=None, ge=0)
    pages: Optional[int] = Field(default=None, ge=0)
    language: Optional[str] = None
    isbn: Optional[str] = None
    is_free: Optional[bool] = None
    pdf_url: Optional[str] = None
    cover_image_url: Optional[str] = None
    cover_images: Optional[list[str]] = None
    published_date: Optional[str] = None
    status: Optional[str] = None

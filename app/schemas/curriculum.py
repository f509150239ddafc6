"""Pydantic schemas for Curriculum API request bodies."""

from typing import Optional

from pydantic import BaseModel

CURRICULUM_FILE_FIELDS = ("bannerImage", "coverImage", "pdfFile")


class CurriculumCreate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    state: Optional[str] = None
    state_name: Optional[str] = None
    language: Optional[str] = None
    banner_url: Optional[str] = None
    pdf_url: Optional[str] = None
    published_date: Optional[str] = None
    scheme_name: Optional[str] = None
    grade: Optional[str] = None
    subject: Optional[str] = None
    status: Optional[str] = None


class CurriculumUpdate(CurriculumCreate):
    """Same fields as create, all optional; only the ones sent are written."""

"""Pydantic schemas for the Upload API responses."""

from typing import Optional

from pydantic import BaseModel


class FileUploadResponse(BaseModel):
    """Binary upload stored by the server. url is the signed URL when available."""

    success: bool = True
    path: str
    url: str
    publicUrl: str
    signedUrl: Optional[str] = None


class SignedUploadResponse(BaseModel):
    """Pre-signed URL the client uploads to directly."""

    uploadUrl: str
    path: str
    token: str
    expiresAt: str


class DownloadUrlResponse(BaseModel):
    downloadUrl: str
    expiresAt: str
    note: Optional[str] = None


class AudioUrlResponse(BaseModel):
    audioUrl: str
    expiresAt: str
    note: Optional[str] = None


class ImageUrlResponse(BaseModel):
    imageUrl: str
    expiresAt: str
    note: Optional[str] = None

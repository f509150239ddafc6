"""Pydantic schemas for profile update and authors."""

from typing import Optional

from pydantic import BaseModel

# Request field -> users column
PROFILE_TEXT_FIELDS = {
    "full_name": "name",
    "email": "email",
    "phone": "mobile",
    "address": "address",
    "bio": "bio",
    "city": "city",
    "state": "state",
    "pincode": "pincode",
    "website": "website",
}


class ProfileUpdate(BaseModel):
    user_id: Optional[str] = None
    author_id: Optional[str] = None
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    bio: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    website: Optional[str] = None
    avatar_url: Optional[str] = None


class AuthorCreate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    mobile: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    status: Optional[str] = None

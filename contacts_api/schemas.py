from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from contacts_api.models import Subscription


class ContactBase(BaseModel):
    name: str = Field(min_length=3, max_length=30)
    email: EmailStr
    phone: str = Field(min_length=8)
    favorite: Optional[bool] = None


class ContactCreate(ContactBase):
    pass


class ContactUpdate(ContactBase):
    pass


class FavoriteUpdate(BaseModel):
    favorite: bool


class Contact(BaseModel):
    id: int
    name: str
    email: str
    phone: str
    favorite: bool
    owner_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)


class UserLogin(BaseModel):
    email: str
    password: str


class EmailRequest(BaseModel):
    email: EmailStr


class SubscriptionUpdate(BaseModel):
    subscription: Subscription


class UserProfile(BaseModel):
    email: str
    subscription: Subscription
    avatar_url: str = Field(serialization_alias="avatarURL")
    verify: bool

    class Config:
        from_attributes = True


class UserResponse(BaseModel):
    user: UserProfile


class TokenResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    user: UserProfile


class AvatarResponse(BaseModel):
    avatar_url: str = Field(serialization_alias="avatarURL")


class MessageResponse(BaseModel):
    message: str

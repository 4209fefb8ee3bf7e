from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

MIN_PASSWORD_LENGTH = 6


class ContactBase(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    phone: Optional[str] = None


class ContactCreate(ContactBase):
    user_id: str


class ContactUpdate(BaseModel):
    # name і email можна пропустити, але не обнулити.
    name: str = Field(None, min_length=1)
    email: str = Field(None, min_length=1)
    phone: Optional[str] = None


class Contact(ContactBase):
    id: str
    user_id: str
    created_at: datetime

    class Config:
        from_attributes = True


class UserCreate(BaseModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)


class UserLogin(BaseModel):
    email: str
    password: str


class User(BaseModel):
    id: str
    email: str
    created_at: datetime

    class Config:
        from_attributes = True


class Session(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    expires_at: datetime
    user: User
    recovery: bool = False


class RecoverRequest(BaseModel):
    email: str
    redirect_to: Optional[str] = None


class VerifyRequest(BaseModel):
    token: str
    type: str = "recovery"


class PasswordUpdate(BaseModel):
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)


class Message(BaseModel):
    message: str

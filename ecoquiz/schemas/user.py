from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field

from ecoquiz.schemas.quiz import CamelModel


class UserCreate(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    role: Literal["admin", "viewer"] = "viewer"
    first_name: Optional[str] = Field(None, alias="firstName")
    last_name: Optional[str] = Field(None, alias="lastName")


class UserOut(CamelModel):
    id: str
    email: EmailStr
    role: Literal["admin", "viewer"]
    first_name: Optional[str] = Field(None, alias="firstName")
    last_name: Optional[str] = Field(None, alias="lastName")
    created_at: datetime = Field(..., alias="createdAt")


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, constr


class UserCreate(BaseModel):
    email: EmailStr
    password: constr(min_length=8)

class Token(BaseModel):
    access_token: str
    token_type: str

class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: EmailStr
    created_at: datetime
    is_active: bool

class SessionClaims(BaseModel):
    sub: str
    email: str | None = None
    exp: int

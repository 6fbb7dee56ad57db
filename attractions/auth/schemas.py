from pydantic import BaseModel
from typing import Optional

class LoginRequest(BaseModel):
    email: str
    password: str

class Token(BaseModel):
    token: str
    token_type: str = "bearer"

class TokenData(BaseModel):
    """Claims carried by an access token"""
    user_id: str
    role: Optional[str] = None
    agency_id: Optional[str] = None
    currency: Optional[str] = None
    status: Optional[str] = None

class UpdatePasswordRequest(BaseModel):
    userId: Optional[str] = None
    bcryptPassword: Optional[str] = None

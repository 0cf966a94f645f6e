import uuid
from pydantic import BaseModel, EmailStr, Field

class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1, max_length=100)

class AdminOut(BaseModel):
    id: uuid.UUID
    username: str
    email: str

    class Config:
        from_attributes = True

class LoginResponse(BaseModel):
    success: bool = True
    user: AdminOut

class ForgotPasswordRequest(BaseModel):
    email: EmailStr

class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=6, max_length=100)

class MessageOut(BaseModel):
    success: bool = True
    message: str

class SetupOut(BaseModel):
    message: str
    already_exists: bool = False
    user: AdminOut | None = None

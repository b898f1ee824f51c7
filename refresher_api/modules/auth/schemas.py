from pydantic import BaseModel, EmailStr, Field, model_validator
from typing import Optional


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    user_id: str
    email: str


class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    confirm_password: str

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class SignupResponse(BaseModel):
    user_id: str
    email: str
    requires_confirmation: bool
    message: str


class RecoverPasswordRequest(BaseModel):
    email: EmailStr


class MessageResponse(BaseModel):
    message: str

# kartly/schemas/auth.py
from pydantic import EmailStr, Field

from kartly.schemas.base import CamelModel


class RegisterRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    shop_name: str = Field(..., min_length=1, max_length=255)
    phone: str = Field(..., min_length=5, max_length=32)
    email: EmailStr
    password: str = Field(..., min_length=8)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str


class VendorSummary(CamelModel):
    id: str
    name: str
    shop_name: str
    email: str
    status: str


class AuthResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    vendor: VendorSummary


class ForgotPasswordRequest(CamelModel):
    email: EmailStr


class ResetPasswordRequest(CamelModel):
    new_password: str = Field(..., min_length=8)


class MessageResponse(CamelModel):
    message: str

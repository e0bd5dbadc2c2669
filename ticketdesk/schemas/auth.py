from __future__ import annotations

from typing import Optional

from pydantic import Field

from .common import ApiModel
from .user import UserOut


class RegisterRequest(ApiModel):
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6, max_length=128)
    first_name: Optional[str] = Field(default=None, max_length=50)
    last_name: Optional[str] = Field(default=None, max_length=50)

    model_config = {
        "json_schema_extra": {
            "example": {
                "email": "ada@example.com",
                "username": "ada",
                "password": "s3cret!",
                "firstName": "Ada",
                "lastName": "Lovelace",
            }
        },
    }


class LoginRequest(ApiModel):
    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)

    model_config = {
        "json_schema_extra": {"example": {"email": "ada@example.com", "password": "s3cret!"}},
    }


class ChangePasswordRequest(ApiModel):
    current_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=6, max_length=128)


class AuthResponse(ApiModel):
    message: str
    token: str
    token_type: str = "bearer"
    user: UserOut


class MeResponse(ApiModel):
    user: UserOut

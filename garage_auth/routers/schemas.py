"""Pydantic request/response bodies for the auth endpoints."""
from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field

from garage_auth.domain.credentials import SignupRequest


class LoginBody(BaseModel):
    email: str = Field(..., min_length=1, max_length=255)
    password: str


class SignupBody(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1)
    name: str = Field("", max_length=120)
    last_name: str = Field("", max_length=120)
    phone: str = Field("", max_length=40)
    address: str = Field("", max_length=255)

    def to_request(self) -> SignupRequest:
        return SignupRequest(
            email=self.email,
            password=self.password,
            name=self.name,
            last_name=self.last_name,
            phone=self.phone,
            address=self.address,
        )


class AmendSignupBody(SignupBody):
    code: str = Field(..., min_length=1)


class VerifyBody(BaseModel):
    email: str
    code: str


class ForgotPasswordBody(BaseModel):
    email: str


class ResetPasswordBody(BaseModel):
    email: str
    code: str
    new_password: str = Field(..., min_length=1)


class ApiResponse(BaseModel):
    message: str
    data: Optional[Any] = None

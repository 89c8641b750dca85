from typing import Annotated

from pydantic import BaseModel, EmailStr, Field, StringConstraints


class SendOtpIn(BaseModel):
    email: EmailStr


class VerifyOtpIn(BaseModel):
    email: EmailStr
    otp: str = Field(pattern=r"^\s*\d{6}\s*$")


class RegisterIn(BaseModel):
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=120)]
    email: EmailStr
    # stored exactly as typed so login compares the same string
    password: str = Field(min_length=8, max_length=128)


class LoginIn(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class UserOut(BaseModel):
    id: str
    name: str
    email: str
    verification_status: str

    @classmethod
    def of(cls, user) -> "UserOut":
        return cls(
            id=str(user.id),
            name=user.name,
            email=user.email,
            verification_status=user.verification_status,
        )

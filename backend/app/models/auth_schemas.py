"""Pydantic schemas for authentication and profiles."""

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserRegister(BaseModel):
    """Sign-up request."""

    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6)


class UserLogin(BaseModel):
    """Sign-in request. Blank fields are rejected by the endpoint with a 400."""

    email: str = ""
    password: str = ""


class UserResponse(BaseModel):
    """Public user data."""

    id: str
    name: str
    email: str
    role: str

    model_config = ConfigDict(from_attributes=True)


class SigninResponse(BaseModel):
    success: bool = True
    user: UserResponse
    accessToken: str


class SignupResponse(BaseModel):
    success: bool = True
    message: str
    user: UserResponse


class CurrentUserResponse(BaseModel):
    name: str
    email: str
    role: str


class ProfileResponse(BaseModel):
    name: str
    email: str


class ProfileUpdate(BaseModel):
    name: str | None = None


class AdminUserResponse(BaseModel):
    """User as listed on the admin dashboard; never carries credentials."""

    id: str
    name: str
    email: str
    role: str
    googleLinked: bool
    createdAt: int

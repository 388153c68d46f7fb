from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import List, Literal, Optional

Role = Literal["user", "guide", "lead-guide", "admin"]

def _normalize_email(value: str) -> str:
    return value.strip().lower()

# Shared properties for user models
class UserBase(BaseModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return _normalize_email(value)

# Schema for user authentication credentials
class UserLogin(UserBase):
    password: str

# Schema for sign-up requests; the confirmation is checked, never stored
class UserCreate(UserBase):
    name: str = Field(min_length=1)
    password: str
    password_confirm: str

    # Before the length check, so a blank name is rejected
    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value

# Output schema for user profile details, no credential fields
class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: EmailStr
    photo: Optional[str] = None
    role: str

# Schema for JWT authentication token response
class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: Optional[UserResponse] = None

class ForgotPasswordRequest(UserBase):
    pass

class ResetPasswordRequest(BaseModel):
    password: str
    password_confirm: str

class UpdatePasswordRequest(BaseModel):
    password_current: str
    password: str
    password_confirm: str

# Self-service profile update; password changes go through their own endpoint
class UpdateMeRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None

    # Before the length check, so a blank name is rejected
    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: Optional[str]) -> Optional[str]:
        return _normalize_email(value) if value is not None else None

# Schema for administrative user updates
class UserAdminUpdate(UpdateMeRequest):
    role: Optional[Role] = None

class MessageResponse(BaseModel):
    status: str = "success"
    message: str

class PaginatedUsersResponse(BaseModel):
    items: List[UserResponse]
    total: int
    page: int
    page_size: int

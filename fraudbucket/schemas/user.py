"""User schemas for account administration."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fraudbucket.core.roles import Role, parse_role


def _coerce_role(value: object) -> object:
    if value is None:
        return value
    return parse_role(value) or value


class UserCreate(BaseModel):
    """Schema for creating a user."""

    firstname: str = Field(..., min_length=1, max_length=100)
    lastname: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    phone: str = Field(..., min_length=1, max_length=32)
    role: Role = Field(..., description="USER or ADMIN")
    password: str = Field(..., min_length=8, max_length=1024)

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, v: object) -> object:
        return _coerce_role(v)


class UserUpdate(BaseModel):
    """Schema for a partial user update; at least one field must be set."""

    firstname: str | None = Field(None, min_length=1, max_length=100)
    lastname: str | None = Field(None, min_length=1, max_length=100)
    email: str | None = Field(None, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    phone: str | None = Field(None, min_length=1, max_length=32)
    role: Role | None = None
    password: str | None = Field(None, min_length=8, max_length=1024)

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, v: object) -> object:
        return _coerce_role(v)


class UserResponse(BaseModel):
    """Client-facing user projection. Never carries secrets."""

    id: str
    firstname: str | None = None
    lastname: str | None = None
    role: Role
    email: str
    phone: str | None = None


class UserEnvelope(BaseModel):
    message: str
    data: UserResponse


class UserListResponse(BaseModel):
    """Response schema for listing users."""

    model_config = ConfigDict(populate_by_name=True)

    message: str
    data: list[UserResponse]
    page_count: int = Field(..., alias="pageCount")
    total_records: int = Field(..., alias="totalRecords")

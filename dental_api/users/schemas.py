"""Pydantic schemas for user management requests."""

from typing import Literal

from pydantic import BaseModel, EmailStr, Field


class ProfileFields(BaseModel):
    birthdate: str | None = None
    contact: str | None = None
    address: str | None = None
    gender: str | None = None
    allergies: str | None = None
    medicalhistory: str | None = None


class CreateUserRequest(ProfileFields):
    username: str = Field(min_length=3)
    email: EmailStr
    password: str = Field(min_length=6)
    usertype: Literal["admin", "patient", "dentist"]
    firstname: str = Field(min_length=1)
    lastname: str = Field(min_length=1)


class UpdateUserRequest(ProfileFields):
    username: str | None = Field(default=None, min_length=3)
    email: EmailStr | None = None
    usertype: Literal["admin", "patient", "dentist"] | None = None
    firstname: str | None = Field(default=None, min_length=1)
    lastname: str | None = Field(default=None, min_length=1)

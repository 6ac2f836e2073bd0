"""Pydantic schemas for services and service categories."""

from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

Interval = Literal["weekly", "monthly", "custom"]


class CreateServiceRequest(BaseModel):
    name: str = Field(min_length=1)
    description: str | None = None
    price: float = Field(ge=0)
    allow_installment: bool = False
    installment_times: int = Field(default=0, ge=0)
    installment_interval: Interval = "monthly"
    custom_interval_days: int | None = Field(default=None, gt=0)
    category_id: UUID | None = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name is required")
        return value

    @model_validator(mode="after")
    def _custom_interval(self):
        if self.installment_interval == "custom" and not self.custom_interval_days:
            raise ValueError("custom_interval_days is required when installment_interval is 'custom'")
        return self


class UpdateServiceRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    price: float | None = Field(default=None, ge=0)
    allow_installment: bool | None = None
    installment_times: int | None = Field(default=None, ge=0)
    installment_interval: Interval | None = None
    custom_interval_days: int | None = Field(default=None, gt=0)
    category_id: UUID | None = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str | None) -> str | None:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("Name cannot be blank")
        return value


class CategoryRequest(BaseModel):
    name: str = Field(min_length=1)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name is required")
        return value

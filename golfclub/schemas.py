"""
Request payload validation with pydantic v2 models.

Field shape (formats, lengths, ranges) is checked here so the lifecycle
managers only ever see well-formed data.
"""
from __future__ import annotations

import re
from datetime import date
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

_NAME_RE = re.compile(r"^[a-zA-Z\s]{2,50}$")
_PHONE_RE = re.compile(r"^\d{3}-\d{3}-\d{4}$")


class MemberPayload(BaseModel):
    """
    Member profile as submitted on create/update.

    Attributes
    ----------
    name       : 2 to 50 letters or spaces
    address    : non-blank
    email      : valid address, unique across members
    phone      : optional, DDD-DDD-DDDD, unique across members
    start_date : today or earlier
    duration   : membership length in months (1 to 60)
    version    : optional version stamp the client last read
    """

    name: str
    address: str
    email: EmailStr
    phone: Optional[str] = None
    start_date: date
    duration: int = Field(ge=1, le=60)
    version: Optional[int] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not _NAME_RE.match(v):
            raise ValueError("Name must be 2 to 50 letters or spaces")
        return v

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Address is required")
        return v

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not _PHONE_RE.match(v):
            raise ValueError("Phone must match DDD-DDD-DDDD")
        return v

    @field_validator("start_date")
    @classmethod
    def validate_start_date(cls, v: date) -> date:
        if v > date.today():
            raise ValueError("Start date cannot be in the future")
        return v


class TournamentPayload(BaseModel):
    """
    Tournament definition as submitted on create/update.

    Date window and past-start rules are enforced by the tournament manager,
    which reports them as InvalidWindow / PastStart.
    """

    start_date: date
    end_date: date
    location: str
    entry_fee: float = Field(gt=0)
    cash_prize_amount: float = Field(default=0.0, ge=0)
    minimum_participants: int = Field(default=2, ge=2)
    maximum_participants: int = Field(default=100, le=100)
    version: Optional[int] = None

    @field_validator("location")
    @classmethod
    def validate_location(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Location is required")
        return v


class StatusPayload(BaseModel):
    status: str

    @field_validator("status")
    @classmethod
    def normalize_status(cls, v: str) -> str:
        return v.strip().upper()


class DurationPayload(BaseModel):
    months: int = Field(gt=0)


class DateRangeQuery(BaseModel):
    start: date
    end: date

    @model_validator(mode="after")
    def validate_order(self) -> "DateRangeQuery":
        if self.end < self.start:
            raise ValueError("End date cannot be before start date")
        return self

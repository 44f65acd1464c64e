"""Restaurant account and preferences schemas."""

from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import EmailStr, Field

from restopos.core.rbac import UserRole
from restopos.schemas.common import CamelModel


class PreferencesIn(CamelModel):
    """Recognized restaurant preference keys. Unknown keys are ignored."""

    support_plan: Optional[str] = Field(default=None, max_length=50)
    support_tier: Optional[str] = Field(default=None, max_length=50)
    license_key: Optional[str] = Field(default=None, max_length=255)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    payment_status: Optional[str] = Field(default=None, max_length=50)
    notes: Optional[str] = None


class PreferencesResponse(PreferencesIn):
    pass


class RestaurantUpdate(CamelModel):
    """Restaurant profile update schema."""

    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, max_length=20)
    street: Optional[str] = Field(default=None, max_length=255)
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=100)
    zip_code: Optional[str] = Field(default=None, max_length=20)
    country: Optional[str] = Field(default=None, max_length=100)
    preferences: Optional[PreferencesIn] = None


class RestaurantResponse(CamelModel):
    id: int
    email: str
    first_name: str
    last_name: str
    full_name: str
    phone: Optional[str] = None
    role: UserRole
    is_verified: bool
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    preferences: Optional[PreferencesResponse] = None

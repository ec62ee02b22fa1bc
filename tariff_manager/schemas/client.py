"""Schémas Client / Client schemas."""

from pydantic import BaseModel, ConfigDict, Field

from tariff_manager.models.client import Currency


class ClientBase(BaseModel):
    client_code: str = Field(min_length=1, max_length=30)
    company_name: str = Field(min_length=1, max_length=200)
    trading_name: str | None = None
    contact_person: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    province: str | None = None
    postal_code: str | None = None
    vat_number: str | None = None
    registration_number: str | None = None
    payment_terms: int = Field(default=30, ge=0)
    credit_limit: float | None = Field(default=None, ge=0)
    currency: Currency = Currency.ZAR
    notes: str | None = None


class ClientCreate(ClientBase):
    pass


class ClientUpdate(BaseModel):
    company_name: str | None = None
    trading_name: str | None = None
    contact_person: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    province: str | None = None
    postal_code: str | None = None
    vat_number: str | None = None
    registration_number: str | None = None
    payment_terms: int | None = Field(default=None, ge=0)
    credit_limit: float | None = Field(default=None, ge=0)
    currency: Currency | None = None
    is_active: bool | None = None
    notes: str | None = None


class ClientRead(ClientBase):
    model_config = ConfigDict(from_attributes=True)
    id: int
    is_active: bool
    created_at: str | None = None
    updated_at: str | None = None

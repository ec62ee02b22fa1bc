"""Schémas Fiche tarifaire / Rate sheet schemas."""

from datetime import date

from pydantic import BaseModel


class RateSheetRequest(BaseModel):
    effective_date: date | None = None
    valid_until: date | None = None
    notes: str | None = None
    include_terms: bool = True
    terms: str | None = None
    show_vat_marker: bool = True
    prepared_by: str | None = None
    reference: str | None = None

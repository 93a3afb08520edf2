"""Pydantic model for the card-metadata lookup response."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _to_text(value: object) -> object:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


class CardPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    bin: str | None = None
    brand: str | None = None
    type: str | None = None
    category: str | None = None
    issuer: str | None = None
    country: str | None = None
    issuer_phone: str | None = Field(default=None, alias="issuerPhone")
    issuer_url: str | None = Field(default=None, alias="issuerUrl")

    @field_validator(
        "bin",
        "brand",
        "type",
        "category",
        "issuer",
        "country",
        "issuer_phone",
        "issuer_url",
        mode="before",
    )
    @classmethod
    def normalize_text(cls, value: object) -> object:
        return _to_text(value)

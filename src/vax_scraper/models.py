"""Data models for VAX product information."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator


def _now() -> datetime:
    return datetime.now().replace(microsecond=0)


class ProductRecord(BaseModel):
    """Represents one product row scraped from a VAX listing."""

    product_code: str = Field(min_length=1)
    category: str = ""
    description: str = ""
    gross_price: float = Field(ge=0)
    price_currency: Literal["PLN"] = "PLN"
    availability: str = ""
    scraped_at: datetime = Field(default_factory=_now)

    @field_validator("scraped_at")
    @classmethod
    def _drop_microseconds(cls, value: datetime) -> datetime:
        return value.replace(microsecond=0)

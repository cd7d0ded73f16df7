"""
Feed Schemas

Pydantic models for the raw availability feed.

Property entries are validated as a whole; their records stay loose here and
are validated one at a time by the normalizer so a single bad record never
rejects the whole feed.
"""

import math
from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field, AliasChoices, field_validator


class RawRecord(BaseModel):
    """One date range of a property as published by the feed"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    start: str
    end: str
    status: str
    price_total: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("price_total", "price_total_eur"),
        description="Total price of the range, FREE ranges only"
    )

    @field_validator('price_total')
    @classmethod
    def validate_price_total(cls, v: Optional[float]) -> Optional[float]:
        """NaN and infinite totals are not prices"""
        if v is not None and not math.isfinite(v):
            raise ValueError("price_total must be a finite number")
        return v


class RawProperty(BaseModel):
    """A property entry with its raw records"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = None
    label: Optional[str] = None
    records: List[Any] = Field(
        default_factory=list,
        validation_alias=AliasChoices("records", "weeks")
    )

    @field_validator('id', 'label', mode='before')
    @classmethod
    def coerce_to_string(cls, v):
        if v is None:
            return v
        return str(v).strip() or None


class RawFeed(BaseModel):
    """Feed envelope"""
    model_config = ConfigDict(extra="ignore")

    version: Optional[str] = None
    generated_at: Optional[str] = None
    season: Optional[str] = None
    lots: List[RawProperty] = Field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Any) -> "RawFeed":
        """
        Build a feed from any of the accepted shapes:
        - a list of property objects
        - an object with a "lots" list
        - a list whose first element is such an object
        An empty list is an empty feed.
        """
        if isinstance(payload, list):
            if payload and isinstance(payload[0], dict) and "lots" in payload[0]:
                return cls.model_validate(payload[0])
            return cls.model_validate({"lots": payload})
        return cls.model_validate(payload)

# src/condora/api/schemas.py
from __future__ import annotations

from typing import Any, Mapping

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel, to_snake


def snake_keys(data: Mapping[str, Any] | None) -> dict[str, Any]:
    """Accept both `developerName` and `developer_name` style keys."""
    return {to_snake(str(k)): v for k, v in (data or {}).items()}


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


# --------------------------------------------
# Mortgage calculator
# --------------------------------------------

class MortgageRequest(_CamelModel):
    """
    Raw calculator form. Values stay untyped here; BorrowerProfile does the
    lenient coercion so "3.5%" or "" never produce a 422.
    """
    monthly_income: Any = None
    variable_income: Any = None
    existing_debt: Any = None
    age: Any = None
    loan_tenure_years: Any = Field(
        default=None,
        validation_alias=AliasChoices("loan_tenure_years", "loanTenureYears", "loanTenure"),
    )
    interest_rate: Any = None
    property_price: Any = None
    property_count: Any = None
    property_category: Any = None

    def profile_data(self) -> dict[str, Any]:
        return {k: v for k, v in self.model_dump().items() if v is not None}


# --------------------------------------------
# Admin import
# --------------------------------------------

class ImportRequest(_CamelModel):
    record: dict[str, Any] = Field(default_factory=dict)
    overrides: dict[str, Any] | None = None
    force_reimport: bool = False


class ImportUrlRequest(_CamelModel):
    url: str
    overrides: dict[str, Any] | None = None
    force_reimport: bool = False
    timeout_s: float | None = Field(default=None, gt=0)


# --------------------------------------------
# Property search
# --------------------------------------------

class PropertySearch(_CamelModel):
    location: str | None = None
    property_type: str | None = None
    bedrooms: int | None = None
    bathrooms: int | None = None
    min_price: float | None = None
    max_price: float | None = None
    min_sqft: int | None = None
    max_sqft: int | None = None
    is_overseas: bool | None = None
    launch_type: str | None = None
    limit: int = Field(default=200, ge=1, le=1000)

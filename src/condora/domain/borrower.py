# src/condora/domain/borrower.py
from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, field_validator

from condora.adapters.logging_utils import get_logger

logger = get_logger(__name__)

PropertyCategory = Literal["private", "hdb", "ec"]

# longest loan term the calculator will amortize over
MAX_TENURE_YEARS = 100

_CATEGORY_ALIASES = {
    "private": "private",
    "condo": "private",
    "condominium": "private",
    "hdb": "hdb",
    "ec": "ec",
    "executive condominium": "ec",
    "executive-condominium": "ec",
    "executive_condominium": "ec",
}


def to_amount(val: Any, field_name: str = "") -> float:
    """
    Lenient converter for calculator inputs.
    Returns 0.0 when missing/blank/garbage/NaN, strips '%', ',' and '$'.
    """
    if val is None or isinstance(val, bool):
        out = None
    elif isinstance(val, (int, float)):
        out = float(val)
    elif isinstance(val, str):
        s = val.strip().replace(",", "").replace("$", "")
        if s.endswith("%"):
            s = s[:-1]
        try:
            out = float(s) if s else None
        except ValueError:
            out = None
    else:
        out = None

    if out is None or math.isnan(out) or math.isinf(out):
        if val not in (None, ""):
            logger.debug(
                "input_coerced_to_zero",
                extra={"context": {"field": field_name, "value": repr(val)[:80]}},
            )
        return 0.0
    return out


class BorrowerProfile(BaseModel):
    """
    Calculator input. Every numeric field accepts numbers or numeric strings
    and degrades to 0 instead of failing validation.
    """
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    monthly_income: float = 0.0
    variable_income: float = 0.0
    existing_debt: float = 0.0
    age: int = 0
    loan_tenure_years: int = 0
    interest_rate: float = 0.0  # annual percent, 3.5 means 3.5%
    property_price: float = 0.0
    property_count: int = 1
    property_category: PropertyCategory = "private"

    @field_validator(
        "monthly_income",
        "variable_income",
        "existing_debt",
        "interest_rate",
        "property_price",
        mode="before",
    )
    @classmethod
    def _amount(cls, v: Any, info) -> float:
        return max(0.0, to_amount(v, info.field_name))

    @field_validator("age", mode="before")
    @classmethod
    def _whole_years(cls, v: Any, info) -> int:
        return max(0, int(to_amount(v, info.field_name)))

    @field_validator("loan_tenure_years", mode="before")
    @classmethod
    def _tenure(cls, v: Any) -> int:
        years = max(0, int(to_amount(v, "loan_tenure_years")))
        if years > MAX_TENURE_YEARS:
            logger.debug(
                "tenure_capped",
                extra={"context": {"requested": years, "capped": MAX_TENURE_YEARS}},
            )
            return MAX_TENURE_YEARS
        return years

    @field_validator("property_count", mode="before")
    @classmethod
    def _count(cls, v: Any) -> int:
        return max(1, int(to_amount(v, "property_count")))

    @field_validator("property_category", mode="before")
    @classmethod
    def _category(cls, v: Any) -> str:
        key = str(v or "").strip().lower()
        return _CATEGORY_ALIASES.get(key, "private")

    @property
    def msr_applies(self) -> bool:
        return self.property_category in ("hdb", "ec")


@dataclass
class EligibilityVerdict:
    max_loan_amount: float
    down_payment: float
    monthly_payment: float
    total_interest: float
    total_payment: float
    ltv: float               # realized loan / price
    tdsr: float              # (installment + debt) / adjusted income
    msr: float               # installment / adjusted income
    msr_applicable: bool
    is_eligible: bool
    ltv_limit: float
    loan_cap_ltv: float
    loan_cap_tdsr: float
    loan_cap_msr: float      # inf when MSR does not apply
    adjusted_income: float
    property_count: int
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        out = asdict(self)
        for k, v in out.items():
            if isinstance(v, float) and math.isinf(v):
                out[k] = None
        return out

# src/condora/domain/policy.py
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator


class LtvTable(BaseModel):
    """
    Loan-to-value ceilings as fractions of price, keyed by how many properties
    the borrower will hold. "extended" applies when tenure or age crosses the
    policy thresholds.
    """
    model_config = ConfigDict(frozen=True)

    first_normal: float = 0.75
    first_extended: float = 0.45
    second_normal: float = 0.45
    second_extended: float = 0.25
    third_normal: float = 0.35
    third_extended: float = 0.15

    def limit(self, property_count: int, extended: bool) -> float:
        if property_count <= 1:
            return self.first_extended if extended else self.first_normal
        if property_count == 2:
            return self.second_extended if extended else self.second_normal
        return self.third_extended if extended else self.third_normal

    @model_validator(mode="after")
    def _check_ranges(self) -> "LtvTable":
        pairs = [
            ("first", self.first_normal, self.first_extended),
            ("second", self.second_normal, self.second_extended),
            ("third", self.third_normal, self.third_extended),
        ]
        for name, normal, extended in pairs:
            for v in (normal, extended):
                if not (0.0 < v <= 1.0):
                    raise ValueError(f"LTV ceiling for {name} property must be in (0, 1]")
            if extended > normal:
                raise ValueError(f"extended LTV for {name} property cannot exceed the normal LTV")
        return self


class LendingPolicy(BaseModel):
    model_config = ConfigDict(frozen=True)

    tdsr_limit: float = Field(default=0.55, description="total debt servicing ceiling")
    msr_limit: float = Field(default=0.30, description="mortgage servicing ceiling, HDB/EC only")
    stress_test_rate: float = Field(default=0.04, description="annual rate used to size capacity")
    variable_income_haircut: float = Field(default=0.30)
    min_monthly_income: float = Field(default=3000.0)

    # Above either threshold the lower "extended" LTV applies
    extended_tenure_years: int = 30
    extended_age: int = 65
    retirement_age: int = 65

    # Loans below this share of price are flagged as insufficient capacity
    min_loan_fraction: float = 0.10

    ltv: LtvTable = Field(default_factory=LtvTable)

    @model_validator(mode="after")
    def _check_invariants(self) -> "LendingPolicy":
        for name in ("tdsr_limit", "msr_limit"):
            v = getattr(self, name)
            if not (0.0 < v <= 1.0):
                raise ValueError(f"{name} must be in (0, 1]")
        if not (0.0 <= self.variable_income_haircut < 1.0):
            raise ValueError("variable_income_haircut must be in [0, 1)")
        if not (0.0 <= self.stress_test_rate < 1.0):
            raise ValueError("stress_test_rate must be an annual fraction in [0, 1)")
        if self.min_monthly_income < 0:
            raise ValueError("min_monthly_income must be non-negative")
        return self


DEFAULT_POLICY = LendingPolicy()


def policy_from_config(cfg) -> LendingPolicy:
    """Build the lending policy from AppConfig-like settings."""
    return LendingPolicy(
        tdsr_limit=cfg.TDSR_LIMIT,
        msr_limit=cfg.MSR_LIMIT,
        stress_test_rate=cfg.STRESS_TEST_RATE,
        variable_income_haircut=cfg.VARIABLE_INCOME_HAIRCUT,
        min_monthly_income=cfg.MIN_MONTHLY_INCOME,
    )

# src/condora/services/affordability.py
from __future__ import annotations

import math
from typing import Any, Mapping

from condora.domain.borrower import BorrowerProfile, EligibilityVerdict
from condora.domain.finance import annuity_payment, finite_or_zero, principal_from_payment
from condora.domain.policy import DEFAULT_POLICY, LendingPolicy

_ORDINALS = {1: "1st", 2: "2nd"}

# tolerance for comparing realized ratios against ceilings
_EPS = 1e-9


def _ratio(num: float, denom: float) -> float:
    if denom <= 0:
        return 0.0
    return finite_or_zero(num / denom)


def _pct(x: float) -> str:
    return f"{x * 100:.1f}%"


def _limit_pct(x: float) -> str:
    return f"{x * 100:g}%"


def calculate_eligibility(
    profile: BorrowerProfile | Mapping[str, Any],
    policy: LendingPolicy = DEFAULT_POLICY,
) -> EligibilityVerdict:
    """
    Size the largest loan the borrower qualifies for and report whether the
    purchase clears LTV / TDSR / MSR.

    Capacity is sized at the policy stress-test rate; the installment shown to
    the borrower uses their quoted nominal rate.
    """
    if not isinstance(profile, BorrowerProfile):
        profile = BorrowerProfile.model_validate(dict(profile))

    price = profile.property_price
    debt = profile.existing_debt
    tenure = profile.loan_tenure_years
    age = profile.age
    months = tenure * 12

    # 1) Adjusted income (haircut on variable component)
    adjusted_income = profile.monthly_income + profile.variable_income * (
        1 - policy.variable_income_haircut
    )

    # 2) LTV ceiling
    extended = tenure > policy.extended_tenure_years or age > policy.extended_age
    ltv_limit = policy.ltv.limit(profile.property_count, extended)

    # 3) Cap by LTV
    cap_ltv = price * ltv_limit

    # 4) Cap by TDSR at the stress rate
    stress_monthly = policy.stress_test_rate / 12
    tdsr_capacity = adjusted_income * policy.tdsr_limit - debt
    cap_tdsr = principal_from_payment(stress_monthly, months, max(0.0, tdsr_capacity))

    # 5) Cap by MSR (HDB / EC only)
    cap_msr = math.inf
    if profile.msr_applies:
        msr_capacity = adjusted_income * policy.msr_limit
        cap_msr = principal_from_payment(stress_monthly, months, max(0.0, msr_capacity))

    # 6-7) Loan and down payment
    max_loan = max(0.0, finite_or_zero(min(cap_ltv, cap_tdsr, cap_msr, price)))
    down_payment = max(0.0, price - max_loan)

    # 8-9) Repayment at the nominal rate
    nominal_monthly = profile.interest_rate / 100 / 12
    monthly_payment = finite_or_zero(annuity_payment(nominal_monthly, months, max_loan))
    total_payment = monthly_payment * months
    total_interest = total_payment - max_loan

    # 10) Realized ratios
    ltv = _ratio(max_loan, price)
    tdsr = _ratio(monthly_payment + debt, adjusted_income)
    msr = _ratio(monthly_payment, adjusted_income)

    # 11) Eligibility and warnings
    warnings: list[str] = []
    is_eligible = True

    if price <= 0:
        warnings.append("Property price must be greater than zero")
        is_eligible = False

    if months <= 0:
        warnings.append("Loan tenure must be at least one year")
        is_eligible = False

    if tdsr_capacity <= 0:
        if debt > 0:
            warnings.append("Existing debt exceeds TDSR capacity")
        else:
            warnings.append("No TDSR capacity - income is required to service a loan")
        is_eligible = False
    elif price > 0 and months > 0 and max_loan < price * policy.min_loan_fraction:
        warnings.append("Loan amount too low - insufficient borrowing capacity")
        is_eligible = False

    if tdsr > policy.tdsr_limit + _EPS:
        warnings.append(
            f"TDSR ({_pct(tdsr)}) exceeds limit of {_limit_pct(policy.tdsr_limit)}"
        )
        is_eligible = False

    if profile.msr_applies and msr > policy.msr_limit + _EPS:
        warnings.append(
            f"MSR ({_pct(msr)}) exceeds limit of {_limit_pct(policy.msr_limit)} for HDB/EC"
        )
        is_eligible = False

    if ltv > ltv_limit + _EPS:
        ordinal = _ORDINALS.get(profile.property_count, "3rd+")
        warnings.append(
            f"LTV ({_pct(ltv)}) exceeds limit of {_limit_pct(ltv_limit)} for {ordinal} property"
        )
        is_eligible = False

    # Advisory only
    if adjusted_income < policy.min_monthly_income:
        warnings.append(
            f"Minimum income requirement may not be met (SGD {policy.min_monthly_income:,.0f})"
        )

    if extended:
        warnings.append("Extended loan tenure or age may result in lower LTV limits")

    if age > 0 and age + tenure > policy.retirement_age:
        warnings.append(
            f"Loan may extend beyond typical retirement age ({policy.retirement_age})"
        )

    if profile.interest_rate / 100 > policy.stress_test_rate:
        warnings.append(
            f"Quoted rate ({profile.interest_rate:g}%) is above the stress-test rate "
            f"({_limit_pct(policy.stress_test_rate)}); repayments may exceed the assessed capacity"
        )

    return EligibilityVerdict(
        max_loan_amount=max_loan,
        down_payment=down_payment,
        monthly_payment=monthly_payment,
        total_interest=finite_or_zero(total_interest),
        total_payment=finite_or_zero(total_payment),
        ltv=ltv,
        tdsr=tdsr,
        msr=msr,
        msr_applicable=profile.msr_applies,
        is_eligible=is_eligible,
        ltv_limit=ltv_limit,
        loan_cap_ltv=finite_or_zero(cap_ltv),
        loan_cap_tdsr=finite_or_zero(cap_tdsr),
        loan_cap_msr=cap_msr if math.isinf(cap_msr) else finite_or_zero(cap_msr),
        adjusted_income=adjusted_income,
        property_count=profile.property_count,
        warnings=warnings,
    )

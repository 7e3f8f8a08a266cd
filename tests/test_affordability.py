# tests/test_affordability.py
import math

import pytest

from condora.domain.borrower import BorrowerProfile
from condora.domain.policy import LendingPolicy
from condora.services.affordability import calculate_eligibility


def _profile(**overrides):
    base = {
        "property_price": 1_000_000,
        "monthly_income": 8_000,
        "variable_income": 0,
        "existing_debt": 0,
        "age": 35,
        "loan_tenure_years": 25,
        "interest_rate": 3.5,
        "property_count": 1,
        "property_category": "private",
    }
    base.update(overrides)
    return base


def test_first_private_property_is_capped_by_ltv():
    v = calculate_eligibility(_profile())

    assert v.ltv_limit == pytest.approx(0.75)
    assert v.loan_cap_ltv == pytest.approx(750_000)
    # 8,000 * 55% = 4,400/month sized at 4% over 25 years
    assert v.loan_cap_tdsr == pytest.approx(833_589, rel=1e-3)
    assert v.max_loan_amount == pytest.approx(min(v.loan_cap_ltv, v.loan_cap_tdsr))
    assert v.max_loan_amount == pytest.approx(750_000)
    assert v.down_payment == pytest.approx(250_000)

    assert v.monthly_payment == pytest.approx(3_754.6, rel=1e-3)
    assert v.tdsr == pytest.approx(0.469, abs=1e-3)
    assert v.ltv == pytest.approx(0.75)
    assert v.is_eligible is True
    assert v.warnings == []


def test_total_payment_and_interest_are_consistent():
    v = calculate_eligibility(_profile())
    assert v.total_payment == pytest.approx(v.monthly_payment * 300)
    assert v.total_interest == pytest.approx(v.total_payment - v.max_loan_amount)


def test_zero_interest_rate_amortizes_linearly():
    v = calculate_eligibility(_profile(interest_rate=0))
    assert v.monthly_payment == pytest.approx(v.max_loan_amount / 300)
    assert v.total_interest == pytest.approx(0.0)


def test_variable_income_takes_haircut():
    v = calculate_eligibility(_profile(monthly_income=5_000, variable_income=1_000))
    assert v.adjusted_income == pytest.approx(5_700)


def test_second_property_uses_lower_ltv():
    v = calculate_eligibility(_profile(property_count=2, monthly_income=20_000))
    assert v.ltv_limit == pytest.approx(0.45)
    assert v.max_loan_amount == pytest.approx(450_000)


def test_third_property_count_clamps_to_third_tier():
    v = calculate_eligibility(_profile(property_count=5, monthly_income=20_000))
    assert v.ltv_limit == pytest.approx(0.35)
    assert v.property_count == 5


def test_long_tenure_switches_to_extended_ltv():
    v = calculate_eligibility(_profile(loan_tenure_years=35, age=32))
    assert v.ltv_limit == pytest.approx(0.45)
    assert "Extended loan tenure or age may result in lower LTV limits" in v.warnings
    # 32 + 35 runs past 65
    assert "Loan may extend beyond typical retirement age (65)" in v.warnings


def test_hdb_purchase_is_bound_by_msr():
    v = calculate_eligibility(
        _profile(property_price=500_000, monthly_income=5_000, property_category="HDB")
    )
    assert v.msr_applicable is True
    # 5,000 * 30% = 1,500/month sized at 4% over 25 years
    assert v.loan_cap_msr == pytest.approx(284_178, rel=1e-3)
    assert v.max_loan_amount == pytest.approx(v.loan_cap_msr)
    assert v.msr == pytest.approx(0.2845, abs=1e-3)
    assert v.is_eligible is True
    assert not any(w.startswith("MSR") for w in v.warnings)


def test_msr_breach_at_quoted_rate_above_stress_rate():
    v = calculate_eligibility(
        _profile(
            property_price=500_000,
            monthly_income=5_000,
            interest_rate=5.0,
            property_category="executive-condominium",
        )
    )
    assert v.msr == pytest.approx(0.332, abs=2e-3)
    assert v.is_eligible is False
    assert any(w.startswith("MSR (") and w.endswith("exceeds limit of 30% for HDB/EC") for w in v.warnings)
    assert any(w.startswith("Quoted rate (5%)") for w in v.warnings)


def test_private_property_has_no_msr_cap():
    v = calculate_eligibility(_profile())
    assert v.msr_applicable is False
    assert math.isinf(v.loan_cap_msr)
    assert v.to_dict()["loan_cap_msr"] is None


def test_debt_above_tdsr_capacity_is_ineligible():
    v = calculate_eligibility(_profile(monthly_income=5_000, existing_debt=3_000))
    assert v.max_loan_amount == 0
    assert v.down_payment == pytest.approx(1_000_000)
    assert v.is_eligible is False
    assert "Existing debt exceeds TDSR capacity" in v.warnings


def test_tiny_loan_relative_to_price_is_flagged():
    v = calculate_eligibility(_profile(property_price=10_000_000, monthly_income=3_000))
    assert v.max_loan_amount < 1_000_000
    assert v.is_eligible is False
    assert "Loan amount too low - insufficient borrowing capacity" in v.warnings


def test_low_income_is_advisory_only():
    v = calculate_eligibility(_profile(property_price=300_000, monthly_income=2_500))
    assert "Minimum income requirement may not be met (SGD 3,000)" in v.warnings
    assert v.is_eligible is True


def test_zero_price_is_rejected_without_nan():
    v = calculate_eligibility(_profile(property_price=0))
    assert v.is_eligible is False
    assert "Property price must be greater than zero" in v.warnings
    for value in v.to_dict().values():
        if isinstance(value, float):
            assert not math.isnan(value)


def test_zero_tenure_is_rejected():
    v = calculate_eligibility(_profile(loan_tenure_years=0))
    assert v.is_eligible is False
    assert v.max_loan_amount == 0
    assert "Loan tenure must be at least one year" in v.warnings


def test_garbage_inputs_degrade_to_zero():
    v = calculate_eligibility(
        {
            "property_price": "1,000,000",
            "monthly_income": "not a number",
            "existing_debt": None,
            "loan_tenure_years": "25",
            "interest_rate": "3.5%",
        }
    )
    assert v.adjusted_income == 0
    assert v.max_loan_amount == 0
    assert v.is_eligible is False


def test_string_profile_coercion():
    p = BorrowerProfile.model_validate(
        {
            "monthly_income": "8,000",
            "interest_rate": "3.5%",
            "property_count": "0",
            "existing_debt": "-200",
            "property_category": "Executive Condominium",
            "age": float("nan"),
        }
    )
    assert p.monthly_income == 8_000
    assert p.interest_rate == 3.5
    assert p.property_count == 1
    assert p.existing_debt == 0
    assert p.property_category == "ec"
    assert p.age == 0


def test_unknown_category_is_private():
    p = BorrowerProfile.model_validate({"property_category": "bungalow"})
    assert p.property_category == "private"
    assert p.msr_applies is False


def test_same_input_same_verdict():
    a = calculate_eligibility(_profile(variable_income=2_000, existing_debt=500))
    b = calculate_eligibility(_profile(variable_income=2_000, existing_debt=500))
    assert a == b


def test_custom_policy_is_respected():
    strict = LendingPolicy(tdsr_limit=0.40, stress_test_rate=0.05)
    v = calculate_eligibility(_profile(), strict)
    assert v.max_loan_amount < 750_000
    assert v.max_loan_amount == pytest.approx(v.loan_cap_tdsr)


def test_no_income_and_no_debt_reports_missing_capacity():
    v = calculate_eligibility(_profile(monthly_income=0))
    assert v.is_eligible is False
    assert "No TDSR capacity - income is required to service a loan" in v.warnings
    assert "Existing debt exceeds TDSR capacity" not in v.warnings


@pytest.mark.parametrize(
    "overrides",
    [
        {"interest_rate": "1000000"},
        {"interest_rate": 1e300},
        {"loan_tenure_years": "100000"},
        {"loan_tenure_years": 1e300, "interest_rate": 0},
    ],
)
def test_extreme_rate_or_tenure_does_not_raise(overrides):
    v = calculate_eligibility(_profile(**overrides))
    out = v.to_dict()

    assert v.max_loan_amount >= 0
    assert all(not (isinstance(x, float) and math.isnan(x)) for x in out.values())


def test_tenure_is_capped():
    p = BorrowerProfile.model_validate({"loan_tenure_years": "100000"})
    assert p.loan_tenure_years == 100

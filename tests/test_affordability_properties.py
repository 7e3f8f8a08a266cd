# tests/test_affordability_properties.py

import math

from hypothesis import assume, given, strategies as st

from condora.domain.policy import DEFAULT_POLICY
from condora.services.affordability import calculate_eligibility


def _close_le(a, b):
    return a <= b * (1 + 1e-9) + 1e-6


profiles = st.fixed_dictionaries(
    {
        "property_price": st.floats(min_value=0.0, max_value=5_000_000.0),
        "monthly_income": st.floats(min_value=0.0, max_value=50_000.0),
        "variable_income": st.floats(min_value=0.0, max_value=20_000.0),
        "existing_debt": st.floats(min_value=0.0, max_value=10_000.0),
        "age": st.integers(min_value=21, max_value=75),
        "loan_tenure_years": st.integers(min_value=0, max_value=35),
        "interest_rate": st.floats(min_value=0.0, max_value=8.0),
        "property_count": st.integers(min_value=1, max_value=4),
        "property_category": st.sampled_from(["private", "hdb", "ec"]),
    }
)


@given(p=profiles)
def test_loan_never_exceeds_any_cap(p):
    v = calculate_eligibility(p)

    assert v.max_loan_amount >= 0
    assert _close_le(v.max_loan_amount, v.loan_cap_ltv)
    assert _close_le(v.max_loan_amount, v.loan_cap_tdsr)
    assert _close_le(v.max_loan_amount, v.loan_cap_msr)
    assert _close_le(v.max_loan_amount, p["property_price"])
    assert math.isclose(
        v.max_loan_amount + v.down_payment, p["property_price"], rel_tol=1e-9, abs_tol=1e-6
    )


@given(p=profiles)
def test_verdict_is_nan_free(p):
    for value in calculate_eligibility(p).to_dict().values():
        if isinstance(value, float):
            assert not math.isnan(value)


@given(p=profiles)
def test_eligible_verdict_respects_ceilings(p):
    v = calculate_eligibility(p)
    assume(v.is_eligible)

    assert _close_le(v.tdsr, DEFAULT_POLICY.tdsr_limit)
    assert _close_le(v.ltv, v.ltv_limit)
    if v.msr_applicable:
        assert _close_le(v.msr, DEFAULT_POLICY.msr_limit)


@given(p=profiles)
def test_quoted_rate_at_or_below_stress_rate_keeps_tdsr_in_bounds(p):
    assume(p["interest_rate"] / 100 <= DEFAULT_POLICY.stress_test_rate)
    v = calculate_eligibility(p)
    assume(v.adjusted_income >= 1.0)
    assume(v.adjusted_income * DEFAULT_POLICY.tdsr_limit > p["existing_debt"])

    assert _close_le(v.tdsr, DEFAULT_POLICY.tdsr_limit)


@given(p=profiles, extra=st.floats(min_value=1.0, max_value=10_000.0))
def test_more_income_never_lowers_the_loan(p, extra):
    v1 = calculate_eligibility(p)
    v2 = calculate_eligibility({**p, "monthly_income": p["monthly_income"] + extra})

    assert v2.max_loan_amount >= v1.max_loan_amount * (1 - 1e-12)


@given(p=profiles)
def test_realized_ltv_is_loan_over_price(p):
    assume(p["property_price"] >= 1.0)
    v = calculate_eligibility(p)

    assert math.isclose(v.ltv, v.max_loan_amount / p["property_price"], rel_tol=1e-12, abs_tol=1e-15)
    assert _close_le(v.ltv, v.ltv_limit)


extreme_profiles = st.fixed_dictionaries(
    {
        "property_price": st.floats(min_value=0.0, max_value=1e12),
        "monthly_income": st.floats(min_value=0.0, max_value=1e9),
        "existing_debt": st.floats(min_value=0.0, max_value=1e9),
        "age": st.integers(min_value=0, max_value=10**6),
        "loan_tenure_years": st.integers(min_value=0, max_value=10**6),
        "interest_rate": st.floats(min_value=0.0, max_value=1e12),
        "property_category": st.sampled_from(["private", "hdb"]),
    }
)


@given(p=extreme_profiles)
def test_extreme_inputs_never_raise(p):
    v = calculate_eligibility(p)

    assert v.max_loan_amount >= 0
    assert _close_le(v.max_loan_amount, p["property_price"])
    for value in v.to_dict().values():
        if isinstance(value, float):
            assert not math.isnan(value)

# tests/test_finance.py
import math

import pytest
from hypothesis import given, strategies as st

from condora.domain.finance import annuity_payment, finite_or_zero, principal_from_payment


def test_zero_rate_is_straight_line():
    assert annuity_payment(0.0, 300, 750_000) == pytest.approx(2_500)
    assert principal_from_payment(0.0, 300, 2_500) == pytest.approx(750_000)


def test_degenerate_terms_give_zero():
    assert annuity_payment(0.003, 0, 100_000) == 0.0
    assert annuity_payment(0.003, 300, 0) == 0.0
    assert principal_from_payment(0.003, 0, 1_000) == 0.0
    assert principal_from_payment(0.003, 300, -5) == 0.0


def test_known_installment():
    # 750k over 25 years at 3.5% p.a.
    assert annuity_payment(0.035 / 12, 300, 750_000) == pytest.approx(3_754.6, rel=1e-3)


@given(
    rate=st.floats(min_value=0.0, max_value=0.01),
    months=st.integers(min_value=1, max_value=420),
    payment=st.floats(min_value=1.0, max_value=50_000.0),
)
def test_principal_and_payment_are_inverse(rate, months, payment):
    principal = principal_from_payment(rate, months, payment)
    assert annuity_payment(rate, months, principal) == pytest.approx(payment, rel=1e-9)


def test_finite_or_zero():
    assert finite_or_zero(float("nan")) == 0.0
    assert math.isinf(finite_or_zero(math.inf))
    assert finite_or_zero(1.5) == 1.5


def test_huge_rate_or_term_stays_finite():
    # payment tends to P*r once (1+r)^n is beyond float range
    assert annuity_payment(10.0, 1_200, 1_000) == pytest.approx(10_000)
    assert principal_from_payment(10.0, 1_200, 10_000) == pytest.approx(1_000)
    assert annuity_payment(0.04 / 12, 120_000, 1_200) == pytest.approx(4.0)

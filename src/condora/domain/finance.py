import math


def _discount(rate_monthly: float, n_months: int) -> float:
    """1 - (1+r)^-n, finite for any r >= 0 and n >= 0."""
    return -math.expm1(-n_months * math.log1p(rate_monthly))


def annuity_payment(rate_monthly: float, n_months: int, principal: float) -> float:
    """
    Standard fixed-rate amortization formula:
    M = P * [ r(1+r)^n / ((1+r)^n - 1) ] = P * r / (1 - (1+r)^-n)
    """
    if n_months <= 0 or principal <= 0:
        return 0.0
    r = rate_monthly
    d = _discount(r, n_months)
    # r == 0, or so small that the discount rounds to 0
    if d == 0.0:
        return principal / n_months
    return principal * (r / d)


def principal_from_payment(rate_monthly: float, n_months: int, payment: float) -> float:
    """Present value of `payment` per month over `n_months` (inverse of annuity_payment)."""
    if n_months <= 0 or payment <= 0:
        return 0.0
    r = rate_monthly
    d = _discount(r, n_months)
    if d == 0.0:
        return payment * n_months
    return payment * (d / r)


def finite_or_zero(x: float) -> float:
    if x is None or math.isnan(x):
        return 0.0
    return x

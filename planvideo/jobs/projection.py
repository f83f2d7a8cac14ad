"""Maturity projection for the life goal maximizer plan.

Each yearly premium is compounded forward to a fixed horizon, then the scheduled
withdrawals are compounded forward from their withdrawal year and deducted.
Contributions are accumulated in increasing year order, then withdrawals in
increasing year order, so the floating point result is reproducible.
"""

from __future__ import annotations

from dataclasses import dataclass
import math

HORIZON_YEARS = 50
NET_RATE_8 = 0.0599227506
NET_RATE_4 = 0.0253346954
# year offset -> multiple of the annual premium
WITHDRAWAL_FACTORS: dict[int, float] = {15: 2.5, 20: 1.0, 27: 2.5}


@dataclass(slots=True, frozen=True)
class MaturityProjection:
    premium: float
    term_years: int
    withdrawals: dict[int, float]
    maturity_at_8: int
    maturity_at_4: int


def project(premium: float, term_years: int) -> MaturityProjection:
    if premium < 0:
        raise ValueError("premium must not be negative")
    if term_years < 0 or term_years > HORIZON_YEARS:
        raise ValueError(f"term_years must be between 0 and {HORIZON_YEARS}")

    withdrawals = {year: premium * factor for year, factor in sorted(WITHDRAWAL_FACTORS.items())}
    return MaturityProjection(
        premium=premium,
        term_years=term_years,
        withdrawals=withdrawals,
        maturity_at_8=_maturity_value(premium, term_years, withdrawals, NET_RATE_8),
        maturity_at_4=_maturity_value(premium, term_years, withdrawals, NET_RATE_4),
    )


def _maturity_value(premium: float, term_years: int, withdrawals: dict[int, float], rate: float) -> int:
    value = 0.0
    for year in range(1, term_years + 1):
        value += premium * math.pow(1 + rate, HORIZON_YEARS - year)
    for year in sorted(withdrawals):
        value -= withdrawals[year] * math.pow(1 + rate, HORIZON_YEARS - year)
    return _round_half_up(value)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)

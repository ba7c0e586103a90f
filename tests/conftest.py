"""Hypothesis strategies and profiles for the putvault test suite.

Strategies are composable: configs and option contracts are built from
the primitive decimal and datetime strategies below.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from decimal import Decimal

from hypothesis import HealthCheck, settings
from hypothesis import strategies as st
from hypothesis.strategies import SearchStrategy

from putvault.core.result import unwrap
from putvault.core.types import UtcDatetime
from putvault.orders.config import VaultConfig

# ---------------------------------------------------------------------------
# Hypothesis global settings
# ---------------------------------------------------------------------------

settings.register_profile(
    "ci",
    max_examples=200,
    suppress_health_check=[HealthCheck.too_slow],
    deadline=None,
)
settings.register_profile(
    "dev",
    max_examples=50,
    suppress_health_check=[HealthCheck.too_slow],
    deadline=None,
)
settings.load_profile("dev")


# ===================================================================
# PRIMITIVE STRATEGIES
# ===================================================================


def decimals_between(
    min_value: str, max_value: str, places: int = 6,
) -> SearchStrategy[Decimal]:
    """Finite Decimal values, no NaN, no Infinity."""
    return st.decimals(
        min_value=Decimal(min_value),
        max_value=Decimal(max_value),
        places=places,
        allow_nan=False,
        allow_infinity=False,
    )


def quote_amounts(min_value: str = "0.000001", max_value: str = "1000000") -> SearchStrategy[Decimal]:
    """Quote-asset amounts at 6 decimals."""
    return decimals_between(min_value, max_value, places=6)


def prices(min_value: str = "1", max_value: str = "100000") -> SearchStrategy[Decimal]:
    """Prices at 8 decimals."""
    return decimals_between(min_value, max_value, places=8)


@st.composite
def utc_datetimes(draw: st.DrawFn) -> UtcDatetime:
    dt = draw(st.datetimes(
        min_value=datetime(2020, 1, 1),
        max_value=datetime(2030, 12, 31, 23, 59, 59),
        timezones=st.just(UTC),
    ))
    return unwrap(UtcDatetime.parse(dt))


# ===================================================================
# DOMAIN STRATEGIES
# ===================================================================


@st.composite
def strike_multipliers(draw: st.DrawFn) -> tuple[Decimal, Decimal]:
    """(min, max) with 0 < min < max < 1."""
    lo = draw(decimals_between("0.01", "0.97", places=2))
    hi = draw(decimals_between(str(lo + Decimal("0.01")), "0.99", places=2))
    return lo, hi


@st.composite
def expiry_deltas(draw: st.DrawFn) -> tuple[timedelta, timedelta]:
    """(min, max) with 0 <= min < max, whole seconds."""
    lo = draw(st.integers(min_value=0, max_value=30 * 24 * 3600))
    gap = draw(st.integers(min_value=1, max_value=30 * 24 * 3600))
    return timedelta(seconds=lo), timedelta(seconds=lo + gap)


@st.composite
def vault_configs(draw: st.DrawFn) -> VaultConfig:
    return unwrap(VaultConfig.create(
        strike_multiplier=draw(strike_multipliers()),
        expiry_delta=draw(expiry_deltas()),
        option_premium_discount=draw(decimals_between("0", "0.5", places=4)),
        min_chunk_value=draw(decimals_between("0", "100", places=2)),
        max_order_active=timedelta(seconds=draw(st.integers(min_value=1, max_value=7 * 86400))),
    ))

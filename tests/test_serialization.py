"""Tests for putvault.core.serialization."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from decimal import Decimal

from putvault.core.result import Err, Ok, unwrap
from putvault.core.serialization import canonical_bytes
from putvault.core.types import UtcDatetime
from putvault.orders.events import ExpiryDeltaChanged, OptionRedeemed

_TS = UtcDatetime(value=datetime(2025, 6, 15, 10, 0, tzinfo=UTC))


class TestCanonicalBytes:
    def test_sorted_compact(self) -> None:
        assert canonical_bytes({"b": 1, "a": "x"}) == Ok(b'{"a":"x","b":1}')

    def test_decimal_normalized(self) -> None:
        assert canonical_bytes(Decimal("1.500")) == canonical_bytes(Decimal("1.5"))
        assert canonical_bytes(Decimal("0.000")) == Ok(b'"0"')

    def test_datetime_and_timedelta(self) -> None:
        assert canonical_bytes(_TS) == Ok(b'"2025-06-15T10:00:00+00:00"')
        assert canonical_bytes(timedelta(hours=1)) == Ok(b'{"seconds":3600.0}')

    def test_dataclass_carries_type(self) -> None:
        raw = unwrap(canonical_bytes(
            ExpiryDeltaChanged(min=timedelta(0), max=timedelta(seconds=60)),
        ))
        assert raw.startswith(b'{"_type":"ExpiryDeltaChanged"')

    def test_naive_datetime_rejected(self) -> None:
        assert isinstance(canonical_bytes(datetime(2025, 1, 1)), Err)  # noqa: DTZ001

    def test_unsupported_type(self) -> None:
        assert isinstance(canonical_bytes(object()), Err)

    def test_equal_events_equal_bytes(self) -> None:
        a = OptionRedeemed(option="o", payout=Decimal("1.0"))
        b = OptionRedeemed(option="o", payout=Decimal("1.00"))
        assert canonical_bytes(a) == canonical_bytes(b)

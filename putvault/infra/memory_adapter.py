"""In-memory implementations of the collaborator protocols.

Test doubles that let the suite run without a chain, an options protocol
or a message broker. All classes are @final. None of them are production
code.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import timedelta
from decimal import Decimal, localcontext
from typing import final

from putvault.core.amounts import VAULT_DECIMAL_CONTEXT
from putvault.core.decimals import truncate
from putvault.core.errors import NotYetExpiredError, PublishError, TransferFailedError
from putvault.core.result import Err, Ok
from putvault.core.types import UtcDatetime
from putvault.instrument.option import ExpiryStatus, OptionContract


@final
class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start: UtcDatetime) -> None:
        self._now = start

    def now(self) -> UtcDatetime:
        return self._now

    def set(self, instant: UtcDatetime) -> None:
        self._now = instant

    def advance(self, delta: timedelta) -> UtcDatetime:
        self._now = self._now.plus(delta)
        return self._now


@final
class InMemoryEventBus:
    """In-memory event bus. Messages stored per-topic as (key, value) pairs."""

    def __init__(self) -> None:
        self._topics: dict[str, list[tuple[str, bytes]]] = {}
        self.offline = False

    def publish(
        self, topic: str, key: str, value: bytes,
    ) -> Ok[None] | Err[PublishError]:
        if self.offline:
            return Err(PublishError(
                message="event bus offline",
                code="PV-PUBLISH",
                timestamp=UtcDatetime.now(),
                source="memory_adapter.InMemoryEventBus.publish",
                topic=topic,
            ))
        self._topics.setdefault(topic, []).append((key, value))
        return Ok(None)

    def get_messages(self, topic: str) -> list[tuple[str, bytes]]:
        """Test-only helper."""
        return list(self._topics.get(topic, []))


@final
class InMemoryAssetLedger:
    """Balances per (asset, account). Balances never go negative.

    `block(asset, account)` makes every transfer touching that account in
    that asset fail, to exercise rollback paths.
    """

    def __init__(self) -> None:
        self._balances: dict[tuple[str, str], Decimal] = defaultdict(Decimal)
        self._blocked: set[tuple[str, str]] = set()
        self.transfer_count = 0

    def _failure(
        self, asset: str, sender: str, receiver: str, amount: Decimal, reason: str,
    ) -> Err[TransferFailedError]:
        return Err(TransferFailedError(
            message=f"transfer of {amount} {asset} from {sender} to {receiver} failed: {reason}",
            code="PV-TRANSFER",
            timestamp=UtcDatetime.now(),
            source="memory_adapter.InMemoryAssetLedger.transfer",
            asset=asset,
            sender=sender,
            receiver=receiver,
            amount=amount,
            reason=reason,
        ))

    def mint(self, asset: str, account: str, amount: Decimal) -> None:
        """Test-only helper: credit `amount` out of thin air."""
        with localcontext(VAULT_DECIMAL_CONTEXT):
            self._balances[(asset, account)] += amount

    def block(self, asset: str, account: str) -> None:
        self._blocked.add((asset, account))

    def unblock(self, asset: str, account: str) -> None:
        self._blocked.discard((asset, account))

    def transfer(
        self, asset: str, sender: str, receiver: str, amount: Decimal,
    ) -> Ok[None] | Err[TransferFailedError]:
        if amount <= 0:
            return self._failure(asset, sender, receiver, amount, "amount must be positive")
        if (asset, sender) in self._blocked or (asset, receiver) in self._blocked:
            return self._failure(asset, sender, receiver, amount, "account blocked")
        available = self._balances[(asset, sender)]
        if available < amount:
            return self._failure(
                asset, sender, receiver, amount, f"insufficient balance {available}",
            )
        with localcontext(VAULT_DECIMAL_CONTEXT):
            self._balances[(asset, sender)] = available - amount
            self._balances[(asset, receiver)] += amount
        self.transfer_count += 1
        return Ok(None)

    def balance_of(self, asset: str, account: str) -> Decimal:
        return self._balances.get((asset, account), Decimal(0))

    def snapshot(self) -> dict[tuple[str, str], Decimal]:
        """Test-only helper: non-zero balances."""
        return {k: v for k, v in self._balances.items() if v != 0}


@final
class InMemoryOptionSettlement:
    """Options protocol double backed by an InMemoryAssetLedger.

    Redemption burns the holder's tokens into `pool` and pays
    payout_per_option per token in the option's collateral asset out of
    `pool`, so the pool must be funded with collateral first.
    """

    def __init__(
        self, assets: InMemoryAssetLedger, clock: ManualClock, pool: str = "settlement-pool",
        quote_decimals: int = 6,
    ) -> None:
        self._assets = assets
        self._clock = clock
        self._pool = pool
        self._quote_decimals = quote_decimals
        self._expiry_prices: dict[str, Decimal] = {}
        self._payouts: dict[str, Decimal] = {}
        self._failures: dict[str, str] = {}
        self.redeem_calls: list[str] = []

    @property
    def pool(self) -> str:
        return self._pool

    def set_expiry_price(self, option: OptionContract, price: Decimal) -> None:
        """Report the oracle price at expiry."""
        self._expiry_prices[option.option_id] = price

    def finalize(self, option: OptionContract, price: Decimal) -> None:
        """Report the expiry price and make the series redeemable."""
        self._expiry_prices[option.option_id] = price
        with localcontext(VAULT_DECIMAL_CONTEXT):
            intrinsic = max(option.strike_price - price, Decimal(0))
        self._payouts[option.option_id] = intrinsic

    def fail_redemption(self, option: OptionContract, reason: str) -> None:
        self._failures[option.option_id] = reason

    def expiry_status(self, option: OptionContract) -> ExpiryStatus:
        return ExpiryStatus(
            expired=self._clock.now() >= option.expiry,
            expiry_price=self._expiry_prices.get(option.option_id),
            payout_per_option=self._payouts.get(option.option_id),
        )

    def redeem_if_expired(
        self, option: OptionContract, holder: str,
    ) -> Ok[Decimal] | Err[NotYetExpiredError | TransferFailedError]:
        self.redeem_calls.append(option.option_id)
        status = self.expiry_status(option)
        if not status.expired or status.payout_per_option is None:
            return Err(NotYetExpiredError(
                message=f"option {option.option_id} is not redeemable yet",
                code="PV-NOT-EXPIRED",
                timestamp=self._clock.now(),
                source="memory_adapter.InMemoryOptionSettlement.redeem_if_expired",
                option=option.option_id,
            ))
        if option.option_id in self._failures:
            return Err(TransferFailedError(
                message=f"redemption of {option.option_id} failed",
                code="PV-TRANSFER",
                timestamp=self._clock.now(),
                source="memory_adapter.InMemoryOptionSettlement.redeem_if_expired",
                asset=option.option_id,
                sender=holder,
                receiver=self._pool,
                amount=Decimal(0),
                reason=self._failures[option.option_id],
            ))
        balance = self._assets.balance_of(option.option_id, holder)
        with localcontext(VAULT_DECIMAL_CONTEXT):
            payout = truncate(status.payout_per_option * balance, self._quote_decimals)
        if balance > 0:
            match self._assets.transfer(option.option_id, holder, self._pool, balance):
                case Err() as e:
                    return e
                case Ok(_):
                    pass
        if payout > 0:
            match self._assets.transfer(option.collateral_asset, self._pool, holder, payout):
                case Err() as e:
                    if balance > 0:
                        self._assets.transfer(option.option_id, self._pool, holder, balance)
                    return e
                case Ok(_):
                    pass
        return Ok(payout)

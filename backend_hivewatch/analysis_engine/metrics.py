"""
Account metric calculators: pure, side-effect-free transforms.

- reputation_score: raw reputation integer -> human score (25 = neutral).
- voting_power: raw 0-10000 voting power regenerated linearly over 5 days.
- vesting_to_liquid: VESTS -> HIVE using the global vesting pool ratio.
- total_holdings: liquid balance + vesting-liquid equivalent.

Balances exceed float's exact integer range, so all currency math is done
with decimal.Decimal at high precision and rounded half-up to 3 places.
Malformed input raises ComputationError; callers skip the affected entry.
"""

from __future__ import annotations

import decimal
import math
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from backend_hivewatch.chain_reader.models import Account, ChainProperties
from backend_hivewatch.core.exceptions import ComputationError

NEUTRAL_REPUTATION = 25
VOTING_POWER_FULL = 10000
VOTING_POWER_RECOVERY_SEC = 432000  # 5 days
LIQUID_PLACES = Decimal("0.001")
ACTIVE_ACCOUNT_RATIO = Decimal("0.15")
_DECIMAL_PRECISION = 60
_PLAIN_AMOUNT = re.compile(r"^[+-]?\d+(\.\d+)?$")


@dataclass(frozen=True)
class Asset:
    """Parsed asset string: "1234.567 HIVE" -> (Decimal("1234.567"), "HIVE")."""

    amount: Decimal
    symbol: str

    @classmethod
    def parse(cls, raw: str | int | float | Decimal) -> "Asset":
        if isinstance(raw, Decimal):
            return cls(amount=raw, symbol="")
        if isinstance(raw, bool) or not isinstance(raw, (str, int)):
            raise ComputationError(f"unparseable asset: {raw!r}")
        parts = str(raw).strip().split()
        if not parts or len(parts) > 2:
            raise ComputationError(f"unparseable asset: {raw!r}")
        # plain fixed-point only; rejects exponents, NaN and Infinity
        if not _PLAIN_AMOUNT.match(parts[0]):
            raise ComputationError(f"unparseable asset amount: {raw!r}")
        return cls(amount=Decimal(parts[0]), symbol=parts[1] if len(parts) == 2 else "")


def _amount(value: str | Decimal) -> Decimal:
    return Asset.parse(value).amount


def _round3(value: Decimal) -> Decimal:
    try:
        return value.quantize(LIQUID_PLACES, rounding=decimal.ROUND_HALF_UP)
    except decimal.InvalidOperation as e:
        raise ComputationError(f"amount out of range: {value!r}") from e


def reputation_score(raw: int | str) -> float:
    """
    Convert a raw reputation integer to the human score.

    0 -> 25. Otherwise level = log10(|r|) - 9 (one step less severe for
    negative r), floored at -9; score = sign * level * 9 + 25.
    """
    if isinstance(raw, bool):
        raise ComputationError(f"reputation must be an integer: {raw!r}")
    try:
        r = int(raw)
    except (TypeError, ValueError) as e:
        raise ComputationError(f"reputation must be an integer: {raw!r}") from e
    if r == 0:
        return float(NEUTRAL_REPUTATION)
    neg = r < 0
    magnitude = math.log10(abs(r))
    level = max(magnitude - 9 + 1 if neg else magnitude - 9, -9)
    return (-1 if neg else 1) * level * 9 + NEUTRAL_REPUTATION


def display_reputation(raw: int | str) -> int:
    return math.floor(reputation_score(raw))


def current_voting_power(raw_voting_power: int, elapsed_sec: float) -> float:
    """Regenerated voting power on the 0-10000 scale, capped at full."""
    if raw_voting_power < 0:
        raise ComputationError(f"voting power must be >= 0: {raw_voting_power}")
    elapsed = max(0.0, float(elapsed_sec))
    regenerated = raw_voting_power + VOTING_POWER_FULL * elapsed / VOTING_POWER_RECOVERY_SEC
    return min(float(VOTING_POWER_FULL), regenerated)


def voting_power_percent(raw_voting_power: int, elapsed_sec: float) -> int:
    """Displayed voting power: current / 100, floored, always within [0, 100]."""
    return math.floor(current_voting_power(raw_voting_power, elapsed_sec) / 100)


def seconds_since(chain_time: str, now: datetime | None = None) -> float:
    """Seconds elapsed since a chain timestamp ("2024-01-01T00:00:00", UTC without suffix)."""
    if not chain_time:
        raise ComputationError("timestamp is empty")
    try:
        then = datetime.fromisoformat(chain_time.rstrip("Z"))
    except ValueError as e:
        raise ComputationError(f"unparseable timestamp: {chain_time!r}") from e
    if then.tzinfo is None:
        then = then.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    return (now - then).total_seconds()


def vesting_to_liquid(
    vesting_shares: str | Decimal,
    total_vesting_fund: str | Decimal,
    total_vesting_shares: str | Decimal,
) -> Decimal:
    """
    vesting_shares * total_vesting_fund / total_vesting_shares, rounded to 3 places.

    Computed entirely in Decimal; no intermediate float conversion.
    """
    shares = _amount(vesting_shares)
    fund = _amount(total_vesting_fund)
    total_shares = _amount(total_vesting_shares)
    if total_shares == 0:
        raise ComputationError("total vesting shares is zero")
    with decimal.localcontext() as ctx:
        ctx.prec = _DECIMAL_PRECISION
        return _round3(shares * fund / total_shares)


def total_holdings(liquid_balance: str | Decimal, vesting_liquid: str | Decimal) -> Decimal:
    with decimal.localcontext() as ctx:
        ctx.prec = _DECIMAL_PRECISION
        return _round3(_amount(liquid_balance) + _amount(vesting_liquid))


def active_account_estimate(total_accounts: int) -> int:
    """Estimated active accounts shown beside the total (15% of all accounts)."""
    return int((Decimal(total_accounts) * ACTIVE_ACCOUNT_RATIO).to_integral_value(rounding=decimal.ROUND_FLOOR))


@dataclass(frozen=True)
class DerivedAccountMetrics:
    """Computed view over an Account and ChainProperties; never stored on its own."""

    name: str
    reputation: int
    voting_power: int
    liquid_balance: Decimal
    vesting_liquid: Decimal
    total_holdings: Decimal


def derive_account_metrics(
    account: Account,
    props: ChainProperties,
    now: datetime | None = None,
) -> DerivedAccountMetrics:
    """
    Compute all derived metrics for one account.

    Voting power uses last_vote_time; an account that never voted (empty or
    epoch timestamp) regenerates to full.
    """
    vesting_liquid = vesting_to_liquid(
        account.vesting_shares, props.total_vesting_fund_hive, props.total_vesting_shares
    )
    liquid = _amount(account.balance)
    if account.last_vote_time:
        elapsed = seconds_since(account.last_vote_time, now)
    else:
        elapsed = float(VOTING_POWER_RECOVERY_SEC)
    return DerivedAccountMetrics(
        name=account.name,
        reputation=display_reputation(account.reputation),
        voting_power=voting_power_percent(account.voting_power, elapsed),
        liquid_balance=liquid,
        vesting_liquid=vesting_liquid,
        total_holdings=total_holdings(liquid, vesting_liquid),
    )

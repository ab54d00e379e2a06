"""Core trade data models shared across the simulation pipeline.

CRITICAL: All prices and amounts use Decimal. Never use float for prices,
amounts, or profits.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum


class TradeSide(str, Enum):
    """Side of an observed market trade."""

    BUY = "buy"
    SELL = "sell"


class TradeType(str, Enum):
    """Direction of a synthetic simulation decision."""

    BUY = "BUY"
    SELL = "SELL"

    @property
    def sign(self) -> int:
        """+1 for BUY, -1 for SELL (used for profit attribution)."""
        return 1 if self is TradeType.BUY else -1


def parse_decimal(value: object, default: Decimal = Decimal("0")) -> Decimal:
    """Parse a number or numeric string into a finite Decimal.

    Returns ``default`` for None, empty, unparsable or non-finite input.
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return default
    if not result.is_finite():
        return default
    return result


def parse_timestamp(value: object) -> datetime:
    """Parse an ISO-8601 string or Unix seconds (number or string) to UTC.

    Raises:
        ValueError: If the value is neither format.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(float(value), tz=timezone.utc)

    if isinstance(value, str):
        text = value.strip()
        try:
            return datetime.fromtimestamp(float(text), tz=timezone.utc)
        except ValueError:
            pass
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)

    raise ValueError(f"Unsupported timestamp: {value!r}")


@dataclass(frozen=True)
class HistoricalTrade:
    """One observed market trade.

    ``amount_usd`` keeps the decimal string exactly as received from the
    trade source; use ``amount_usd_value`` for arithmetic.
    """

    timestamp: datetime
    price: Decimal
    amount_usd: str
    side: TradeSide

    @property
    def amount_usd_value(self) -> Decimal:
        """USD amount as Decimal (0 when the string is unparsable)."""
        return parse_decimal(self.amount_usd)

    @classmethod
    def from_dict(cls, data: dict) -> HistoricalTrade:
        """Build a trade from the wire format.

        Accepts ``{"timestamp", "price", "amountUSD" | "amount_usd",
        "side" | "type"}``. Unparsable prices become 0 and are skipped later
        by price extraction.
        """
        amount = data.get("amountUSD", data.get("amount_usd", "0"))
        side = str(data.get("side", data.get("type", "buy"))).lower()
        return cls(
            timestamp=parse_timestamp(data["timestamp"]),
            price=parse_decimal(data.get("price")),
            amount_usd=str(amount),
            side=TradeSide(side),
        )

    def to_dict(self) -> dict:
        """Serialize to dict for JSON output."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "price": str(self.price),
            "amount_usd": self.amount_usd,
            "side": self.side.value,
        }

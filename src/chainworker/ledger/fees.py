# src/chainworker/ledger/fees.py

from __future__ import annotations

import logging
import math
import re
from decimal import Decimal, InvalidOperation

from ..core.models import Fee

logger = logging.getLogger(__name__)

# "<amount><denom>", e.g. "140000000000aarch" or "0.025uconst"
_GAS_PRICE_RE = re.compile(r"^(\d+(?:\.\d+)?)([a-zA-Z][a-zA-Z0-9/:._-]{2,127})$")


def parse_gas_price(raw: str) -> tuple[Decimal, str]:
    """Split a gas price string into (amount per gas unit, denom)."""
    m = _GAS_PRICE_RE.match((raw or "").strip())
    if not m:
        raise ValueError(f"Invalid gas price {raw!r}; expected <amount><denom>")
    try:
        amount = Decimal(m.group(1))
    except InvalidOperation as e:
        raise ValueError(f"Invalid gas price amount in {raw!r}") from e
    return amount, m.group(2)


def calculate_fee(gas_limit: int, gas_price: str) -> Fee:
    """
    Fee for a fixed gas budget: ceil(gas_limit * price) of the price denom.

    Computed once at startup and reused for every transaction.
    """
    price, denom = parse_gas_price(gas_price)
    amount = math.ceil(Decimal(gas_limit) * price)
    return Fee(amount=int(amount), denom=denom, gas_limit=int(gas_limit))


def describe_fee(fee: Fee) -> str:
    """Human-readable fee line for startup logs."""
    per_gas = Decimal(fee.amount) / Decimal(fee.gas_limit)
    return f"{fee} for {fee.gas_limit} gas ({per_gas.normalize():f} {fee.denom}/gas)"


def fee_from_estimate(estimate: str, gas_limit: int) -> Fee:
    """Parse the SDK's "<amount><denom>" fee estimate for `gas_limit` gas."""
    amount, denom = parse_gas_price(estimate)
    if amount != amount.to_integral_value():
        raise ValueError(f"Invalid fee estimate {estimate!r}; expected an integer amount")
    return Fee(amount=int(amount), denom=denom, gas_limit=int(gas_limit))


def reconcile_fee(configured: Fee, estimate: str) -> Fee:
    """
    Return the fee the SDK will actually attach to every execute.

    The SDK prices a transaction from its own gas price, not from our Fee, so
    a disagreement is logged and the SDK's figure wins.
    """
    charged = fee_from_estimate(estimate, configured.gas_limit)
    if charged != configured:
        logger.warning(
            "SDK fee %s differs from the configured fee %s for %d gas; transactions pay %s",
            charged,
            configured,
            configured.gas_limit,
            charged,
        )
    return charged

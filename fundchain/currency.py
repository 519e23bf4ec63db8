"""
Currency conversion utilities for FundChain

On-chain amounts are microALGOs. Campaign pages show ALGO and an
approximate INR value using a fixed display rate (ALGO_TO_INR_RATE).
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from fundchain.config import DEFAULT_ALGO_TO_INR_RATE, Settings
from fundchain.errors import ConfigurationError

MICROALGOS_PER_ALGO = 1_000_000


def _to_decimal(amount) -> Decimal | None:
    """Parse user input; None for empty or non-numeric values."""
    if amount is None or amount == "":
        return None
    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value


def _default_rate() -> float:
    try:
        return Settings.from_env().algo_to_inr_rate
    except ConfigurationError:
        return DEFAULT_ALGO_TO_INR_RATE


def _rate(rate) -> Decimal | None:
    """Resolve the INR rate; None when it is not a positive number."""
    if rate is None:
        rate = _default_rate()
    value = _to_decimal(rate)
    if value is None or value <= 0:
        return None
    return value


def algo_to_microalgo(amount) -> int:
    """
    Convert an ALGO amount to microALGOs.

    Args:
        amount: ALGO amount as str, int, float or Decimal

    Returns:
        Amount in microALGOs

    Raises:
        ValueError: If the amount is not a number or has more than 6 decimals
    """
    value = _to_decimal(amount)
    if value is None:
        raise ValueError(f"Invalid ALGO amount: {amount!r}")

    micro = value * MICROALGOS_PER_ALGO
    if micro != micro.to_integral_value():
        raise ValueError(f"ALGO amount has more than 6 decimals: {amount!r}")
    return int(micro)


def microalgo_to_algo(amount: int) -> str:
    """Format microALGOs as a plain ALGO decimal string ("1.5", "2.0")."""
    value = Decimal(int(amount)) / MICROALGOS_PER_ALGO
    text = format(value.normalize(), "f")
    if "." not in text:
        text += ".0"
    return text


def format_algo(amount: int, decimals: int = 4) -> str:
    """Format microALGOs for display, e.g. 1234500 -> '1.2345 ALGO'."""
    value = Decimal(int(amount)) / MICROALGOS_PER_ALGO
    return f"{value:.{decimals}f} ALGO"


def algo_to_inr(amount, rate: float | None = None) -> float:
    """
    Convert ALGO to INR.

    Args:
        amount: Amount in ALGO
        rate: INR per ALGO (defaults to ALGO_TO_INR_RATE)

    Returns:
        Amount in INR, 0 for empty or invalid input or a non-positive rate
    """
    value = _to_decimal(amount)
    inr_rate = _rate(rate)
    if value is None or inr_rate is None:
        return 0
    return float(value * inr_rate)


def inr_to_algo(amount, rate: float | None = None) -> float:
    """
    Convert INR to ALGO.

    Args:
        amount: Amount in INR
        rate: INR per ALGO (defaults to ALGO_TO_INR_RATE)

    Returns:
        Amount in ALGO, 0 for empty or invalid input or a non-positive rate
    """
    value = _to_decimal(amount)
    inr_rate = _rate(rate)
    if value is None or inr_rate is None:
        return 0
    return float(value / inr_rate)


def _group_indian(digits: str) -> str:
    # Last three digits, then groups of two: 12345678 -> 1,23,45,678
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_currency(amount, currency: str = "INR") -> str:
    """
    Format an amount for display.

    Args:
        amount: Amount to format (INR or ALGO units, not microALGOs)
        currency: "INR" or "ALGO"

    Returns:
        Formatted string such as '₹1,23,457' or '1.5000 ALGO'
    """
    value = _to_decimal(amount)
    if value is None or value == 0:
        return "₹0" if currency == "INR" else "0 ALGO"

    if currency == "INR":
        rounded = value.quantize(Decimal(1), rounding=ROUND_HALF_UP)
        sign = "-" if rounded < 0 else ""
        return f"{sign}₹{_group_indian(str(abs(int(rounded))))}"
    if currency == "ALGO":
        return f"{value:.4f} ALGO"

    return str(amount)

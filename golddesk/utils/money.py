from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP


def baht(amount: int | float | Decimal) -> str:
    d = Decimal(str(amount))
    if d == d.to_integral_value():
        s = f"{d.quantize(Decimal('1'), rounding=ROUND_HALF_UP):,}"
    else:
        s = f"{d.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP):,}"
    return f"฿{s}"


def money_str(amount: int | float | Decimal | None) -> str:
    """Two-decimal string for JSON responses."""
    d = Decimal(str(amount or 0)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return str(d)

"""Value formatting at the presentation boundary.

Shapes carry raw floats plus a `format` hint; this is the one place the hint
is turned into display text (answer-mode replies, prompt examples).
"""

from typing import Optional, Union

from .schemas import ValueFormat

CURRENCY_SYMBOL = "$"  # NZD


def _group(value: float, decimals: int) -> str:
    text = f"{value:,.{decimals}f}"
    if decimals:
        text = text.rstrip("0").rstrip(".")
    return text


def format_value(
    value: float, format: Optional[Union[ValueFormat, str]] = None
) -> str:
    """Format a numeric value according to a shape's format hint.

    - number: grouped, up to 3 decimals (1,234.5)
    - currency: whole dollars ($1,235)
    - percentage: 0-1 scale rendered with one decimal (0.2 -> 20.0%)
    - duration: minutes rendered as hours and minutes (90 -> 1h 30m)
    """
    fmt = ValueFormat(format) if format else ValueFormat.NUMBER

    if fmt == ValueFormat.CURRENCY:
        sign = "-" if value < 0 else ""
        return f"{sign}{CURRENCY_SYMBOL}{_group(abs(value), 0)}"

    if fmt == ValueFormat.PERCENTAGE:
        return f"{value * 100:.1f}%"

    if fmt == ValueFormat.DURATION:
        total = int(round(value))
        if total >= 60:
            hours, minutes = divmod(total, 60)
            return f"{hours}h {minutes}m" if minutes else f"{hours}h"
        return f"{total}m"

    return _group(value, 3)

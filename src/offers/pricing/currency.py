"""Indian Rupee formatting with lakh/crore digit grouping.

Amounts are grouped the Indian way: the last three digits, then pairs
(``12,34,56,789``).  Whole rupees only -- values are rounded half-up
before formatting.
"""

import re
from decimal import ROUND_HALF_UP, Decimal

RUPEE_SYMBOL = "₹"

_NON_DIGITS = re.compile(r"[^0-9]")


def strip_non_digits(text: str) -> str:
    """Remove every character that is not an ASCII digit.

    Args:
        text: Free-form user input (e.g. ``"₹4,50,000/-"``).

    Returns:
        The digits only, in their original order (e.g. ``"450000"``).
    """
    return _NON_DIGITS.sub("", text)


def group_indian(digits: str) -> str:
    """Insert lakh/crore separators into a string of digits.

    Args:
        digits: A string of ASCII digits.  Empty input returns ``""``.

    Returns:
        The digits grouped as ``XX,XX,XXX`` (e.g. ``"1234567"`` ->
        ``"12,34,567"``).
    """
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    pairs: list[str] = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    if head:
        pairs.insert(0, head)
    return ",".join([*pairs, tail])


def format_inr(value: int | Decimal) -> str:
    """Format an amount as Indian Rupees with no decimal places.

    Args:
        value: The amount in rupees.

    Returns:
        A display string such as ``"₹4,50,000"`` or ``"-₹1,200"``.
    """
    rounded = Decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    sign = "-" if rounded < 0 else ""
    return f"{sign}{RUPEE_SYMBOL}{group_indian(str(abs(int(rounded))))}"

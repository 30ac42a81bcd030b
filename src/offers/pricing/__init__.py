"""Currency formatting and loan instalment calculation."""

from offers.pricing.currency import format_inr, group_indian, strip_non_digits
from offers.pricing.emi import EMIError, LoanQuote, calculate_emi, quote_loan

__all__ = [
    "EMIError",
    "LoanQuote",
    "calculate_emi",
    "format_inr",
    "group_indian",
    "quote_loan",
    "strip_non_digits",
]

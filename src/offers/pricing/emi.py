"""EMI (equated monthly instalment) calculation for vehicle loans.

All monetary calculations use Decimal arithmetic.  Instalments are rounded
half-up to whole rupees, matching what the listing page displays.
"""

from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel, ConfigDict

from offers.domain.errors import OfferError

WHOLE_RUPEE = Decimal("1")

# Loan boundaries offered on a listing
MIN_DOWN_PAYMENT_RATIO = Decimal("0.1")
DEFAULT_LOAN_RATIO = Decimal("0.8")
DEFAULT_ANNUAL_RATE = Decimal("10.5")
MAX_ANNUAL_RATE = Decimal("20")
DEFAULT_TENURE_MONTHS = 60
MAX_TENURE_MONTHS = 84


class EMIError(OfferError):
    """Raised when loan inputs are outside the allowed bounds."""


class LoanQuote(BaseModel):
    """A computed loan quote for one listing price."""

    model_config = ConfigDict(frozen=True)

    price: int
    loan_amount: int
    down_payment: int
    annual_rate: Decimal
    tenure_months: int
    emi: int
    total_payable: int
    total_interest: int


def _round_rupees(value: Decimal) -> int:
    return int(value.quantize(WHOLE_RUPEE, rounding=ROUND_HALF_UP))


def max_loan_amount(price: int) -> int:
    """Return the largest loan allowed for *price* (10% minimum down payment)."""
    return price - _round_rupees(Decimal(price) * MIN_DOWN_PAYMENT_RATIO)


def default_loan_amount(price: int) -> int:
    """Return the pre-selected loan amount for *price* (80%, capped at the max)."""
    return min(_round_rupees(Decimal(price) * DEFAULT_LOAN_RATIO), max_loan_amount(price))


def calculate_emi(loan_amount: int, annual_rate: Decimal, tenure_months: int) -> int:
    """Calculate the monthly instalment for a loan.

    Formula: ``P * r * (1 + r)^n / ((1 + r)^n - 1)`` with ``r`` the monthly
    rate (``annual_rate / 12 / 100``).  A zero rate divides the principal
    evenly; a zero principal costs nothing.

    Args:
        loan_amount: Principal in rupees.
        annual_rate: Annual interest rate in percent (e.g. ``Decimal("10.5")``).
        tenure_months: Number of monthly instalments.

    Returns:
        The instalment rounded to whole rupees.

    Raises:
        EMIError: If tenure is not positive or principal/rate are negative.
    """
    if tenure_months <= 0:
        raise EMIError(f"tenure_months must be positive, got {tenure_months}")
    if loan_amount < 0:
        raise EMIError(f"loan_amount must not be negative, got {loan_amount}")
    if annual_rate < 0:
        raise EMIError(f"annual_rate must not be negative, got {annual_rate}")
    if loan_amount == 0:
        return 0

    principal = Decimal(loan_amount)
    monthly_rate = Decimal(annual_rate) / Decimal("12") / Decimal("100")
    if monthly_rate == 0:
        return _round_rupees(principal / Decimal(tenure_months))

    growth = (1 + monthly_rate) ** tenure_months
    return _round_rupees(principal * monthly_rate * growth / (growth - 1))


def quote_loan(
    price: int,
    loan_amount: int | None = None,
    annual_rate: Decimal = DEFAULT_ANNUAL_RATE,
    tenure_months: int = DEFAULT_TENURE_MONTHS,
) -> LoanQuote:
    """Build a full loan quote for a listing.

    Args:
        price: Listing price in rupees.
        loan_amount: Requested principal; defaults to 80% of the price.
        annual_rate: Annual interest rate in percent, at most 20.
        tenure_months: Loan tenure, at most 84 months.

    Returns:
        A :class:`LoanQuote` with EMI, totals, and down payment.

    Raises:
        EMIError: If the price is not positive, the loan exceeds 90% of the
            price, the tenure is out of range, or the rate exceeds 20%.
    """
    if price <= 0:
        raise EMIError(f"price must be positive, got {price}")
    if loan_amount is None:
        loan_amount = default_loan_amount(price)
    ceiling = max_loan_amount(price)
    if loan_amount > ceiling:
        raise EMIError(f"loan_amount {loan_amount} exceeds maximum {ceiling} for price {price}")
    if tenure_months > MAX_TENURE_MONTHS:
        raise EMIError(f"tenure_months must be at most {MAX_TENURE_MONTHS}, got {tenure_months}")
    if annual_rate > MAX_ANNUAL_RATE:
        raise EMIError(f"annual_rate must be at most {MAX_ANNUAL_RATE}%, got {annual_rate}")

    emi = calculate_emi(loan_amount, annual_rate, tenure_months)
    total_payable = emi * tenure_months
    return LoanQuote(
        price=price,
        loan_amount=loan_amount,
        down_payment=price - loan_amount,
        annual_rate=annual_rate,
        tenure_months=tenure_months,
        emi=emi,
        total_payable=total_payable,
        total_interest=max(total_payable - loan_amount, 0),
    )

"""Tests for loan bounds, EMI calculation, and loan quotes."""

from decimal import Decimal

import pytest

from offers.domain.errors import OfferError
from offers.pricing.emi import (
    DEFAULT_ANNUAL_RATE,
    DEFAULT_TENURE_MONTHS,
    MAX_ANNUAL_RATE,
    MAX_TENURE_MONTHS,
    EMIError,
    calculate_emi,
    default_loan_amount,
    max_loan_amount,
    quote_loan,
)


def _float_emi(principal: float, annual_rate: float, months: int) -> float:
    r = annual_rate / 12 / 100
    growth = (1 + r) ** months
    return principal * r * growth / (growth - 1)


class TestLoanBounds:
    def test_max_loan_keeps_ten_percent_down(self) -> None:
        assert max_loan_amount(500000) == 450000

    def test_default_loan_is_eighty_percent(self) -> None:
        assert default_loan_amount(500000) == 400000

    def test_default_never_exceeds_max(self) -> None:
        for price in (1, 9, 10, 11, 123457):
            assert default_loan_amount(price) <= max_loan_amount(price)


class TestCalculateEmi:
    def test_matches_standard_formula(self) -> None:
        emi = calculate_emi(400000, Decimal("10.5"), 60)
        assert abs(emi - _float_emi(400000, 10.5, 60)) <= 1

    def test_longer_tenure_lowers_instalment(self) -> None:
        assert calculate_emi(400000, Decimal("10.5"), 84) < calculate_emi(400000, Decimal("10.5"), 36)

    def test_zero_rate_divides_evenly(self) -> None:
        assert calculate_emi(120000, Decimal("0"), 12) == 10000

    def test_zero_loan_costs_nothing(self) -> None:
        assert calculate_emi(0, Decimal("10.5"), 60) == 0

    @pytest.mark.parametrize(
        ("loan", "rate", "months"),
        [
            (400000, Decimal("10.5"), 0),
            (-1, Decimal("10.5"), 60),
            (400000, Decimal("-1"), 60),
        ],
    )
    def test_invalid_inputs(self, loan: int, rate: Decimal, months: int) -> None:
        with pytest.raises(EMIError):
            calculate_emi(loan, rate, months)


class TestQuoteLoan:
    def test_defaults(self) -> None:
        quote = quote_loan(500000)
        assert quote.loan_amount == 400000
        assert quote.down_payment == 100000
        assert quote.annual_rate == DEFAULT_ANNUAL_RATE
        assert quote.tenure_months == DEFAULT_TENURE_MONTHS
        assert quote.emi == calculate_emi(400000, DEFAULT_ANNUAL_RATE, DEFAULT_TENURE_MONTHS)
        assert quote.total_payable == quote.emi * DEFAULT_TENURE_MONTHS
        assert quote.total_interest == quote.total_payable - quote.loan_amount

    def test_loan_at_ceiling_allowed(self) -> None:
        assert quote_loan(500000, loan_amount=450000).down_payment == 50000

    def test_loan_above_ceiling_rejected(self) -> None:
        with pytest.raises(EMIError, match="exceeds maximum"):
            quote_loan(500000, loan_amount=450001)

    def test_tenure_above_max_rejected(self) -> None:
        with pytest.raises(EMIError):
            quote_loan(500000, tenure_months=MAX_TENURE_MONTHS + 1)

    def test_rate_above_max_rejected(self) -> None:
        with pytest.raises(EMIError, match="annual_rate"):
            quote_loan(500000, annual_rate=MAX_ANNUAL_RATE + Decimal("0.5"))

    def test_rate_at_max_allowed(self) -> None:
        quote = quote_loan(500000, annual_rate=MAX_ANNUAL_RATE)
        assert quote.annual_rate == Decimal("20")
        assert quote.emi > quote_loan(500000).emi

    def test_non_positive_price_rejected(self) -> None:
        with pytest.raises(EMIError):
            quote_loan(0)

    def test_emi_error_is_domain_error(self) -> None:
        assert issubclass(EMIError, OfferError)

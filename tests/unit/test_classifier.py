"""
Unit Tests for transaction and issuer classification.

These tests pin the payment keyword heuristic, including its documented
false positives, since spend totals depend on it staying stable.
"""

import pytest

from cardcycle.domain.entities import IssuerClass
from cardcycle.service.cycles.classifier import classify_issuer, is_payment


class TestIsPayment:
    """Tests for the payment keyword heuristic."""

    @pytest.mark.parametrize(
        "description",
        [
            "AUTOPAY PAYMENT - THANK YOU",
            "Online Payment",
            "MOBILE PYMT",
            "Bill Pay Received",
            "ACH CREDIT ELECTRONIC",
            "Incoming Wire 0042",
            "Balance Transfer",
            "auto-pay",
        ],
    )
    def test_payment_keywords(self, description):
        """Known payment wording is classified as payment."""
        assert is_payment(description) is True

    @pytest.mark.parametrize(
        "description",
        ["STARBUCKS #1234", "AMAZON MKTPLACE", "Uber Trip", "Refund - Target"],
    )
    def test_spend_is_not_payment(self, description):
        assert is_payment(description) is False

    def test_case_insensitive(self):
        assert is_payment("payment received") is True
        assert is_payment("PAYMENT RECEIVED") is True
        assert is_payment("PaYmEnT rEcEiVeD") is True

    def test_bare_transfer_is_payment(self):
        """Any transfer without fee wording levels the account."""
        assert is_payment("Transfer from checking") is True

    @pytest.mark.parametrize(
        "description",
        ["BALANCE TRANSFER FEE", "Transfer charge", "transfer fee reversal"],
    )
    def test_transfer_fees_are_spend(self, description):
        assert is_payment(description) is False

    def test_late_payment_fee_is_payment(self):
        """Documented limitation: payment wording wins over fee wording."""
        assert is_payment("LATE PAYMENT FEE") is True

    def test_empty_description(self):
        assert is_payment("") is False

    def test_stable_for_same_input(self):
        results = {is_payment("Online Transfer Thank You") for _ in range(5)}
        assert len(results) == 1


class TestIssuerOverrides:
    """Tests for per-issuer include/exclude lists."""

    def test_discover_directpay(self):
        assert is_payment("DIRECTPAY FULL BALANCE", IssuerClass.DISCOVER) is True
        assert is_payment("DIRECTPAY FULL BALANCE") is False

    def test_amex_payment_protection_is_spend(self):
        description = "PAYMENT PROTECTION PREMIUM"
        assert is_payment(description, IssuerClass.AMEX) is False
        assert is_payment(description) is True

    def test_issuer_without_override_uses_defaults(self):
        assert is_payment("Online Payment", IssuerClass.CHASE) is True
        assert is_payment("COFFEE", IssuerClass.CHASE) is False


class TestClassifyIssuer:
    """Tests for institution classification."""

    @pytest.mark.parametrize(
        "institution,card,expected",
        [
            ("Capital One", "Platinum", IssuerClass.CAPITAL_ONE),
            ("American Express", "Gold Card", IssuerClass.AMEX),
            ("Bank of America", "Customized Cash", IssuerClass.BANK_OF_AMERICA),
            ("Chase", "Sapphire Preferred", IssuerClass.CHASE),
            ("Citibank Online", "Double Cash", IssuerClass.CITI),
            ("Discover", "it Cash Back", IssuerClass.DISCOVER),
            ("Robinhood", "Gold Card", IssuerClass.ROBINHOOD),
        ],
    )
    def test_institution_names(self, institution, card, expected):
        assert classify_issuer(institution, card) == expected

    @pytest.mark.parametrize("card", ["Quicksilver Rewards", "VentureOne", "SavorOne", "Spark Cash"])
    def test_capital_one_product_names(self, card):
        """Capital One cards are recognized by product name alone."""
        assert classify_issuer(None, card) == IssuerClass.CAPITAL_ONE

    def test_card_name_fallback(self):
        assert classify_issuer("Plaid Institution", "Amex Platinum") == IssuerClass.AMEX

    def test_unknown(self):
        assert classify_issuer("First Community Credit Union", "Visa Signature") == IssuerClass.OTHER
        assert classify_issuer(None, None) == IssuerClass.OTHER

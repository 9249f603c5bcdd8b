"""Tests for the pure ledger balance rules."""

import pytest
from decimal import Decimal

from moneytracker.ledger import (
    InvalidAmountError,
    UnsupportedTransactionTypeError,
    post_transaction,
    reverse_transaction,
    signed_amount,
    validate_amount,
    validate_balance,
)
from moneytracker.models.finance import Account, TransactionType


@pytest.fixture
def account():
    return Account(user_id="u1", name="Bank", balance=Decimal("100"))


class TestValidateAmount:
    """Tests for amount parsing."""

    @pytest.mark.parametrize("value, expected", [
        ("30", Decimal("30")),
        (" 12.50 ", Decimal("12.50")),
        (7, Decimal("7")),
        (0.1, Decimal("0.1")),
        (Decimal("0.01"), Decimal("0.01")),
    ])
    def test_accepts_positive_numbers(self, value, expected):
        assert validate_amount(value) == expected

    @pytest.mark.parametrize("value", [
        0, "0", -5, "-0.01", "abc", "", None, True,
        float("nan"), float("inf"), "NaN", "Infinity",
    ])
    def test_rejects_invalid(self, value):
        with pytest.raises(InvalidAmountError):
            validate_amount(value)


class TestValidateBalance:
    """Opening balances may be zero or negative."""

    @pytest.mark.parametrize("value, expected", [
        (None, Decimal("0")),
        ("", Decimal("0")),
        ("-20.5", Decimal("-20.5")),
        (1000, Decimal("1000")),
    ])
    def test_accepts(self, value, expected):
        assert validate_balance(value) == expected

    @pytest.mark.parametrize("value", ["ten", float("inf")])
    def test_rejects(self, value):
        with pytest.raises(InvalidAmountError):
            validate_balance(value)


class TestPostAndReverse:
    """Tests for balance adjustment."""

    def test_expense_lowers_balance(self, account):
        updated = post_transaction(account, "30", TransactionType.EXPENSE)
        assert updated.balance == Decimal("70")

    def test_income_raises_balance(self, account):
        updated = post_transaction(account, "30", TransactionType.INCOME)
        assert updated.balance == Decimal("130")

    def test_input_account_untouched(self, account):
        post_transaction(account, "30", TransactionType.EXPENSE)
        assert account.balance == Decimal("100")

    @pytest.mark.parametrize("tx_type", [TransactionType.INCOME, TransactionType.EXPENSE])
    def test_reverse_undoes_post_exactly(self, account, tx_type):
        posted = post_transaction(account, "33.33", tx_type)
        assert reverse_transaction(posted, "33.33", tx_type).balance == account.balance

    def test_expense_may_overdraw(self, account):
        updated = post_transaction(account, "150", TransactionType.EXPENSE)
        assert updated.balance == Decimal("-50")

    def test_float_amounts_do_not_drift(self):
        account = Account(user_id="u1", name="Cash")
        for _ in range(3):
            account = post_transaction(account, 0.1, TransactionType.INCOME)
        assert account.balance == Decimal("0.3")

    def test_balance_matches_signed_sum(self, account):
        postings = [
            ("100", TransactionType.INCOME),
            ("45.5", TransactionType.EXPENSE),
            ("0.5", TransactionType.EXPENSE),
            ("20", TransactionType.INCOME),
        ]
        for amount, tx_type in postings:
            account = post_transaction(account, amount, tx_type)
        expected = Decimal("100") + sum(
            signed_amount(Decimal(a), t) for a, t in postings
        )
        assert account.balance == expected == Decimal("174")

    def test_transfer_rejected(self, account):
        with pytest.raises(UnsupportedTransactionTypeError):
            post_transaction(account, "10", TransactionType.TRANSFER)

    def test_string_type_accepted(self, account):
        assert post_transaction(account, "10", "Income").balance == Decimal("110")

    @pytest.mark.parametrize("tx_type", ["Refund", "", None])
    def test_unknown_type_is_a_ledger_error(self, account, tx_type):
        with pytest.raises(UnsupportedTransactionTypeError):
            post_transaction(account, "10", tx_type)

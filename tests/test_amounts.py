from decimal import Decimal

import pytest

from ynap.amounts import resolve_amount
from ynap.errors import AmbiguousAmountError, AmountParseError

D = Decimal


def test_flag_debit_negates_magnitude():
    assert resolve_amount([D("12.50")], [], is_debit=True) == D("-12.50")


def test_flag_credit_is_positive():
    assert resolve_amount([D("12.50")], [], is_debit=False) == D("12.50")


def test_flag_uses_magnitude_of_signed_source():
    assert resolve_amount([D("-12.50")], [], is_debit=False) == D("12.50")
    assert resolve_amount([D("-12.50")], [], is_debit=True) == D("-12.50")


def test_split_columns_inflow():
    assert resolve_amount([D("100.00")], [], None) == D("100.00")


def test_split_columns_outflow_is_negated():
    assert resolve_amount([], [D("42.10")], None) == D("-42.10")


def test_split_columns_zero_inflow_falls_through_to_outflow():
    assert resolve_amount([D("0.00")], [D("5.00")], None) == D("-5.00")


def test_split_columns_both_nonzero_is_ambiguous():
    with pytest.raises(AmbiguousAmountError) as exc:
        resolve_amount([D("1.00")], [D("2.00")], None, line_number=9)
    assert exc.value.line_number == 9


def test_no_amount_is_an_error():
    with pytest.raises(AmountParseError):
        resolve_amount([], [], None)


def test_all_zero_is_zero():
    assert resolve_amount([D("0.00")], [D("0.00")], None) == D("0.00")


def test_precision_is_preserved():
    result = resolve_amount([], [D("0.125")], None)
    assert result == D("-0.125")
    assert str(result) == "-0.125"

from decimal import Decimal

import pytest

from storefront.errors import ValidationError
from storefront.payments.fees import compute_fee, compute_tax, compute_totals


def test_fee_ten_percent_of_5000():
    assert compute_fee(5000, 10) == 500

def test_fee_rounds_half_up():
    # 1005 * 10 % = 100.5 -> 101 (et non l'arrondi bancaire 100)
    assert compute_fee(1005, 10) == 101
    assert compute_fee(1004, 10) == 100
    assert compute_fee(25, Decimal("10")) == 3

def test_fee_accepts_string_and_fractional_rates():
    assert compute_fee(10000, "2.5") == 250
    assert compute_fee(999, 12.5) == 125

def test_fee_property_bounds():
    for subtotal in (0, 1, 7, 99, 1234, 5000, 10**9):
        for rate in (0, 1, 10, 33.3, 100):
            fee = compute_fee(subtotal, rate)
            assert 0 <= fee <= subtotal

def test_fee_capped_at_subtotal_when_rate_above_100():
    assert compute_fee(1000, 150) == 1000

def test_fee_zero_subtotal_or_rate():
    assert compute_fee(0, 10) == 0
    assert compute_fee(5000, 0) == 0

@pytest.mark.parametrize("subtotal, rate", [(-1, 10), (1.5, 10), (True, 10), (100, -5), (100, "abc"), (100, "NaN")])
def test_fee_rejects_invalid_input(subtotal, rate):
    with pytest.raises(ValidationError):
        compute_fee(subtotal, rate)

def test_tax_uses_same_rounding():
    assert compute_tax(1005, 10) == 101
    assert compute_tax(5000, 0) == 0

def test_totals_invariant_5000_at_10_percent():
    totals = compute_totals(5000, 10)
    assert totals.subtotal == 5000
    assert totals.platform_fee == 500
    assert totals.total == 5000
    assert totals.merchant_net == 4500

def test_totals_with_tax_and_discount():
    totals = compute_totals(10000, 10, tax_rate_percent="8.25", discount=500)
    assert totals.tax == 825
    assert totals.total == totals.subtotal + totals.tax - totals.discount == 10325
    # La commission ne porte que sur le sous-total
    assert totals.platform_fee == 1000

def test_totals_discount_cannot_exceed_amount():
    with pytest.raises(ValidationError):
        compute_totals(1000, 10, discount=1001)

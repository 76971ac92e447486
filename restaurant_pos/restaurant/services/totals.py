"""
Derived money fields.

Both aggregates are always computed from the full set of child rows so a
recompute converges no matter what was stored before.
"""
from collections import namedtuple
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings

CENT = Decimal('0.01')

OrderTotals = namedtuple('OrderTotals', ['subtotal', 'discount_amount', 'total'])
ExpenseTotals = namedtuple('ExpenseTotals', ['amount_usd', 'amount_khr', 'amount'])


def money(value) -> Decimal:
    if value is None:
        return Decimal('0.00')
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def discount_for(subtotal, discount_type, discount_value) -> Decimal:
    value = money(discount_value)
    if not discount_type or not value:
        return Decimal('0.00')
    if discount_type == 'percentage':
        return money(subtotal * value / Decimal('100'))
    if discount_type == 'amount':
        return value
    return Decimal('0.00')


def order_totals(line_totals, discount_type=None, discount_value=None, clamp=None) -> OrderTotals:
    """
    subtotal = sum of line totals
    percentage -> subtotal * value / 100, amount -> value, otherwise 0
    total = subtotal - discount (negative unless clamping is enabled)
    """
    if clamp is None:
        clamp = settings.RESTAURANT.get('CLAMP_NEGATIVE_TOTAL', False)

    subtotal = sum((money(t) for t in line_totals), Decimal('0.00'))
    discount_amount = discount_for(subtotal, discount_type, discount_value)
    total = subtotal - discount_amount
    if clamp and total < 0:
        total = Decimal('0.00')
    return OrderTotals(subtotal, discount_amount, total)


def expense_totals(items, rate=None) -> ExpenseTotals:
    """Takes (currency, total_price) pairs; amount is everything in KHR."""
    if rate is None:
        rate = settings.RESTAURANT['USD_TO_KHR_RATE']

    amount_usd = Decimal('0.00')
    amount_khr = Decimal('0.00')
    for currency, total_price in items:
        if currency == 'USD':
            amount_usd += money(total_price)
        elif currency == 'KHR':
            amount_khr += money(total_price)
    amount = amount_khr + amount_usd * Decimal(rate)
    return ExpenseTotals(amount_usd, amount_khr, money(amount))

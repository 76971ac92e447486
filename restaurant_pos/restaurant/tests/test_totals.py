from decimal import Decimal

from restaurant.services.totals import discount_for, expense_totals, money, order_totals


def test_percentage_discount():
    totals = order_totals([Decimal('2000'), Decimal('500')], 'percentage', Decimal('10'))
    assert totals.subtotal == Decimal('2500')
    assert totals.discount_amount == Decimal('250')
    assert totals.total == Decimal('2250')


def test_amount_discount():
    totals = order_totals([Decimal('12.50'), Decimal('7.50')], 'amount', Decimal('5'))
    assert totals == (Decimal('20.00'), Decimal('5.00'), Decimal('15.00'))


def test_no_discount_type_ignores_value():
    totals = order_totals([Decimal('10')], None, Decimal('50'))
    assert totals.discount_amount == Decimal('0')
    assert totals.total == Decimal('10')


def test_percentage_rounds_half_up_to_cents():
    assert discount_for(Decimal('10.05'), 'percentage', Decimal('15')) == Decimal('1.51')


def test_empty_order_is_zero():
    assert order_totals([]) == (Decimal('0'), Decimal('0'), Decimal('0'))


def test_discount_bigger_than_subtotal_goes_negative(settings):
    settings.RESTAURANT = {**settings.RESTAURANT, 'CLAMP_NEGATIVE_TOTAL': False}
    totals = order_totals([Decimal('100')], 'amount', Decimal('150'))
    assert totals.total == Decimal('-50')


def test_clamping_can_be_switched_on(settings):
    settings.RESTAURANT = {**settings.RESTAURANT, 'CLAMP_NEGATIVE_TOTAL': True}
    totals = order_totals([Decimal('100')], 'amount', Decimal('150'))
    assert totals.discount_amount == Decimal('150')
    assert totals.total == Decimal('0')


def test_money_quantizes():
    assert money('2.345') == Decimal('2.35')
    assert money(None) == Decimal('0.00')


def test_expense_totals_convert_usd_to_riel():
    totals = expense_totals([('USD', Decimal('10')), ('KHR', Decimal('4000'))])
    assert totals.amount_usd == Decimal('10')
    assert totals.amount_khr == Decimal('4000')
    assert totals.amount == Decimal('44000')


def test_expense_totals_custom_rate():
    totals = expense_totals([('USD', Decimal('2'))], rate=4100)
    assert totals.amount == Decimal('8200')
    assert totals.amount_khr == Decimal('0')

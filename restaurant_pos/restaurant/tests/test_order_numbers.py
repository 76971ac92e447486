from datetime import date

import pytest
from django.utils import timezone

from restaurant.exceptions import DailyOrderLimitReached
from restaurant.models import Order, OrderNumberSequence
from restaurant.services.order_numbers import day_prefix, next_order_number
from restaurant.services.orders import create_order

pytestmark = pytest.mark.django_db


def test_counter_starts_at_one_and_increments():
    day = date(2024, 11, 15)
    assert next_order_number(day) == '151120240001'
    assert next_order_number(day) == '151120240002'


def test_counter_restarts_every_day():
    next_order_number(date(2024, 11, 15))
    assert next_order_number(date(2024, 11, 16)) == '161120240001'


def test_counter_continues_after_existing_orders():
    Order.objects.create(order_number='151120240007')
    assert next_order_number(date(2024, 11, 15)) == '151120240008'
    assert OrderNumberSequence.objects.get(day=date(2024, 11, 15)).last == 8


def test_orders_get_unique_numbers_for_today():
    first = create_order()
    second = create_order()
    prefix = day_prefix(timezone.localdate())
    assert first.order_number == f"{prefix}0001"
    assert second.order_number == f"{prefix}0002"


def test_counter_stops_at_four_digits():
    day = date(2024, 11, 15)
    OrderNumberSequence.objects.create(day=day, last=9998)
    assert next_order_number(day) == '151120249999'
    with pytest.raises(DailyOrderLimitReached):
        next_order_number(day)
    assert OrderNumberSequence.objects.get(day=day).last == 9999


def test_full_day_refuses_new_orders(waiter_api, menu):
    OrderNumberSequence.objects.create(day=timezone.localdate(), last=9999)
    response = waiter_api.post('/api/admin/orders', {
        'items': [{'menu_item_id': menu['lok_lak'].pk, 'quantity': 1}],
    }, format='json')
    assert response.status_code == 409
    assert response.json()['error']['code'] == 'ORDER_LIMIT_REACHED'
    assert not Order.objects.exists()

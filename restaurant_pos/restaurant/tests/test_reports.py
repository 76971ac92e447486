from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from restaurant.models import Order
from restaurant.services.orders import create_order, update_order

from .helpers import data, error_code

pytestmark = pytest.mark.django_db

REPORT = '/api/admin/reports/sales'


def finished(menu, quantity, **kwargs):
    order = create_order(items=[(menu['lok_lak'], quantity)], **kwargs)
    return update_order(order, status=Order.DONE)


def test_sales_report_for_today(admin_api, menu):
    finished(menu, 2)
    finished(menu, 1, discount_type='amount', discount_value=Decimal('100'))
    create_order(items=[(menu['lok_lak'], 5)])  # still open

    body = data(admin_api.get(REPORT))
    assert body['start_date'] == str(timezone.localdate())
    assert body['total_orders'] == 2
    assert body['total_subtotal'] == '3000.00'
    assert body['total_discount'] == '100.00'
    assert body['total_income'] == '2900.00'
    assert body['average_order_value'] == '1450.00'


def test_sales_report_range_excludes_other_days(admin_api, menu):
    old = finished(menu, 1)
    Order.objects.filter(pk=old.pk).update(created_at=timezone.now() - timedelta(days=3))

    today = timezone.localdate()
    body = data(admin_api.get(REPORT, {'start_date': str(today), 'end_date': str(today)}))
    assert body['total_orders'] == 0
    assert body['average_order_value'] == '0.00'

    start = today - timedelta(days=5)
    body = data(admin_api.get(REPORT, {'start_date': str(start), 'end_date': str(today)}))
    assert body['total_orders'] == 1


def test_sales_report_rejects_reversed_range(admin_api):
    response = admin_api.get(REPORT, {'start_date': '2024-11-15', 'end_date': '2024-11-01'})
    assert response.status_code == 400
    assert error_code(response) == 'VALIDATION_ERROR'


def test_sales_report_is_admin_only(waiter_api):
    assert waiter_api.get(REPORT).status_code == 403

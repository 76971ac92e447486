import io
from decimal import Decimal

import pytest
from PIL import Image

from restaurant.models import ExpenseItem, Price, ShopInfo
from restaurant.services.expenses import create_expense
from restaurant.services.invoices import expense_invoice, group_order_lines, order_invoice
from restaurant.services.orders import add_item, create_order

pytestmark = pytest.mark.django_db

PNG_MAGIC = b'\x89PNG\r\n\x1a\n'


def test_lines_with_same_dish_and_price_are_grouped(table, menu, table_types):
    order = create_order(table=table, items=[(menu['lok_lak'], 1), (menu['iced_coffee'], 2)])
    # a second Lok Lak line at a different price only happens through the DB directly
    line = order.items.get(menu_item=menu['lok_lak'])
    line.pk = None
    line.unit_price = Decimal('1200')
    line.set_quantity(1)
    line.save()

    lines = group_order_lines(order.items.select_related('menu_item'))
    assert [(l.name, l.quantity, l.unit_price) for l in lines] == [
        ('Lok Lak', 1, Decimal('1000')),
        ('Iced Coffee', 2, Decimal('500')),
        ('Lok Lak', 1, Decimal('1200')),
    ]


def test_order_invoice_contents(table, menu):
    order = create_order(
        table=table, customer_name='Dara',
        items=[(menu['lok_lak'], 2)], discount_type='percentage', discount_value=Decimal('10'),
    )
    add_item(order, menu['lok_lak'], 1)
    order.refresh_from_db()
    invoice = order_invoice(order, ShopInfo.load())

    assert invoice.number == order.order_number
    assert f"Invoice #{order.order_number}" in invoice.header
    assert 'Table: Table 1' in invoice.header
    assert 'Customer: Dara' in invoice.header
    assert len(invoice.lines) == 1
    assert invoice.lines[0].quantity == 3
    assert invoice.footer == [
        ('Subtotal', '3,000.00'),
        ('Discount (10%)', '-300.00'),
        ('Total', '2,700.00'),
    ]


def test_order_invoice_image_endpoint(waiter_api, table, menu):
    order = create_order(table=table, items=[(menu['lok_lak'], 1), (menu['iced_coffee'], 1)])
    response = waiter_api.get(f"/api/admin/orders/{order.pk}/invoice-image")
    assert response.status_code == 200
    assert response['Content-Type'] == 'image/png'
    assert response['Content-Disposition'] == f'inline; filename="invoice-{order.order_number}.png"'
    assert response.content.startswith(PNG_MAGIC)
    assert Image.open(io.BytesIO(response.content)).width == 450


def test_invoice_for_missing_order(waiter_api):
    response = waiter_api.get('/api/admin/orders/9999/invoice-image')
    assert response.status_code == 404


def test_expense_invoice(admin_api):
    expense = create_expense(
        title='Market', category='ingredients', date='2024-11-15T09:00:00+07:00',
        items=[
            {'product_name': 'Rice', 'quantity': Decimal('2'), 'unit_price': Decimal('5'), 'currency': ExpenseItem.USD},
            {'product_name': 'Ice', 'quantity': Decimal('1'), 'unit_price': Decimal('4000'), 'currency': ExpenseItem.KHR},
        ],
    )
    expense.refresh_from_db()
    invoice = expense_invoice(expense, ShopInfo.load())
    assert invoice.number == f"EXP{expense.pk:06d}"
    assert invoice.footer[-1] == ('Grand total KHR', '44,000.00')

    response = admin_api.get(f"/api/admin/expenses/{expense.pk}/invoice-image")
    assert response.status_code == 200
    assert response.content.startswith(PNG_MAGIC)
    assert f'invoice-EXP{expense.pk:06d}.png' in response['Content-Disposition']

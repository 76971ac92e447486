from decimal import Decimal

from django.db import transaction

from ..exceptions import NotFoundError
from ..models import Expense, ExpenseItem
from .totals import money

ITEM_FIELDS = ('product', 'product_name', 'quantity', 'unit', 'unit_price', 'currency', 'payment_status', 'notes')


def line_total(quantity, unit_price):
    return money(Decimal(str(quantity)) * Decimal(str(unit_price)))


def refresh_totals(expense):
    expense.recalc_totals()
    expense.save(update_fields=['amount', 'amount_usd', 'amount_khr'])
    return expense


def _lock(expense):
    return Expense.objects.select_for_update().get(pk=expense.pk)


def _new_item(expense, data):
    return ExpenseItem.objects.create(
        expense=expense,
        product=data.get('product'),
        product_name=data['product_name'],
        quantity=data['quantity'],
        unit=data.get('unit'),
        unit_price=data['unit_price'],
        total_price=line_total(data['quantity'], data['unit_price']),
        currency=data.get('currency') or ExpenseItem.USD,
        payment_status=data.get('payment_status') or 'UNPAID',
        notes=data.get('notes') or None,
    )


@transaction.atomic
def create_expense(items=(), **fields):
    expense = Expense.objects.create(**fields)
    for data in items:
        _new_item(expense, data)
    return refresh_totals(expense)


@transaction.atomic
def add_item(expense, data):
    expense = _lock(expense)
    _new_item(expense, data)
    return refresh_totals(expense)


def _item(expense, item_id):
    item = expense.items.filter(pk=item_id).first()
    if item is None:
        raise NotFoundError("Item not found")
    return item


@transaction.atomic
def update_item(expense, item_id, data):
    expense = _lock(expense)
    item = _item(expense, item_id)
    for field in ITEM_FIELDS:
        if field in data:
            setattr(item, field, data[field])
    item.total_price = line_total(item.quantity, item.unit_price)
    item.save()
    return refresh_totals(expense)


@transaction.atomic
def remove_item(expense, item_id):
    expense = _lock(expense)
    _item(expense, item_id).delete()
    return refresh_totals(expense)

"""
Order lifecycle.

Every function here runs in one transaction: child rows are changed, the
order totals are recomputed from scratch and the table status follows the
order, all or nothing.
"""
import logging

from django.db import transaction

from ..exceptions import InvalidTransition, NotFoundError, ValidationFailed
from ..models import Order, OrderItem, Table
from .order_numbers import next_order_number
from .pricing import resolve_unit_price

logger = logging.getLogger(__name__)

UNSET = object()

ORDER_FLOW = {
    Order.NEW: {Order.ON_PROCESS, Order.DONE},
    Order.ON_PROCESS: {Order.DONE},
    Order.DONE: set(),
}

ITEM_STEPS = [OrderItem.PENDING, OrderItem.PREPARING, OrderItem.READY, OrderItem.SERVED]
ITEM_STATUSES = ITEM_STEPS + [OrderItem.CANCELLED]
CANCELLABLE = {OrderItem.PENDING, OrderItem.PREPARING}


def _lock(order):
    return Order.objects.select_for_update().get(pk=order.pk)


def _set_table_status(table_id, status):
    if table_id:
        Table.objects.filter(pk=table_id).update(status=status)
        logger.info("table %s -> %s", table_id, status)


def refresh_totals(order):
    order.recalc_totals()
    order.save(update_fields=['subtotal', 'discount_amount', 'total', 'updated_at'])
    return order


def _add_line(order, menu_item, quantity):
    unit_price = resolve_unit_price(menu_item, order.table)
    line = order.items.filter(menu_item=menu_item).first()
    if line is not None:
        # merged lines keep the price captured when they were first added
        line.set_quantity(line.quantity + quantity)
        line.save(update_fields=['quantity', 'total_price', 'updated_at'])
        return line
    return OrderItem.objects.create(
        order=order,
        menu_item=menu_item,
        quantity=quantity,
        unit_price=unit_price,
        total_price=unit_price * quantity,
    )


@transaction.atomic
def create_order(table=None, customer_name=None, items=(), discount_type=None, discount_value=None, day=None):
    """``items`` is a sequence of (menu_item, quantity) pairs."""
    order = Order.objects.create(
        order_number=next_order_number(day),
        table=table,
        customer_name=customer_name or None,
        status=Order.NEW,
        discount_type=discount_type or None,
        discount_value=discount_value or 0,
    )
    for menu_item, quantity in items:
        _add_line(order, menu_item, quantity)
    refresh_totals(order)

    if table is not None:
        _set_table_status(table.pk, Table.OCCUPIED)
        table.status = Table.OCCUPIED
    logger.info("order %s created (table=%s)", order.order_number, table.pk if table else None)
    return order


@transaction.atomic
def add_item(order, menu_item, quantity):
    order = _lock(order)
    line = _add_line(order, menu_item, quantity)
    refresh_totals(order)
    return order, line


def _line(order, item_id):
    line = order.items.filter(pk=item_id).first()
    if line is None:
        raise NotFoundError("Order item not found")
    return line


@transaction.atomic
def update_item_quantity(order, item_id, quantity):
    """Quantity 0 removes the line."""
    order = _lock(order)
    line = _line(order, item_id)
    if quantity == 0:
        line.delete()
    else:
        line.set_quantity(quantity)
        line.save(update_fields=['quantity', 'total_price', 'updated_at'])
    refresh_totals(order)
    return order


@transaction.atomic
def remove_item(order, item_id):
    order = _lock(order)
    _line(order, item_id).delete()
    refresh_totals(order)
    return order


def check_order_transition(current, new):
    if new == current:
        return
    if new not in ORDER_FLOW.get(current, set()):
        raise InvalidTransition(f"Order cannot move from {current} to {new}")


@transaction.atomic
def update_order(order, status=None, discount_type=UNSET, discount_value=UNSET):
    order = _lock(order)
    if status:
        check_order_transition(order.status, status)
        order.status = status
    if discount_type is not UNSET:
        order.discount_type = discount_type or None
    if discount_value is not UNSET:
        order.discount_value = discount_value or 0
    order.recalc_totals()
    order.save()

    if status == Order.DONE and order.table_id:
        _set_table_status(order.table_id, Table.AVAILABLE)
    return order


@transaction.atomic
def delete_order(order):
    order = _lock(order)
    _set_table_status(order.table_id, Table.AVAILABLE)
    number = order.order_number
    order.delete()
    logger.info("order %s deleted", number)


def check_item_transition(current, new):
    if new not in ITEM_STATUSES:
        raise ValidationFailed(f"Status must be one of: {', '.join(ITEM_STATUSES)}", [
            {"field": "status", "message": "Invalid status"},
        ])
    if new == current:
        return
    if new == OrderItem.CANCELLED:
        if current in CANCELLABLE:
            return
    elif current in ITEM_STEPS and ITEM_STEPS.index(new) > ITEM_STEPS.index(current):
        return
    raise InvalidTransition(f"Order item cannot move from {current} to {new}")


@transaction.atomic
def set_item_status(order_id, item_id, status):
    line = (
        OrderItem.objects
        .select_for_update()
        .filter(pk=item_id)
        .first()
    )
    if line is None:
        raise NotFoundError("Order item not found")
    if line.order_id != order_id:
        raise ValidationFailed("Order item does not belong to this order")
    check_item_transition(line.status, status)
    if line.status != status:
        line.status = status
        line.save(update_fields=['status', 'updated_at'])
    return line

"""
Which order items the chef and delivery screens see.

Only open orders (new / on_process) are considered. Each returned order
carries the filtered lines in ``visible_items``; orders left with no
visible lines are dropped.
"""
from django.db.models import Prefetch, Q

from ..models import Order, OrderItem

OPEN_ORDER_STATUSES = (Order.NEW, Order.ON_PROCESS)
CHEF_ITEM_STATUSES = (OrderItem.PENDING, OrderItem.PREPARING)
DONE_ITEM_STATUSES = (OrderItem.SERVED, OrderItem.CANCELLED)


def _orders_with(item_filter):
    lines = (
        OrderItem.objects
        .filter(item_filter)
        .select_related('menu_item__category')
        .order_by('created_at', 'id')
    )
    orders = (
        Order.objects
        .filter(status__in=OPEN_ORDER_STATUSES)
        .select_related('table__table_type')
        .prefetch_related(Prefetch('items', queryset=lines, to_attr='visible_items'))
        .order_by('-created_at', '-id')
    )
    return [order for order in orders if order.visible_items]


def chef_filter(status=None):
    statuses = [status] if status else list(CHEF_ITEM_STATUSES)
    return Q(menu_item__is_cook=True, status__in=statuses)


def delivery_filter(status=None):
    # cooked dishes wait for the kitchen; everything else can go out right away
    cooked = Q(menu_item__is_cook=True, status=OrderItem.READY)
    uncooked = Q(menu_item__is_cook=False) & ~Q(status__in=DONE_ITEM_STATUSES)
    item_filter = cooked | uncooked
    if status:
        item_filter &= Q(status=status)
    return item_filter


def chef_orders(status=None):
    return _orders_with(chef_filter(status))


def delivery_orders(status=None):
    return _orders_with(delivery_filter(status))

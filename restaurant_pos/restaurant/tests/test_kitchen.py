import pytest

from restaurant.models import Order, OrderItem
from restaurant.services.kitchen import chef_orders, delivery_orders
from restaurant.services.orders import create_order, update_order

from .helpers import data, error_code

pytestmark = pytest.mark.django_db


def set_status(order, menu_item, status):
    OrderItem.objects.filter(order=order, menu_item=menu_item).update(status=status)


@pytest.fixture
def open_order(table, menu):
    return create_order(table=table, items=[(menu['lok_lak'], 1), (menu['iced_coffee'], 1)])


def visible(orders):
    return {order.pk: [item.menu_item.name for item in order.visible_items] for order in orders}


def test_chef_sees_pending_cooked_items_only(open_order):
    assert visible(chef_orders()) == {open_order.pk: ['Lok Lak']}


def test_chef_drops_ready_items_and_empty_orders(open_order, menu):
    set_status(open_order, menu['lok_lak'], OrderItem.READY)
    assert chef_orders() == []


def test_chef_status_filter(open_order, menu):
    set_status(open_order, menu['lok_lak'], OrderItem.READY)
    assert visible(chef_orders(OrderItem.READY)) == {open_order.pk: ['Lok Lak']}


def test_delivery_waits_for_cooked_items(open_order, menu):
    assert visible(delivery_orders()) == {open_order.pk: ['Iced Coffee']}
    set_status(open_order, menu['lok_lak'], OrderItem.READY)
    assert visible(delivery_orders()) == {open_order.pk: ['Lok Lak', 'Iced Coffee']}


def test_delivery_hides_served_and_cancelled(open_order, menu):
    set_status(open_order, menu['iced_coffee'], OrderItem.SERVED)
    set_status(open_order, menu['lok_lak'], OrderItem.CANCELLED)
    assert delivery_orders() == []


def test_finished_orders_are_hidden(open_order):
    update_order(open_order, status=Order.DONE)
    assert chef_orders() == []
    assert delivery_orders() == []


def test_newest_order_first(open_order, menu):
    newer = create_order(items=[(menu['lok_lak'], 1)])
    assert [order.pk for order in chef_orders()] == [newer.pk, open_order.pk]


def test_chef_endpoint(chef_api, open_order):
    body = data(chef_api.get('/api/chef/orders'))
    assert len(body['items']) == 1
    order = body['items'][0]
    assert order['order_number'] == open_order.order_number
    assert [item['menu_item']['name'] for item in order['items']] == ['Lok Lak']


def test_delivery_endpoint_with_status_filter(waiter_api, open_order):
    body = data(waiter_api.get('/api/delivery/items', {'status': 'pending'}))
    assert [item['menu_item']['name'] for item in body['items'][0]['items']] == ['Iced Coffee']


def test_bad_status_filter(chef_api):
    response = chef_api.get('/api/chef/orders', {'status': 'eaten'})
    assert response.status_code == 400
    assert error_code(response) == 'VALIDATION_ERROR'


def test_waiter_cannot_open_chef_screen(waiter_api):
    assert waiter_api.get('/api/chef/orders').status_code == 403

from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from restaurant.authentication import generate_token
from restaurant.models import Category, MenuItem, Price, Role, Table, TableType, User


@pytest.fixture
def roles(db):
    return {
        name: Role.objects.create(name=name, display_name=name.title())
        for name in (Role.ADMIN, Role.CHEF, Role.WAITER, Role.ORDER)
    }


@pytest.fixture
def make_user(roles):
    def make(username, role=Role.ADMIN, password='secret123', is_active=True):
        user = User(username=username, role=roles[role], is_active=is_active)
        user.set_password(password)
        user.save()
        return user
    return make


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def client_for(make_user):
    def build(role, username=None):
        user = make_user(username or f"{role}-user", role)
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {generate_token(user)}")
        client.user = user
        return client
    return build


@pytest.fixture
def admin_api(client_for):
    return client_for(Role.ADMIN)


@pytest.fixture
def waiter_api(client_for):
    return client_for(Role.WAITER)


@pytest.fixture
def chef_api(client_for):
    return client_for(Role.CHEF)


@pytest.fixture
def table_types(db):
    return {
        'standard': TableType.objects.create(name='standard', display_name='Standard', order=1),
        'vip': TableType.objects.create(name='vip', display_name='VIP', order=2),
    }


@pytest.fixture
def table(table_types):
    return Table.objects.create(number='1', name='Table 1', table_type=table_types['standard'])


@pytest.fixture
def vip_table(table_types):
    return Table.objects.create(number='V1', name='VIP 1', table_type=table_types['vip'])


@pytest.fixture
def menu(table_types):
    """
    lok_lak:     cooked, 1000 standard / 1500 vip
    iced_coffee: not cooked, 500 standard only
    """
    food = Category.objects.create(name='food', display_name='Main Course')
    drink = Category.objects.create(name='drink', display_name='Beverage')
    lok_lak = MenuItem.objects.create(name='Lok Lak', category=food, is_cook=True)
    iced_coffee = MenuItem.objects.create(name='Iced Coffee', category=drink, is_cook=False)
    Price.objects.create(menu_item=lok_lak, table_type=table_types['standard'], amount=Decimal('1000'))
    Price.objects.create(menu_item=lok_lak, table_type=table_types['vip'], amount=Decimal('1500'))
    Price.objects.create(menu_item=iced_coffee, table_type=table_types['standard'], amount=Decimal('500'))
    return {'lok_lak': lok_lak, 'iced_coffee': iced_coffee, 'food': food, 'drink': drink}

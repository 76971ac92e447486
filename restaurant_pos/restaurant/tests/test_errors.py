import pytest
from django.db import IntegrityError

from restaurant.exceptions import api_exception_handler


@pytest.mark.parametrize('message, status, code', [
    ('UNIQUE constraint failed: restaurant_category.name', 409, 'DUPLICATE_ENTRY'),
    ('duplicate key value violates unique constraint "restaurant_category_name_key"', 409, 'DUPLICATE_ENTRY'),
    ('FOREIGN KEY constraint failed', 400, 'INVALID_REFERENCE'),
    ('insert or update on table "restaurant_table" violates foreign key constraint', 400, 'INVALID_REFERENCE'),
    ('NOT NULL constraint failed: restaurant_order.order_number', 400, 'CONSTRAINT_ERROR'),
    ('new row for relation "restaurant_price" violates check constraint', 400, 'CONSTRAINT_ERROR'),
])
def test_integrity_errors_are_told_apart(message, status, code):
    response = api_exception_handler(IntegrityError(message), {})
    assert response.status_code == status
    assert response.data['error']['code'] == code
    assert response.data['error']['details'] == [{'message': message}]

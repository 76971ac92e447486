import pytest

from restaurant.models import Expense, ExpenseItem, Unit

from .helpers import data, error_code

pytestmark = pytest.mark.django_db

EXPENSES = '/api/admin/expenses'


@pytest.fixture
def expense(admin_api):
    response = admin_api.post(EXPENSES, {
        'title': 'Market run',
        'category': 'ingredients',
        'date': '2024-11-15T09:00:00',
        'vendor': 'Central Market',
        'items': [
            {'product_name': 'Rice', 'quantity': '2', 'unit_price': '5', 'currency': 'USD'},
            {'product_name': 'Ice', 'quantity': '1', 'unit_price': '4000', 'currency': 'KHR'},
        ],
    }, format='json')
    assert response.status_code == 201
    return data(response)


def items_url(expense):
    return f"{EXPENSES}/{expense['id']}/items"


def test_create_expense_with_mixed_currencies(expense):
    assert expense['amount_usd'] == '10.00'
    assert expense['amount_khr'] == '4000.00'
    assert expense['amount'] == '44000.00'
    assert [item['total_price'] for item in expense['items']] == ['10.00', '4000.00']


def test_add_item_recomputes(admin_api, expense):
    kg = Unit.objects.create(name='kg', display_name='Kilogram')
    body = data(admin_api.post(items_url(expense), {
        'product_name': 'Pork', 'quantity': '1.5', 'unit_id': kg.pk, 'unit_price': '4', 'currency': 'USD',
    }, format='json'))
    assert body['amount_usd'] == '16.00'
    assert body['amount'] == '68000.00'
    assert body['items'][-1]['unit_name'] == 'Kilogram'


def test_update_item_recomputes(admin_api, expense):
    ice = ExpenseItem.objects.get(expense_id=expense['id'], product_name='Ice')
    body = data(admin_api.put(items_url(expense), {'item_id': ice.pk, 'quantity': '3'}, format='json'))
    assert body['amount_khr'] == '12000.00'
    assert body['amount'] == '52000.00'


def test_delete_item_recomputes(admin_api, expense):
    rice = ExpenseItem.objects.get(expense_id=expense['id'], product_name='Rice')
    body = data(admin_api.delete(f"{items_url(expense)}?item_id={rice.pk}"))
    assert body['amount_usd'] == '0.00'
    assert body['amount'] == '4000.00'


def test_update_unknown_item(admin_api, expense):
    response = admin_api.put(items_url(expense), {'item_id': 9999, 'quantity': '1'}, format='json')
    assert response.status_code == 404
    assert error_code(response) == 'NOT_FOUND'


def test_update_item_requires_item_id(admin_api, expense):
    response = admin_api.put(items_url(expense), {'quantity': '1'}, format='json')
    assert response.status_code == 400
    assert error_code(response) == 'VALIDATION_ERROR'


def test_item_quantity_must_be_positive(admin_api, expense):
    response = admin_api.post(items_url(expense), {
        'product_name': 'Salt', 'quantity': '0', 'unit_price': '1', 'currency': 'USD',
    }, format='json')
    assert response.status_code == 400


def test_amounts_cannot_be_overwritten(admin_api, expense):
    body = data(admin_api.put(f"{EXPENSES}/{expense['id']}", {'title': 'Morning market', 'amount': '1'}, format='json'))
    assert body['title'] == 'Morning market'
    assert body['amount'] == '44000.00'


def test_list_and_filter_by_category(admin_api, expense):
    admin_api.post(EXPENSES, {'title': 'Gas', 'category': 'utilities', 'date': '2024-11-16T09:00:00'}, format='json')
    body = data(admin_api.get(EXPENSES, {'category': 'utilities'}))
    assert [e['title'] for e in body['items']] == ['Gas']
    assert body['pagination']['total'] == 1


def test_filter_by_date_range(admin_api, expense):
    body = data(admin_api.get(EXPENSES, {'start_date': '2024-11-16'}))
    assert body['items'] == []
    body = data(admin_api.get(EXPENSES, {'start_date': '2024-11-15', 'end_date': '2024-11-15'}))
    assert len(body['items']) == 1


def test_bad_date_filter(admin_api):
    response = admin_api.get(EXPENSES, {'start_date': 'yesterday'})
    assert error_code(response) == 'VALIDATION_ERROR'


def test_delete_expense_removes_items(admin_api, expense):
    assert admin_api.delete(f"{EXPENSES}/{expense['id']}").status_code == 200
    assert not Expense.objects.exists()
    assert not ExpenseItem.objects.exists()


def test_waiter_cannot_see_expenses(waiter_api):
    assert waiter_api.get(EXPENSES).status_code == 403

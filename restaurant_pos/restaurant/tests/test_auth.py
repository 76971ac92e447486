from datetime import timedelta

import jwt
import pytest
from django.conf import settings
from django.utils import timezone

from restaurant import views
from restaurant.authentication import generate_token, verify_token
from restaurant.models import Role

from .helpers import data, error_code

pytestmark = pytest.mark.django_db

LOGIN = '/api/auth/login'


def test_login_returns_token_and_role(api_client, make_user):
    make_user('sokha', Role.WAITER, password='secret123')
    response = api_client.post(LOGIN, {'username': 'sokha', 'password': 'secret123'}, format='json')
    body = data(response)
    assert body['user']['username'] == 'sokha'
    assert body['user']['role']['name'] == 'waiter'
    assert 'password' not in body['user']
    claims = verify_token(body['token'])
    assert claims['username'] == 'sokha'
    assert claims['role_id'] == body['user']['role']['id']


def test_login_wrong_password(api_client, make_user):
    make_user('sokha', password='secret123')
    response = api_client.post(LOGIN, {'username': 'sokha', 'password': 'nope'}, format='json')
    assert response.status_code == 401
    assert error_code(response) == 'INVALID_CREDENTIALS'


def test_login_unknown_user(api_client, roles):
    response = api_client.post(LOGIN, {'username': 'ghost', 'password': 'secret123'}, format='json')
    assert error_code(response) == 'INVALID_CREDENTIALS'


def test_login_disabled_account(api_client, make_user):
    make_user('old', password='secret123', is_active=False)
    response = api_client.post(LOGIN, {'username': 'old', 'password': 'secret123'}, format='json')
    assert response.status_code == 403
    assert error_code(response) == 'ACCOUNT_DISABLED'


def test_login_requires_both_fields(api_client):
    response = api_client.post(LOGIN, {'username': 'sokha'}, format='json')
    assert response.status_code == 400
    body = response.json()
    assert body['error']['code'] == 'VALIDATION_ERROR'
    assert body['error']['details'] == [{'field': 'password', 'message': 'This field is required.'}]
    assert 'timestamp' in body


def test_me(waiter_api):
    body = data(waiter_api.get('/api/auth/me'))
    assert body['username'] == waiter_api.user.username


def test_missing_token(api_client):
    response = api_client.get('/api/auth/me')
    assert response.status_code == 401
    assert error_code(response) == 'UNAUTHORIZED'
    assert response['WWW-Authenticate'].startswith('Bearer')


def test_garbage_token(api_client):
    api_client.credentials(HTTP_AUTHORIZATION='Bearer not-a-token')
    response = api_client.get('/api/auth/me')
    assert response.status_code == 401
    assert error_code(response) == 'UNAUTHORIZED'


def test_expired_token(api_client, make_user):
    user = make_user('late')
    token = jwt.encode(
        {'user_id': user.pk, 'username': user.username, 'role_id': user.role_id,
         'exp': timezone.now() - timedelta(minutes=1)},
        settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM,
    )
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
    assert api_client.get('/api/auth/me').status_code == 401


def test_token_of_disabled_user_is_rejected(api_client, make_user):
    user = make_user('gone')
    token = generate_token(user)
    user.is_active = False
    user.save()
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
    assert api_client.get('/api/auth/me').status_code == 401


def test_token_in_query_string(api_client, make_user):
    user = make_user('kiosk', Role.ORDER)
    response = api_client.get('/api/auth/me', {'token': generate_token(user)})
    assert data(response)['username'] == 'kiosk'


def test_role_not_allowed(waiter_api):
    response = waiter_api.get('/api/admin/categories')
    assert response.status_code == 403
    assert error_code(response) == 'FORBIDDEN'


def test_public_menu_needs_no_login(api_client, menu):
    body = data(api_client.get('/api/menu'))
    assert [item['name'] for item in body] == ['Iced Coffee', 'Lok Lak']
    lok_lak = body[1]
    assert lok_lak['prices'] == {'standard': '1000.00', 'vip': '1500.00'}
    assert lok_lak['category'] == 'food'


def test_public_menu_filters(api_client, menu):
    body = data(api_client.get('/api/menu', {'category': 'food', 'table_type': 'vip'}))
    assert len(body) == 1
    assert body[0]['prices'] == {'vip': '1500.00'}


def test_public_lookups(api_client, menu):
    assert [c['name'] for c in data(api_client.get('/api/categories'))] == ['drink', 'food']
    assert [t['name'] for t in data(api_client.get('/api/table-types'))] == ['standard', 'vip']


def test_public_menu_ignores_bad_token(api_client, menu):
    api_client.credentials(HTTP_AUTHORIZATION='Bearer not-a-token')
    assert api_client.get('/api/menu').status_code == 200


def test_unexpected_error_uses_action_code(chef_api, monkeypatch):
    def broken(status=None):
        raise RuntimeError('boom')

    monkeypatch.setattr(views.ChefOrdersView, 'fetch_orders', staticmethod(broken))
    response = chef_api.get('/api/chef/orders')
    assert response.status_code == 500
    body = response.json()
    assert body['error']['code'] == 'FETCH_COOK_ORDERS_ERROR'
    assert body['error']['details'] == [{'message': 'boom'}]

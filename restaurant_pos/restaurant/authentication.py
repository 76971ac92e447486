from datetime import timedelta

import jwt
from django.conf import settings
from django.utils import timezone
from rest_framework import authentication, exceptions

from .models import User


def generate_token(user):
    payload = {
        'user_id': user.pk,
        'username': user.username,
        'role_id': user.role_id,
        'exp': timezone.now() + timedelta(days=settings.JWT_EXPIRES_DAYS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def verify_token(token):
    """Return the token claims, or None when the token is bad or expired."""
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.PyJWTError:
        return None


def token_from_request(request):
    header = request.META.get('HTTP_AUTHORIZATION', '')
    if header.startswith('Bearer '):
        return header[len('Bearer '):].strip()
    # EventSource cannot send headers, so streams pass ?token=
    return request.query_params.get('token') or None


class JWTAuthentication(authentication.BaseAuthentication):
    keyword = 'Bearer'

    def authenticate(self, request):
        token = token_from_request(request)
        if not token:
            return None

        payload = verify_token(token)
        if payload is None:
            raise exceptions.AuthenticationFailed('Invalid or expired token')

        user = User.objects.select_related('role').filter(pk=payload.get('user_id')).first()
        if user is None or not user.is_active:
            raise exceptions.AuthenticationFailed('Invalid or expired token')
        return user, payload

    def authenticate_header(self, request):
        return f'{self.keyword} realm="api"'

import logging

from django.core.exceptions import ObjectDoesNotExist
from django.db import IntegrityError
from django.db.models import ProtectedError
from django.http import Http404
from rest_framework import exceptions
from rest_framework.settings import api_settings
from rest_framework.views import set_rollback

from .responses import error_response

logger = logging.getLogger(__name__)


class ApiError(exceptions.APIException):
    status_code = 400
    default_code = 'API_ERROR'
    default_detail = 'Request failed'

    def __init__(self, message=None, details=None):
        super().__init__(message or self.default_detail, self.default_code)
        self.details = details


class ValidationFailed(ApiError):
    default_code = 'VALIDATION_ERROR'
    default_detail = 'Invalid input'


class NotFoundError(ApiError):
    status_code = 404
    default_code = 'NOT_FOUND'
    default_detail = 'Not found'


class DuplicateEntry(ApiError):
    status_code = 409
    default_code = 'DUPLICATE_ENTRY'
    default_detail = 'Record already exists'


class InvalidReference(ApiError):
    default_code = 'INVALID_REFERENCE'
    default_detail = 'Referenced record does not exist'


class InUse(ApiError):
    status_code = 409
    default_code = 'IN_USE'
    default_detail = 'Record is referenced by other records'


class InvalidTransition(ApiError):
    status_code = 409
    default_code = 'INVALID_TRANSITION'
    default_detail = 'Status change not allowed'


class DailyOrderLimitReached(ApiError):
    status_code = 409
    default_code = 'ORDER_LIMIT_REACHED'
    default_detail = 'No order numbers left for today'


class InvalidCredentials(ApiError):
    status_code = 401
    default_code = 'INVALID_CREDENTIALS'
    default_detail = 'Invalid username or password'


class AccountDisabled(ApiError):
    status_code = 403
    default_code = 'ACCOUNT_DISABLED'
    default_detail = 'Account is disabled'


ACTION_VERBS = {
    'GET': 'FETCH',
    'POST': 'CREATE',
    'PUT': 'UPDATE',
    'PATCH': 'UPDATE',
    'DELETE': 'DELETE',
}


def _walk(detail, field=None):
    """Yield (field, ErrorDetail) pairs from a DRF error structure."""
    if isinstance(detail, dict):
        for key, value in detail.items():
            name = None if key == api_settings.NON_FIELD_ERRORS_KEY else str(key)
            if field and name:
                name = f"{field}.{name}"
            yield from _walk(value, name or field)
    elif isinstance(detail, list):
        for index, value in enumerate(detail):
            if isinstance(value, (dict, list)):
                yield from _walk(value, f"{field}.{index}" if field else str(index))
            else:
                yield from _walk(value, field)
    else:
        yield field, detail


def _details(pairs):
    out = []
    for field, message in pairs:
        entry = {"message": str(message)}
        if field:
            entry = {"field": field, **entry}
        out.append(entry)
    return out


def _validation_response(exc):
    pairs = list(_walk(exc.detail))
    codes = {getattr(message, 'code', None) for _, message in pairs}
    details = _details(pairs)
    first = details[0]["message"] if details else "Invalid input"

    if codes == {'unique'}:
        return error_response('DUPLICATE_ENTRY', first, 409, details)
    if 'does_not_exist' in codes and codes <= {'does_not_exist', 'incorrect_type'}:
        return error_response('INVALID_REFERENCE', first, 400, details)
    return error_response('VALIDATION_ERROR', first, 400, details)


def _integrity_response(exc):
    """Database constraint failures that slipped past serializer validation."""
    message = str(exc)
    lowered = message.lower()
    details = [{"message": message}]
    if 'unique' in lowered or 'duplicate' in lowered:
        return error_response('DUPLICATE_ENTRY', 'Record conflicts with an existing one', 409, details)
    if 'foreign key' in lowered:
        return error_response('INVALID_REFERENCE', 'Referenced record does not exist', 400, details)
    return error_response('CONSTRAINT_ERROR', 'Record violates a database constraint', 400, details)


def _action_code(context):
    view = context.get('view')
    request = context.get('request')
    verb = ACTION_VERBS.get(getattr(request, 'method', ''), 'REQUEST')
    resource = getattr(view, 'error_resource', None)
    if resource:
        return f"{verb}_{resource}_ERROR"
    return f"{verb}_ERROR"


def api_exception_handler(exc, context):
    """Turn every error raised inside an API view into the error envelope."""
    if isinstance(exc, ApiError):
        response = error_response(exc.default_code, str(exc.detail), exc.status_code, exc.details)
    elif isinstance(exc, (Http404, exceptions.NotFound, ObjectDoesNotExist)):
        message = str(exc) if isinstance(exc, ObjectDoesNotExist) and str(exc) else "Not found"
        response = error_response('NOT_FOUND', message, 404)
    elif isinstance(exc, (exceptions.NotAuthenticated, exceptions.AuthenticationFailed)):
        response = error_response('UNAUTHORIZED', str(exc.detail), 401, [{"message": str(exc.detail)}])
        auth_header = getattr(exc, 'auth_header', None)
        if auth_header:
            response['WWW-Authenticate'] = auth_header
    elif isinstance(exc, exceptions.PermissionDenied):
        response = error_response('FORBIDDEN', 'Insufficient permissions', 403, [
            {"message": "You don't have permission to access this resource"},
        ])
    elif isinstance(exc, exceptions.ValidationError):
        response = _validation_response(exc)
    elif isinstance(exc, ProtectedError):
        count = len(exc.protected_objects)
        response = error_response('IN_USE', 'Cannot delete a record that is still in use', 409, [
            {"message": f"Referenced by {count} record(s)"},
        ])
    elif isinstance(exc, IntegrityError):
        response = _integrity_response(exc)
    elif isinstance(exc, exceptions.APIException):
        code = str(exc.default_code).upper()
        response = error_response(code, str(exc.detail), exc.status_code)
    else:
        code = _action_code(context)
        logger.exception("%s while handling %s", code, getattr(context.get('request'), 'path', '?'))
        response = error_response(code, 'Unexpected server error', 500, [{"message": str(exc)}])

    set_rollback()
    return response

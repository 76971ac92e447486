from django.utils import timezone
from rest_framework.response import Response


def _now():
    return timezone.now().isoformat()


def success_response(data, message=None, status=200):
    return Response({
        "success": True,
        "data": data,
        "message": message or "Operation successful",
        "timestamp": _now(),
    }, status=status)


def error_body(code, message, details=None):
    error = {"code": code, "message": message}
    if details:
        error["details"] = details
    return {"success": False, "error": error, "timestamp": _now()}


def error_response(code, message, status=500, details=None):
    return Response(error_body(code, message, details), status=status)


def paginated(items, page):
    paginator = page.paginator
    return {
        "items": items,
        "pagination": {
            "page": page.number,
            "limit": paginator.per_page,
            "total": paginator.count,
            "total_pages": paginator.num_pages if paginator.count else 0,
            "has_next_page": page.has_next(),
            "has_prev_page": page.has_previous(),
        },
    }

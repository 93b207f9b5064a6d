from django.db import DatabaseError, connection
from django.http import HttpResponse, JsonResponse

WELCOME_MESSAGE = "Welcome to the restaurant stock and sales REST API (v1)"


def api_root(request):
    """Return the API welcome message."""
    return JsonResponse({"message": WELCOME_MESSAGE})


def health_check(request):
    """Report liveness, and 503 when the database cannot be reached."""
    try:
        connection.ensure_connection()
    except DatabaseError:
        return HttpResponse("database unavailable", status=503)
    return HttpResponse("ok")

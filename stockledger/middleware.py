"""
Request middleware binding the authenticated user as the acting user.

Add after AuthenticationMiddleware:

    MIDDLEWARE = [
        ...
        "django.contrib.auth.middleware.AuthenticationMiddleware",
        "stockledger.middleware.CurrentUserMiddleware",
    ]
"""

from stockledger.adapters.identity import acting_as


class CurrentUserMiddleware:
    """Bind ``request.user`` for the duration of the request."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        with acting_as(getattr(request, 'user', None)):
            return self.get_response(request)

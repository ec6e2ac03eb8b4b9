"""
Request middleware: account context injection and request timing.
"""

import logging
import time

from django.utils.deprecation import MiddlewareMixin
from django.utils.functional import SimpleLazyObject

from .accounts import account_from_request

logger = logging.getLogger(__name__)


class AccountContextMiddleware(MiddlewareMixin):
    """
    Attach ``request.account`` (an AccountContext) to every request.

    Must come after AuthenticationMiddleware so ``request.user`` is set.
    """

    def process_request(self, request):
        request.account = SimpleLazyObject(lambda: account_from_request(request))


class RequestTimingMiddleware(MiddlewareMixin):
    """
    Logs the time taken for each request.

    Output format:
    METHOD /path/ - XXX.XXms - STATUS
    """

    skip_prefixes = ("/static/", "/media/", "/admin/")

    def process_request(self, request):
        request._start_time = time.monotonic()

    def process_response(self, request, response):
        if hasattr(request, "_start_time") and not request.path.startswith(self.skip_prefixes):
            duration_ms = (time.monotonic() - request._start_time) * 1000
            logger.info(
                f"{request.method:4s} {request.path:40s} {duration_ms:7.2f}ms {response.status_code}"
            )
        return response

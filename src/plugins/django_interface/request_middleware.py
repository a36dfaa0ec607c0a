import uuid

import structlog

from crm_core.adapters.context.request_context import reset_request, set_current_request


class RequestContextMiddleware:
    """
    Stores the request in a context var so handlers can access it, and binds
    a request id to structlog's context for every log line of the request.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        token = set_current_request(request)
        request_id = request.META.get("HTTP_X_REQUEST_ID") or uuid.uuid4().hex
        structlog.contextvars.bind_contextvars(request_id=request_id, path=request.path)
        try:
            response = self.get_response(request)
        finally:
            structlog.contextvars.clear_contextvars()
            reset_request(token)
        response["X-Request-ID"] = request_id
        return response

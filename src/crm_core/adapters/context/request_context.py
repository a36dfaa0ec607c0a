import contextvars

_current_request = contextvars.ContextVar("current_request", default=None)


def set_current_request(request):
    """Store the current request in a context variable."""
    return _current_request.set(request)


def get_current_request():
    """Retrieve request stored by RequestContextMiddleware."""
    try:
        return _current_request.get()
    except LookupError:
        return None


def reset_request(token):
    """Reset context variable to previous state."""
    _current_request.reset(token)


def current_client_info() -> tuple[str | None, str | None]:
    """(ip, user agent) do request corrente; (None, None) fora de um request."""
    request = get_current_request()
    if request is None:
        return None, None
    meta = getattr(request, "META", {})
    forwarded = meta.get("HTTP_X_FORWARDED_FOR")
    ip = forwarded.split(",")[0].strip() if forwarded else meta.get("REMOTE_ADDR")
    return ip or None, meta.get("HTTP_USER_AGENT") or None

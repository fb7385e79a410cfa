"""Trust ``X-Forwarded-*`` headers from the reverse proxy in front of gunicorn."""

from __future__ import annotations

from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix


def init_app(app: Flask) -> None:
    """
    Wrap the WSGI app in :class:`ProxyFix` unless ``USE_PROXYFIX`` is false.

    ``PROXYFIX_HOPS`` is the number of trusted proxies. Session records keep
    ``request.remote_addr``, so a wrong hop count records the proxy address
    instead of the client's.
    """
    if not app.config.get("USE_PROXYFIX", True):
        return
    hops = int(app.config.get("PROXYFIX_HOPS", 1))
    app.wsgi_app = ProxyFix(  # type: ignore[method-assign]
        app.wsgi_app, x_for=hops, x_proto=hops, x_host=hops, x_prefix=hops
    )

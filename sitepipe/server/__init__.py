"""Development server module."""

from sitepipe.server.dev import DevRequestHandler, create_server, serve


__all__ = ["DevRequestHandler", "create_server", "serve"]

"""Development HTTP server over the output directory.

Serves files the way a static host with "clean URLs" would: a request for
``/about`` is answered with ``about.html`` when that file exists. Anything
else falls through to the standard library's static file handling.
"""

import functools
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

import structlog


logger = structlog.get_logger()

HTML_SUFFIX = ".html"


class DevRequestHandler(SimpleHTTPRequestHandler):
    """Static file handler that maps extensionless paths to ``.html`` files."""

    def do_GET(self) -> None:  # noqa: N802
        self._rewrite_clean_url()
        super().do_GET()

    def do_HEAD(self) -> None:  # noqa: N802
        self._rewrite_clean_url()
        super().do_HEAD()

    def _rewrite_clean_url(self) -> None:
        path, sep, query = self.path.partition("?")
        if path.endswith("/") or path.endswith(HTML_SUFFIX):
            return
        candidate = Path(self.translate_path(path + HTML_SUFFIX))
        if candidate.exists():
            self.path = path + HTML_SUFFIX + sep + query

    def log_message(self, format: str, *args: object) -> None:
        logger.info(
            "http_request",
            component="dev_server",
            client=self.address_string(),
            message=format % args,
        )


def create_server(directory: Path, host: str, port: int) -> ThreadingHTTPServer:
    """Create a dev server bound to ``host:port`` serving ``directory``.

    Args:
        directory: Directory to serve, normally the site's output directory.
        host: Bind address.
        port: Bind port (0 picks a free port).

    Returns:
        The bound, not yet serving, server.
    """
    handler = functools.partial(DevRequestHandler, directory=str(directory))
    return ThreadingHTTPServer((host, port), handler)


def serve(directory: Path, host: str = "127.0.0.1", port: int = 8080) -> None:
    """Serve ``directory`` until interrupted.

    Args:
        directory: Directory to serve.
        host: Bind address.
        port: Bind port.
    """
    httpd = create_server(directory, host, port)
    bound_host, bound_port = httpd.server_address[:2]
    log = logger.bind(component="dev_server")
    log.info(
        "serving",
        directory=str(directory),
        url=f"http://{bound_host}:{bound_port}",
    )
    try:
        httpd.serve_forever()
    except KeyboardInterrupt:
        log.info("server_stopping")
    finally:
        httpd.server_close()

"""HTTP application and the service entry point."""

from __future__ import annotations

import argparse
import logging
import signal
import threading
from socketserver import ThreadingMixIn
from typing import Protocol
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer, make_server

from flask import Flask

from orderservice.accounting_http import AccountingModule
from orderservice.config import ConfigError, load_config
from orderservice.migrations import MigrationError, migrate_up
from orderservice.order_http import OrderModule
from orderservice.transactions import DatabaseError, create_engine_from_dsn

_log = logging.getLogger(__name__)

_SHUTDOWN_TIMEOUT = 5.0


class _Module(Protocol):
    def register_routes(self, app: Flask, prefix: str) -> None: ...


class _ThreadingWSGIServer(ThreadingMixIn, WSGIServer):
    daemon_threads = True


class App:
    """The HTTP application holding every domain's routes."""

    def __init__(self) -> None:
        self.flask_app = Flask("orderservice")

    def setup_routes(self, *modules: _Module) -> None:
        """Mount each module's routes under ``/api``."""
        for module in modules:
            module.register_routes(self.flask_app, "/api")

    def serve(self, host: str = "", port: int = 8080) -> None:
        """Serve until SIGINT or SIGTERM, then shut down gracefully."""
        stop = threading.Event()
        server = make_server(
            host,
            port,
            self.flask_app,
            server_class=_ThreadingWSGIServer,
            handler_class=WSGIRequestHandler,
        )
        previous = {}
        if threading.current_thread() is threading.main_thread():
            for signum in (signal.SIGINT, signal.SIGTERM):
                previous[signum] = signal.signal(signum, lambda *_: stop.set())

        worker = threading.Thread(target=server.serve_forever, daemon=True)
        worker.start()
        try:
            while not stop.wait(0.5):
                pass
        finally:
            for signum, handler in previous.items():
                signal.signal(signum, handler)
            _log.info("Server stop start")
            server.shutdown()
            server.server_close()
            worker.join(_SHUTDOWN_TIMEOUT)
            _log.info("Server stopped")


def main(argv: list[str] | None = None) -> int:
    """Load configuration, migrate the database and serve the API."""
    parser = argparse.ArgumentParser(
        prog="orderservice", description="Run the order service HTTP API."
    )
    parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")

    try:
        config = load_config()
    except ConfigError as exc:
        _log.critical("can't load config: %s", exc)
        return 1

    try:
        engine = create_engine_from_dsn(config.db.connection_string)
    except DatabaseError as exc:
        _log.critical("Failed to connect to database: %s", exc)
        return 1

    try:
        _log.info("db Pool has been initialized")
        try:
            migrate_up(engine, config.db.migration_path)
        except MigrationError as exc:
            _log.critical("failed to run migrations: %s", exc)
            return 1

        app = App()
        app.setup_routes(OrderModule(engine), AccountingModule(engine))
        try:
            app.serve("", 8080)
        except OSError as exc:
            _log.critical("Service running error: %s", exc)
            return 1
    finally:
        engine.dispose()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
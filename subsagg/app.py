"""Application wiring, URL routing and the service entry point."""

from __future__ import annotations

import logging
import os
import signal
import sys
import threading
from typing import Any, Callable

from werkzeug.exceptions import HTTPException
from werkzeug.routing import Map, Rule
from werkzeug.serving import BaseWSGIServer, make_server
from werkzeug.wrappers import Request

from subsagg.config import Config, load_config
from subsagg.controller import SubscriptionController
from subsagg.logsetup import new_text_logger
from subsagg.middleware import RequestLoggingMiddleware
from subsagg.repository import SubscriptionRepository, apply_migrations, connect_db
from subsagg.service import SubscriptionService

_log = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


def create_router(controller: SubscriptionController, logger: logging.Logger) -> Callable:
    """A WSGI application routing the API paths to the controller."""
    url_map = Map([
        Rule(f"{API_PREFIX}/subscriptions", endpoint="create", methods=["POST"]),
        Rule(f"{API_PREFIX}/subscriptions/<sub_id>", endpoint="get", methods=["GET"]),
        Rule(f"{API_PREFIX}/subscriptions/<sub_id>", endpoint="update", methods=["PATCH"]),
        Rule(f"{API_PREFIX}/subscriptions/<sub_id>", endpoint="delete", methods=["DELETE"]),
        Rule(f"{API_PREFIX}/subscriptions", endpoint="list", methods=["GET"]),
        Rule(f"{API_PREFIX}/subscriptions/cost/total", endpoint="total", methods=["GET"]),
    ])
    handlers = {
        "create": controller.create_subscription,
        "get": controller.get_subscription,
        "update": controller.update_subscription,
        "delete": controller.delete_subscription,
        "list": controller.list_subscriptions,
        "total": controller.get_total_cost,
    }

    @Request.application
    def router(request: Request) -> Any:
        adapter = url_map.bind_to_environ(request.environ)
        try:
            endpoint, args = adapter.match()
        except HTTPException as exc:
            return exc
        return handlers[endpoint](request, **args)

    return RequestLoggingMiddleware(router, logger)


class App:
    """The assembled service with its HTTP server."""

    def __init__(self, cfg: Config) -> None:
        self.logger = new_text_logger(sys.stdout, cfg.server.log_level)
        connection = connect_db(cfg.subs_repo.uri)
        apply_migrations(connection, cfg.subs_repo.migrations_dir)
        self.repository = SubscriptionRepository(connection)
        controller = SubscriptionController(SubscriptionService(self.repository), self.logger)
        self.handler = create_router(controller, self.logger)
        self.host = cfg.server.host
        self.port = cfg.server.port
        self.address = f"{self.host}:{self.port}"
        self.server: BaseWSGIServer | None = None

    def run(self) -> None:
        """Serve HTTP until shutdown is called."""
        _log.info("app starting on %s", self.address)
        port = int(self.port) if self.port else 80
        self.server = make_server(self.host or "0.0.0.0", port, self.handler, threaded=True)
        self.server.serve_forever()

    def shutdown(self) -> None:
        """Stop the server and release the database."""
        _log.info("app shutting down...")
        if self.server is not None:
            self.server.shutdown()
            self.server.server_close()
        self.repository.close()


def main(argv: list[str] | None = None) -> None:
    env = os.environ.get("ENV", "")
    if not env:
        print("error: missing app environment", file=sys.stderr)
        raise SystemExit(1)
    config_path = os.path.join(os.environ.get("CONFIG_DIR", ""), f"{env}.yaml")

    try:
        app = App(load_config(config_path))
    except Exception as exc:
        print(exc, file=sys.stderr)
        raise SystemExit(1) from exc

    stop = threading.Event()
    failures: list[BaseException] = []

    def serve() -> None:
        try:
            app.run()
        except Exception as exc:
            failures.append(exc)
            stop.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        signal.signal(sig, lambda *_: stop.set())

    threading.Thread(target=serve, daemon=True).start()
    while not stop.wait(0.5):
        pass
    if failures:
        print(f"app error: {failures[0]}", file=sys.stderr)
        raise SystemExit(1)
    try:
        app.shutdown()
    except Exception as exc:
        print(f"app shutdown failed: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
    _log.info("app shutdown completed")


if __name__ == "__main__":
    main()
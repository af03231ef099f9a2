"""WebSocket broadcast channel and dev service."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Awaitable, Callable, Optional

from tornado import httpserver, web, websocket

from bunchy.graph import TaskGraph
from bunchy.settings import Settings
from bunchy.task import TaskName
from bunchy.toolchain import Toolchain
from bunchy.watch import WatchLayer

logger = logging.getLogger(__name__)

WS_PATH = "/bunchy"
DEFAULT_PORT = 3030

Handler = Callable[[object, dict], Awaitable[object]]


class Api:
    """Routes request messages to handlers by method and url."""

    def __init__(self):
        self.routes: dict[tuple[str, str], Handler] = {}

    def route(self, method: str, url: str, handler: Handler):
        self.routes[(method.upper(), url)] = handler

    def post(self, url: str, handler: Handler):
        self.route("POST", url, handler)

    def get(self, url: str, handler: Handler):
        self.route("GET", url, handler)

    async def handle(self, connection, request: dict) -> dict:
        url = request.get("url", "")
        method = str(request.get("method", "GET")).upper()
        reply = {"id": request.get("id"), "url": url}

        handler = self.routes.get((method, url))
        if handler is None:
            reply["error"] = "not found"
            return reply
        reply["data"] = await handler(connection, request)
        return reply


async def echo(connection, request: dict):
    return request.get("data")


class ConnectionManager:
    """Tracks live clients and pushes notifications to all of them."""

    def __init__(self):
        self.connections: set = set()
        self.api = Api()
        self.api.post("/echo", echo)

    def __len__(self) -> int:
        return len(self.connections)

    def broadcast(self, url: str, data, method: str = "POST"):
        message = json.dumps({"url": url, "method": method, "data": data})
        for connection in list(self.connections):
            try:
                connection.write_message(message)
            except websocket.WebSocketClosedError:
                self.connections.discard(connection)
        logger.debug("Broadcast %s to %d clients", url, len(self.connections))


class BroadcastHandler(websocket.WebSocketHandler):
    def initialize(self, manager: ConnectionManager):
        self.manager = manager

    def check_origin(self, origin):
        return True

    def open(self):
        self.manager.connections.add(self)
        logger.info("Client connected (%d total)", len(self.manager))

    def on_close(self):
        self.manager.connections.discard(self)
        logger.info("Client disconnected (%d total)", len(self.manager))

    async def on_message(self, message):
        try:
            request = json.loads(message)
        except (TypeError, json.JSONDecodeError):
            logger.warning("Ignoring malformed message: %r", message)
            return
        if not isinstance(request, dict):
            logger.warning("Ignoring malformed message: %r", message)
            return

        reply = await self.manager.api.handle(self, request)
        try:
            self.write_message(json.dumps(reply))
        except websocket.WebSocketClosedError:
            self.manager.connections.discard(self)


def make_app(settings: Settings, manager: ConnectionManager) -> web.Application:
    return web.Application(
        [
            (WS_PATH, BroadcastHandler, {"manager": manager}),
            (
                r"/(.*)",
                web.StaticFileHandler,
                {"path": str(settings.dirs.public), "default_filename": "index.html"},
            ),
        ]
    )


async def bunchy_service(
    settings: Settings,
    toolchain: Optional[Toolchain] = None,
    manager: Optional[ConnectionManager] = None,
    watch: Optional[WatchLayer] = None,
) -> tuple[TaskGraph, ConnectionManager]:
    """Initial build plus watchers wired to the broadcast channel."""
    if manager is None:
        manager = ConnectionManager()
    graph = TaskGraph(
        settings,
        toolchain,
        broadcaster=manager,
        watch=watch if watch is not None else WatchLayer(),
    )
    await graph.start(TaskName.DEV, minify=False, source_map=True)
    return graph, manager


async def serve(settings: Settings, port: int = DEFAULT_PORT, toolchain: Optional[Toolchain] = None):
    graph, manager = await bunchy_service(settings, toolchain)
    server = httpserver.HTTPServer(make_app(settings, manager))
    server.listen(port)
    logger.info("Serving %s at http://localhost:%d", settings.dirs.public, port)
    try:
        await asyncio.Event().wait()
    finally:
        server.stop()
        if graph.watch is not None:
            graph.watch.stop()

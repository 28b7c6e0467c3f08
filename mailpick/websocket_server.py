"""WebSocket bridge between the browser console and per-view coordinators."""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any

import websockets
from websockets.asyncio.server import Server, ServerConnection

from .api import ArchiveApiError, ArchiveBackend
from .config import Config
from .dialog import InvalidTransition
from .dispatcher import BulkActionDispatcher
from .protocol import Action, Event, Request, Response, ServerEvent, parse_message
from .view import MailboxView, SearchView, ViewContext

logger = logging.getLogger("mailpick.websocket")

KNOWN_ACTIONS = {action.value for action in Action}


@dataclass
class ConsoleSession:
    """State owned by one console connection.

    A connection drives exactly one view at a time; opening another mailbox or
    a new search replaces the view and with it the selection.
    """
    client_id: str
    websocket: ServerConnection
    view: ViewContext | None = None
    search_query: dict[str, Any] = field(default_factory=dict)
    tasks: set[asyncio.Task] = field(default_factory=set)


class ConsoleServer:
    """WebSocket server that hosts one coordinator session per connection."""

    def __init__(self, config: Config, backend: ArchiveBackend):
        self.config = config
        self.backend = backend
        self.dispatcher = BulkActionDispatcher(backend)
        self._sessions: dict[str, ConsoleSession] = {}
        self._server: Server | None = None
        self._running = False

    async def start(self) -> None:
        """Start the WebSocket server."""
        ws_config = self.config.websocket
        self._running = True
        logger.info(f"Starting console bridge on {ws_config.host}:{ws_config.port}")

        self._server = await websockets.serve(
            self._handle_client,
            ws_config.host,
            ws_config.port,
        )

        # Keep running until stopped
        while self._running:
            await asyncio.sleep(1)

    async def stop(self) -> None:
        """Stop the WebSocket server."""
        self._running = False
        if self._server:
            self._server.close()
            await self._server.wait_closed()
            logger.info("Console bridge stopped")

    async def _handle_client(self, websocket: ServerConnection) -> None:
        """Handle a console connection."""
        client_id = str(uuid.uuid4())[:8]
        session = ConsoleSession(client_id=client_id, websocket=websocket)
        self._sessions[client_id] = session
        logger.info(f"Console {client_id} connected from {websocket.remote_address}")

        await self._send_event(websocket, Event.CONNECTED, {"clientId": client_id})

        try:
            async for message in websocket:
                text = message if isinstance(message, str) else message.decode("utf-8")
                await self._handle_message(session, text)
        except websockets.ConnectionClosed:
            logger.info(f"Console {client_id} disconnected")
        finally:
            for task in list(session.tasks):
                task.cancel()
            del self._sessions[client_id]

    async def _handle_message(self, session: ConsoleSession, raw: str) -> None:
        """Handle an incoming message from a console."""
        parsed = parse_message(raw)
        if not isinstance(parsed, Request):
            logger.warning(f"Unknown message from {session.client_id}: {raw[:100]}")
            return

        if parsed.action == Action.CONFIRM.value:
            # Keep reading while the backend call is in flight so selection
            # edits are not blocked behind it
            task = asyncio.create_task(self._respond(session, parsed))
            session.tasks.add(task)
            task.add_done_callback(session.tasks.discard)
            return

        await self._respond(session, parsed)

    async def _respond(self, session: ConsoleSession, request: Request) -> None:
        response = await self.handle_request(session, request)
        try:
            await session.websocket.send(response.to_json())
        except websockets.ConnectionClosed:
            logger.debug(f"Console {session.client_id} closed before response {request.id}")

    async def handle_request(self, session: ConsoleSession, request: Request) -> Response:
        """Handle a request from a console."""
        token = self.config.websocket.auth_token
        if token and request.token != token:
            return Response.failure(request.id, "Unauthorized")

        if request.action not in KNOWN_ACTIONS:
            return Response.failure(request.id, f"Unknown action: {request.action}")

        try:
            result = await self._perform(session, request)
            return Response.success(request.id, result)
        except KeyError as e:
            return Response.failure(request.id, f"Missing parameter: {e.args[0]}")
        except (ValueError, InvalidTransition) as e:
            # Local validation: nothing was sent, state is unchanged
            return Response.failure(request.id, str(e))
        except ArchiveApiError as e:
            return Response.failure(request.id, str(e))
        except Exception as e:
            logger.error(f"Error handling request {request.id}: {e}")
            return Response.failure(request.id, str(e))

    async def _perform(self, session: ConsoleSession, request: Request) -> dict[str, Any]:
        action = request.action
        params = request.params

        if action == Action.PING.value:
            return {"pong": True}

        if action == Action.ALL_TAGS.value:
            return {"tags": await self.backend.all_tags()}

        if action == Action.OPEN_MAILBOX.value:
            session.view = MailboxView(
                int(params["accountId"]),
                int(params["mailboxId"]),
                restore_limit=self.config.console.restore_limit,
            )
            await self._load_page(session, 1, params.get("pageSize"))
            return session.view.snapshot()

        if action == Action.OPEN_SEARCH.value:
            session.view = SearchView()
            session.search_query = dict(params.get("query") or {})
            await self._load_page(session, 1, params.get("pageSize"))
            return session.view.snapshot()

        view = session.view
        if view is None:
            raise ValueError("No view is open")

        if action == Action.LOAD_PAGE.value:
            await self._load_page(session, int(params.get("page", 1)), params.get("pageSize"))
        elif action == Action.TOGGLE.value:
            view.toggle(view.key_from_params(params))
        elif action == Action.TOGGLE_ALL.value:
            view.toggle_all()
        elif action == Action.CLEAR.value:
            view.clear()
        elif action == Action.STAGE_DELETE.value:
            view.stage_single_delete(view.key_from_params(params))
        elif action == Action.STAGE_BULK_DELETE.value:
            view.stage_bulk_delete()
        elif action == Action.EDIT_TAGS.value:
            key = view.key_from_params(params)
            envelope = view.find_envelope(key)
            if envelope is None:
                raise ValueError(f"Message {key} is not on the current page")
            view.open_tag_editor(envelope)
        elif action == Action.ADD_TAG.value:
            view.add_tag(params["tag"])
        elif action == Action.REMOVE_TAG.value:
            view.remove_tag(params["tag"])
        elif action == Action.OPEN_RESTORE.value:
            view.open_restore()
        elif action == Action.CONFIRM.value:
            result = await self.dispatcher.confirm(view, params.get("newTag"))
            await self._send_event(
                session.websocket, Event.NOTIFICATION, result.notification.to_dict()
            )
            return {**view.snapshot(), "dispatched": result.ok}
        elif action == Action.CANCEL.value:
            view.cancel()
        elif action == Action.CLOSE.value:
            view.close()

        return view.snapshot()

    async def _load_page(self, session: ConsoleSession, page: int, page_size: int | None = None) -> None:
        view = session.view
        size = int(page_size or self.config.console.page_size)
        if isinstance(view, MailboxView):
            result = await self.backend.list_messages(view.account_id, view.mailbox_id, page, size)
        elif isinstance(view, SearchView):
            result = await self.backend.search_messages(
                {**session.search_query, "page": page, "page_size": size}
            )
        else:
            raise ValueError("No view is open")
        view.show(result)

    async def _send_event(
        self, websocket: ServerConnection, event: Event, data: dict[str, Any]
    ) -> None:
        """Send an event to a specific console."""
        server_event = ServerEvent(event=event.value, data=data)
        try:
            await websocket.send(server_event.to_json())
        except websockets.ConnectionClosed:
            logger.debug(f"Dropped {event.value} event for closed connection")

    @property
    def session_count(self) -> int:
        """Return number of connected consoles."""
        return len(self._sessions)


async def run_console_server(config: Config, backend: ArchiveBackend) -> None:
    """Run the console bridge until cancelled."""
    server = ConsoleServer(config, backend)
    await server.start()

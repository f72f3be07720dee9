"""WebSocket push server for the stream overlay and control panel."""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from websockets.asyncio.server import Server, ServerConnection, broadcast, serve
from websockets.exceptions import ConnectionClosed

from .config import OVERLAY_HOST, OVERLAY_PORT
from .logic import GameOrchestrator
from .notifications import GAME_STATE
from .view import encode_event

logger = logging.getLogger(__name__)


@dataclass
class OverlayClient:
    """Represents a connected overlay or control panel."""

    websocket: ServerConnection
    address: str

    async def send(self, event: str, payload: Any) -> None:
        """Send a single event to this client."""
        try:
            await self.websocket.send(encode_event(event, payload))
        except ConnectionClosed:
            pass


class OverlayServer:
    """
    Pushes game events to every connected client and accepts the
    zero-argument admin triggers the control panel sends.

    Broadcasts never wait on clients, so a slow or dead overlay cannot
    hold up the game.
    """

    CONTROL_ACTIONS = {
        "startApplications": "start_applications",
        "endPhase": "end_phase",
        "startElection": "start_election",
        "generateMap": "generate_map",
        "resetGame": "reset",
        "createDummyTeams": "create_dummy_teams",
    }

    def __init__(
        self,
        orchestrator: GameOrchestrator,
        host: str = OVERLAY_HOST,
        port: int = OVERLAY_PORT,
    ):
        self.orchestrator = orchestrator
        self.host = host
        self.port = port
        self._clients: Dict[str, OverlayClient] = {}
        self._server: Optional[Server] = None

    @property
    def clients(self) -> Dict[str, OverlayClient]:
        """Get all connected clients keyed by address."""
        return self._clients

    async def start(self) -> None:
        """Start the WebSocket server."""
        self._server = await serve(self._handle_client, self.host, self.port)
        logger.info(f"Overlay server started on ws://{self.host}:{self.port}")

    async def stop(self) -> None:
        """Stop the WebSocket server."""
        if self._server:
            self._server.close()
            await self._server.wait_closed()
        self._clients.clear()

    def __call__(self, event: str, payload: Any) -> None:
        """Notification listener: push the event to every client."""
        if not self._clients:
            return
        broadcast([c.websocket for c in self._clients.values()], encode_event(event, payload))

    async def _handle_client(self, websocket: ServerConnection) -> None:
        """Handle a client connection."""
        address = f"{websocket.remote_address[0]}:{websocket.remote_address[1]}"
        client = OverlayClient(websocket=websocket, address=address)
        self._clients[address] = client
        logger.info(f"Overlay client connected: {address}")

        try:
            await client.send(GAME_STATE, self.orchestrator.snapshot())
            async for message in websocket:
                try:
                    packet = json.loads(message)
                except json.JSONDecodeError:
                    logger.debug(f"Ignoring malformed packet from {address}")
                    continue
                self.handle_packet(packet, address)
        except ConnectionClosed:
            pass
        finally:
            self._clients.pop(address, None)
            logger.info(f"Overlay client disconnected: {address}")

    def handle_packet(self, packet: Any, address: str = "local") -> None:
        """Dispatch a control packet like {"type": "startElection"}."""
        action = packet.get("type") if isinstance(packet, dict) else None
        method_name = self.CONTROL_ACTIONS.get(action)
        if method_name is None:
            logger.debug(f"Ignoring unknown control packet from {address}: {packet!r}")
            return

        try:
            result = getattr(self.orchestrator, method_name)()
        except Exception as e:
            logger.exception(f"Control action {action} from {address} failed: {e}")
            return
        if result.success:
            logger.info(f"Control action {action} from {address}: {result.message}")
        else:
            logger.warning(f"Control action {action} from {address} rejected: {result.message}")

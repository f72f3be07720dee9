"""Outbound game event fan-out."""

import logging
from typing import Any, Callable, List

logger = logging.getLogger(__name__)

GAME_STATE = "gameState"
UPDATE_CANDIDATES = "updateCandidates"
UPDATE_VOTES = "updateVotes"
MAP_GENERATED = "mapGenerated"
PICKING_UPDATE = "pickingUpdate"
TURN_COMPLETE = "turnComplete"
CELL_CLAIMED = "cellClaimed"
CLAIM_SUCCESS = "claimSuccess"
CLAIM_ERROR = "claimError"
GAME_RESET = "gameReset"
CHAT_MESSAGE = "chatMessage"

Listener = Callable[[str, Any], None]


class NotificationManager:
    """Delivers named events to every registered listener.

    Delivery is fire-and-forget: listeners must not block, and a failing
    listener is logged and skipped so it cannot stall the game.
    """

    def __init__(self):
        self.listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        self.listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self.listeners:
            self.listeners.remove(listener)

    def emit(self, event: str, payload: Any) -> None:
        for listener in list(self.listeners):
            try:
                listener(event, payload)
            except Exception as e:
                logger.exception(f"Listener failed on {event}: {e}")

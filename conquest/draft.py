"""Turn-based territory draft."""

import logging
import random
from typing import List, Optional

from .identity import same
from .models import ClaimResult, DraftState, MapCell, TurnResult

logger = logging.getLogger(__name__)

OUT_OF_BOUNDS = "out of bounds"
WATER = "water"
ALREADY_CLAIMED = "already claimed"


class DraftEngine:
    """Governs claims on a DraftState.

    The engine mutates the draft state and grid it is handed and reports
    what happened; timers and notifications belong to the caller.
    """

    def __init__(self, state: DraftState, rng: random.Random):
        self.state = state
        self.rng = rng

    @property
    def grid(self) -> List[List[MapCell]]:
        return self.state.grid

    def start(self) -> Optional[str]:
        """Make the front of the picking order the current picker."""
        self.state.current_picker = self.state.picking_order[0] if self.state.picking_order else None
        return self.state.current_picker

    def is_current_picker(self, leader_id: str) -> bool:
        return same(self.state.current_picker, leader_id)

    def cell(self, row: int, col: int) -> Optional[MapCell]:
        size = len(self.grid)
        if 0 <= row < size and 0 <= col < size:
            return self.grid[row][col]
        return None

    def claimable_cells(self) -> List[MapCell]:
        return [cell for row in self.grid for cell in row if cell.claimable]

    def claim(self, leader_id: str, row: int, col: int) -> Optional[ClaimResult]:
        """Attempt a claim. Returns None when leader_id is not the current picker."""
        if not self.is_current_picker(leader_id):
            logger.debug(f"Ignoring claim by {leader_id}: not their turn")
            return None

        picker = self.state.current_picker
        cell = self.cell(row, col)
        reason = None
        if cell is None:
            reason = OUT_OF_BOUNDS
        elif cell.terrain == "water":
            reason = WATER
        elif cell.owner is not None:
            reason = ALREADY_CLAIMED

        if reason:
            logger.info(f"Claim by {picker} at ({row}, {col}) failed: {reason}")
            return ClaimResult(False, picker, row, col, reason=reason)

        cell.owner = picker
        logger.info(f"{picker} claimed ({row}, {col})")
        return ClaimResult(True, picker, row, col)

    def auto_assign(self) -> Optional[ClaimResult]:
        """Give the current picker a random free cell after a timeout."""
        picker = self.state.current_picker
        if picker is None:
            return None
        free = self.claimable_cells()
        if not free:
            logger.info(f"No free cells left for {picker}; skipping their turn")
            return None
        cell = self.rng.choice(free)
        cell.owner = picker
        logger.info(f"Auto-assigned ({cell.row}, {cell.col}) to {picker}")
        return ClaimResult(True, picker, cell.row, cell.col, auto=True)

    def advance(self) -> TurnResult:
        """Drop the finished picker from the order and move to the next."""
        finished = self.state.current_picker
        if self.state.picking_order:
            self.state.picking_order.pop(0)
        self.start()
        return TurnResult(
            finished_picker=finished,
            next_picker=self.state.current_picker,
            remaining=list(self.state.picking_order),
        )

"""Randomized territory grid and draft order."""

import logging
import random
from typing import List

from .config import (
    GRID_SIZE,
    RESOURCE_COUNT,
    RESOURCE_PLACEMENT_ATTEMPTS,
    RESOURCES,
    TERRAIN_BANDS,
)
from .models import MapCell, Team

logger = logging.getLogger(__name__)


def pick_terrain(roll: float) -> str:
    for upper, terrain in TERRAIN_BANDS:
        if roll < upper:
            return terrain
    return TERRAIN_BANDS[-1][1]


def generate_grid(rng: random.Random, size: int = GRID_SIZE) -> List[List[MapCell]]:
    """Build a size x size grid and scatter resources on dry land.

    Placement gives up after a fixed number of attempts, so a mostly
    water map may carry fewer resources than requested.
    """
    grid = [
        [MapCell(row=row, col=col, terrain=pick_terrain(rng.random())) for col in range(size)]
        for row in range(size)
    ]

    placed = 0
    attempts = 0
    while placed < RESOURCE_COUNT and attempts < RESOURCE_PLACEMENT_ATTEMPTS:
        attempts += 1
        cell = grid[rng.randrange(size)][rng.randrange(size)]
        if cell.terrain == "water" or cell.resource is not None:
            continue
        cell.resource = rng.choice(RESOURCES)
        placed += 1

    if placed < RESOURCE_COUNT:
        logger.warning(f"Placed only {placed}/{RESOURCE_COUNT} resources after {attempts} attempts")
    return grid


def draft_order(teams: List[Team]) -> List[str]:
    """Leader ids, smallest team first; ties keep formation order."""
    return [team.leader_id for team in sorted(teams, key=lambda t: len(t.members))]

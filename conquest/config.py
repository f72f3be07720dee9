"""Game configuration constants and settings."""

import os

APPLICATION_SECONDS = int(os.getenv("APPLICATION_SECONDS", "30"))
VOTING_SECONDS = int(os.getenv("VOTING_SECONDS", "30"))
TURN_SECONDS = int(os.getenv("TURN_SECONDS", "15"))

FINALIST_LIMIT = 12
LEADER_COUNT = 5

GRID_SIZE = 6
RESOURCE_COUNT = 10
RESOURCE_PLACEMENT_ATTEMPTS = 100
RESOURCES = ("wood", "iron", "clay")

# Cumulative upper bounds over a uniform [0, 1) draw
TERRAIN_BANDS = [
    (0.2, "water"),
    (0.6, "land"),
    (0.8, "mountain"),
    (1.0, "desert"),
]

TEAM_COLORS = ["#e74c3c", "#3498db", "#2ecc71", "#f1c40f", "#9b59b6"]
REBEL_COLOR = "#7f8c8d"

# Transport configuration
GAME_CHANNEL_ID = int(os.getenv("GAME_CHANNEL_ID", "0"))  # 0 listens everywhere
OVERLAY_HOST = os.getenv("OVERLAY_HOST", "0.0.0.0")
OVERLAY_PORT = int(os.getenv("OVERLAY_PORT", "3000"))

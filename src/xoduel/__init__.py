"""xoduel package exposing game rules, the decision engine, and the session relay."""

from .ai import MinimaxAI, choose_move
from .binding import DirectFollower, DirectHost, RelayBinding
from .registry import SessionRegistry
from .ui import app, create_app

__all__ = [
    "DirectFollower",
    "DirectHost",
    "MinimaxAI",
    "RelayBinding",
    "SessionRegistry",
    "app",
    "create_app",
    "choose_move",
]

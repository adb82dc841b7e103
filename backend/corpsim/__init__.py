"""corpsim — turn/economy engine for a multiplayer corporate simulation."""

__version__ = "0.1.0"

"""
Bots Module - Automatic players.

Used by the CLI simulator and by tests to drive full sessions
without a human at the keyboard.
"""

from .policy import AutoPlayer, BotDecision, SimulationReport, simulate_session

__all__ = [
    "AutoPlayer",
    "BotDecision",
    "SimulationReport",
    "simulate_session",
]

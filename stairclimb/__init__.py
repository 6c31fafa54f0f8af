"""
Stair Climber - Arcade stair-climbing game engine

A real-time engine for an endless stair-climbing game. The engine provides:
- Procedural generation of a clustered left/right step path
- Move validation (climb / turn) against the next required step
- Timer decay that speeds up with score
- Session lifecycle with a one-time hand-off of the final score
"""

__version__ = "0.1.0"

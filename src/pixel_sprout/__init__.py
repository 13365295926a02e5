"""Pixel Sprout: a turn-based tile roguelike.

The game core is a set of pure functions over an immutable ``GameState``;
``pixel_sprout.engine.session.GameSession`` wraps them for an interactive
front end.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]

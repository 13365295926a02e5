"""Game state coordinator.

``state`` holds the immutable snapshot, ``rules`` the pure transitions,
``session`` the interactive wrapper and ``view`` the presentation snapshot.
Import the submodules directly; this package keeps no eager imports so the
quest engine can depend on ``engine.state`` without a cycle.
"""

from .fog_of_war import (
    FogTileState,
    Mask,
    Visibility,
    blank_mask,
    compute_visibility,
    count_explored,
    reveal_all,
    tile_state,
)

__all__ = [
    "FogTileState",
    "Mask",
    "Visibility",
    "blank_mask",
    "compute_visibility",
    "count_explored",
    "reveal_all",
    "tile_state",
]
